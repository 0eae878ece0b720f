"""One-time verification codes, one live code per identity."""

from __future__ import annotations

import hmac
import logging
import secrets
import string
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Final

from role_gate.core.settings import settings
from role_gate.services.errors import CodeExpiredError, CodeMismatchError, CodeNotFoundError
from role_gate.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)

CODE_ALPHABET: Final[str] = string.ascii_uppercase + string.digits


class SessionState(Enum):
    """Where an identity stands in the code workflow.

    ``state`` never returns CONFIRMED: a confirmed code is removed, so the
    identity reads back as NO_CODE afterwards.
    """

    NO_CODE = "no_code"
    CODE_ISSUED = "code_issued"
    CONFIRMED = "confirmed"  # outcome of confirm, not observable via state
    EXPIRED = "expired"


@dataclass(frozen=True)
class PendingCode:
    identity: str
    code: str
    expires_at: float


def generate_code(length: int) -> str:
    """Return a random code drawn uniformly from ``CODE_ALPHABET``."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


class VerificationSession:
    """Track the pending code of every identity.

    ``start`` moves an identity to CODE_ISSUED, replacing any earlier code.
    ``confirm`` with the right code is terminal (CONFIRMED) and removes the
    code. A wrong code leaves it in place so the user can retry until it
    expires; an expired code is removed the first time it is presented.
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        code_length: int | None = None,
        *,
        clock: Clock = system_clock,
    ) -> None:
        self.ttl_seconds = settings.code_ttl_seconds if ttl_seconds is None else ttl_seconds
        self.code_length = settings.code_length if code_length is None else code_length
        self._clock = clock
        self._codes: dict[str, PendingCode] = {}
        self._lock = Lock()

    def start(self, identity: str) -> str:
        """Issue a fresh code for ``identity`` and return it."""
        code = generate_code(self.code_length)
        pending = PendingCode(
            identity=identity,
            code=code,
            expires_at=self._clock() + self.ttl_seconds,
        )
        with self._lock:
            replaced = identity in self._codes
            self._codes[identity] = pending
        logger.info(
            "Issued verification code for identity %s%s",
            identity,
            " (replacing previous code)" if replaced else "",
        )
        return code

    def confirm(self, identity: str, submitted_code: str) -> None:
        """Consume the pending code for ``identity`` if ``submitted_code`` matches.

        Raises:
            CodeNotFoundError: No code is pending for the identity.
            CodeExpiredError: The pending code has expired (it is removed).
            CodeMismatchError: The code does not match (it is kept).
        """
        candidate = submitted_code.strip().upper()
        now = self._clock()
        with self._lock:
            pending = self._codes.get(identity)
            if pending is None:
                raise CodeNotFoundError()
            if now > pending.expires_at:
                del self._codes[identity]
                raise CodeExpiredError()
            if not hmac.compare_digest(pending.code, candidate):
                raise CodeMismatchError()
            del self._codes[identity]
        logger.info("Verification code confirmed for identity %s", identity)

    def state(self, identity: str) -> SessionState:
        """Return the current state for ``identity`` without side effects."""
        now = self._clock()
        with self._lock:
            pending = self._codes.get(identity)
        if pending is None:
            return SessionState.NO_CODE
        if now > pending.expires_at:
            return SessionState.EXPIRED
        return SessionState.CODE_ISSUED

    def purge_expired(self) -> int:
        """Drop codes whose lifetime has elapsed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, pending in self._codes.items() if now > pending.expires_at]
            for key in expired:
                del self._codes[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._codes.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._codes)
