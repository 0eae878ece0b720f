"""Human-challenge and liveness tokens guarding verification requests."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Final

from role_gate.core.settings import settings
from role_gate.services.token_store import TokenStore

logger = logging.getLogger(__name__)

TOKEN_BYTES: Final[int] = 16
OPERAND_MIN: Final[int] = 1
OPERAND_MAX: Final[int] = 10


def new_token_id() -> str:
    """Return an unguessable token id (128 bits from the OS CSPRNG)."""
    return secrets.token_hex(TOKEN_BYTES)


@dataclass(frozen=True)
class Challenge:
    """Arithmetic question handed to the browser."""

    token: str
    question: str


@dataclass(frozen=True)
class LivenessRecord:
    """What the server remembers about an issued liveness token."""

    fingerprint: str


def _parse_answer(answer: int | str | None) -> int | None:
    if answer is None or isinstance(answer, bool):
        return None
    if isinstance(answer, int):
        return answer
    try:
        return int(str(answer).strip())
    except ValueError:
        return None


class ChallengeIssuer:
    """Issue and redeem single-use challenge and liveness tokens.

    Both kinds of token are destroyed by the first validation attempt,
    whatever its outcome, so a guessed answer can never be retried against
    the same token.
    """

    def __init__(
        self,
        challenge_store: TokenStore[int] | None = None,
        liveness_store: TokenStore[LivenessRecord] | None = None,
        *,
        challenge_ttl_seconds: float | None = None,
        liveness_ttl_seconds: float | None = None,
    ) -> None:
        if challenge_store is None:
            challenge_store = TokenStore[int]("challenge")
        if liveness_store is None:
            liveness_store = TokenStore[LivenessRecord]("liveness")
        self.challenge_store = challenge_store
        self.liveness_store = liveness_store
        self.challenge_ttl_seconds = (
            settings.challenge_ttl_seconds
            if challenge_ttl_seconds is None
            else challenge_ttl_seconds
        )
        self.liveness_ttl_seconds = (
            settings.liveness_ttl_seconds
            if liveness_ttl_seconds is None
            else liveness_ttl_seconds
        )

    def issue_challenge(self) -> Challenge:
        """Create a new addition question and remember its answer."""
        span = OPERAND_MAX - OPERAND_MIN + 1
        first = secrets.randbelow(span) + OPERAND_MIN
        second = secrets.randbelow(span) + OPERAND_MIN
        token = new_token_id()
        self.challenge_store.put(token, first + second, self.challenge_ttl_seconds)
        return Challenge(token=token, question=f"{first} + {second}")

    def validate_challenge(self, token: str, answer: int | str | None) -> bool:
        """Redeem ``token`` and check ``answer`` against the stored sum."""
        expected = self.challenge_store.take(token)
        if expected is None:
            return False
        return _parse_answer(answer) == expected

    def issue_liveness(self, fingerprint: str) -> str:
        """Issue a liveness token for a browser presenting ``fingerprint``."""
        token = new_token_id()
        self.liveness_store.put(
            token, LivenessRecord(fingerprint=fingerprint), self.liveness_ttl_seconds
        )
        logger.debug("Issued liveness token (fingerprint length %d)", len(fingerprint))
        return token

    def validate_liveness(self, token: str) -> bool:
        """Redeem ``token``; it is valid if this server issued it and it has not expired."""
        return self.liveness_store.take(token) is not None

    @property
    def stores(self) -> tuple[TokenStore[int], TokenStore[LivenessRecord]]:
        return self.challenge_store, self.liveness_store
