"""Verification workflow: request a code, then confirm it to receive the role."""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Final, TypeGuard

from role_gate.services.challenge import ChallengeIssuer
from role_gate.services.collaborators import (
    AccountNotFoundError,
    CollaboratorError,
    MembershipGateway,
    MessagingGateway,
)
from role_gate.services.errors import (
    ChallengeInvalidError,
    ChallengeRequiredError,
    CollaboratorUnavailableError,
    DeliveryFailedError,
    GrantFailedError,
    IdentityNotFoundError,
    InvalidIdentityError,
    InvalidInputError,
    LivenessInvalidError,
    LivenessRequiredError,
    RateLimitedError,
)
from role_gate.services.rate_limit import RateLimiter
from role_gate.services.verification import VerificationSession

logger = logging.getLogger(__name__)

IDENTITY_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[0-9]{17,19}$")

CODE_MESSAGE_TEMPLATE: Final[str] = (
    "\U0001f510 **Verification code**\n\n"
    "Your verification code is: **{code}**\n\n"
    "This code expires in {minutes} minutes.\n\n"
    "Enter this code on the website to complete the verification."
)


class GrantOutcome(Enum):
    """Result of a successful confirmation."""

    GRANTED = "granted"
    ALREADY_GRANTED = "already_granted"


def is_valid_identity(identity: object) -> TypeGuard[str]:
    return isinstance(identity, str) and IDENTITY_PATTERN.fullmatch(identity) is not None


def _code_pattern(length: int) -> re.Pattern[str]:
    return re.compile(rf"^[A-Z0-9]{{{length}}}$")


def _present(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


class VerificationOrchestrator:
    """Sequence the anti-automation checks, the code session and the collaborators.

    Store operations complete before any collaborator is awaited, so no lock
    is held across network I/O.
    """

    def __init__(
        self,
        *,
        rate_limiter: RateLimiter,
        challenges: ChallengeIssuer,
        sessions: VerificationSession,
        messaging: MessagingGateway,
        membership: MembershipGateway,
        privilege_id: str,
    ) -> None:
        self.rate_limiter = rate_limiter
        self.challenges = challenges
        self.sessions = sessions
        self.messaging = messaging
        self.membership = membership
        self.privilege_id = privilege_id
        self._code_pattern = _code_pattern(sessions.code_length)

    def _check_rate_limit(self, identity: str) -> None:
        if not self.rate_limiter.allow(identity):
            raise RateLimitedError(retry_after=self.rate_limiter.retry_after(identity))

    def _code_message(self, code: str) -> str:
        minutes = max(1, round(self.sessions.ttl_seconds / 60))
        return CODE_MESSAGE_TEMPLATE.format(code=code, minutes=minutes)

    async def request_verification(
        self,
        identity: str | None,
        challenge_token: str | None,
        challenge_answer: int | str | None,
        liveness_token: str | None,
        fingerprint: str | None,
    ) -> None:
        """Validate the anti-automation tokens and DM a fresh code to ``identity``.

        Raises:
            VerificationError: A subclass describing the first failed step.
        """
        if not is_valid_identity(identity):
            raise InvalidIdentityError()

        self._check_rate_limit(identity)

        if not _present(challenge_token) or not _present(challenge_answer):
            raise ChallengeRequiredError()
        if not self.challenges.validate_challenge(str(challenge_token), challenge_answer):
            raise ChallengeInvalidError()

        if not _present(liveness_token) or not _present(fingerprint):
            raise LivenessRequiredError()
        if not self.challenges.validate_liveness(str(liveness_token)):
            raise LivenessInvalidError()

        code = self.sessions.start(identity)

        try:
            await self.membership.fetch_account(identity)
        except AccountNotFoundError as err:
            raise IdentityNotFoundError() from err
        except CollaboratorError as err:
            logger.warning("Member lookup failed for identity %s: %s", identity, err)
            raise CollaboratorUnavailableError() from err

        try:
            await self.messaging.send_direct_message(identity, self._code_message(code))
        except CollaboratorError as err:
            logger.warning("Could not deliver code to identity %s: %s", identity, err)
            raise DeliveryFailedError() from err

        logger.info("Verification code delivered to identity %s", identity)

    async def confirm_verification(self, identity: str | None, code: str | None) -> GrantOutcome:
        """Consume the code for ``identity`` and grant the configured privilege.

        Raises:
            VerificationError: A subclass describing the first failed step.
        """
        if not _present(identity) or not _present(code):
            raise InvalidInputError()
        if not is_valid_identity(identity):
            raise InvalidIdentityError()
        if not isinstance(code, str) or not self._code_pattern.fullmatch(code.strip().upper()):
            raise InvalidInputError("Invalid code.")

        self._check_rate_limit(identity)

        self.sessions.confirm(identity, code)

        # The code is consumed from here on; failures need manual follow-up.
        try:
            account = await self.membership.fetch_account(identity)
            if self.membership.account_has_privilege(account, self.privilege_id):
                logger.info("Identity %s already holds the role", identity)
                return GrantOutcome.ALREADY_GRANTED
            await self.membership.grant_privilege(account, self.privilege_id)
        except CollaboratorError as err:
            logger.error(
                "Code consumed but role grant failed for identity %s: %s", identity, err
            )
            raise GrantFailedError() from err

        logger.info("Role granted to identity %s", identity)
        return GrantOutcome.GRANTED
