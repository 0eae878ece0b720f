"""Workflow errors raised by the verification services.

Every error carries a stable machine-readable ``code``, the HTTP status it
maps to and a user-facing message. The API layer renders them as
``{"error": message, "code": code}``.
"""

from __future__ import annotations

from fastapi import status


class VerificationError(Exception):
    """Base class for all verification workflow failures."""

    code: str = "internal_error"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_payload(self) -> dict[str, str]:
        return {"error": self.message, "code": self.code}


# --- Client-correctable input errors ------------------------------------------------


class ValidationError(VerificationError):
    """Malformed identity, code or other input."""

    code = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid input."


class InvalidIdentityError(ValidationError):
    code = "invalid_identity"
    message = "Invalid Discord ID."


class InvalidInputError(ValidationError):
    code = "invalid_input"
    message = "Discord ID and a valid code are required."


# --- Throttling ---------------------------------------------------------------------


class ThrottleError(VerificationError):
    """Base class for throttling rejections."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class RateLimitedError(ThrottleError):
    """Too many requests for one identity inside the current window."""

    code = "rate_limited"
    message = "Too many attempts. Please wait a minute."

    def __init__(self, retry_after: float = 0.0, message: str | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


# --- Anti-automation tokens ---------------------------------------------------------


class ChallengeError(VerificationError):
    status_code = status.HTTP_400_BAD_REQUEST


class ChallengeRequiredError(ChallengeError):
    code = "challenge_required"
    message = "Captcha is required."


class ChallengeInvalidError(ChallengeError):
    code = "challenge_invalid"
    message = "Captcha answer is incorrect or the captcha has expired."


class LivenessError(VerificationError):
    status_code = status.HTTP_400_BAD_REQUEST


class LivenessRequiredError(LivenessError):
    code = "liveness_required"
    message = "Browser check is required."


class LivenessInvalidError(LivenessError):
    code = "liveness_invalid"
    message = "Browser check is invalid or has expired."


# --- Verification code session ------------------------------------------------------


class SessionError(VerificationError):
    """Failure confirming a one-time code."""

    status_code = status.HTTP_400_BAD_REQUEST


class CodeNotFoundError(SessionError):
    code = "code_not_found"
    message = "Code not found. Please request a new code."


class CodeExpiredError(SessionError):
    code = "code_expired"
    message = "Code expired. Please request a new code."


class CodeMismatchError(SessionError):
    code = "code_mismatch"
    message = "Incorrect code."


# --- Collaborators ------------------------------------------------------------------


class IdentityNotFoundError(VerificationError):
    code = "identity_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "User not found in the server."


class CollaboratorUnavailableError(VerificationError):
    """A downstream dependency is unreachable; safe to retry later."""

    code = "collaborator_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Discord is temporarily unavailable. Please try again later."


class NotReadyError(CollaboratorUnavailableError):
    code = "not_ready"
    message = "The bot is not ready yet. Wait a few seconds and reload the page."


class DeliveryFailedError(CollaboratorUnavailableError):
    code = "delivery_failed"
    message = "Could not send the message. Check that your direct messages are enabled."


class GrantFailedError(VerificationError):
    """The code was consumed but the role could not be granted."""

    code = "grant_failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Code accepted but the role could not be added. Please contact a moderator."


class InternalError(VerificationError):
    code = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error."
