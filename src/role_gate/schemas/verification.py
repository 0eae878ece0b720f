"""Verification workflow Pydantic schemas.

Request fields are deliberately loose (optional, untyped answer) so that
missing or malformed values reach the workflow and are reported with the
workflow's own error codes instead of generic validation errors.
"""

from typing import Literal

from pydantic import BaseModel, Field


class ChallengeResponse(BaseModel):
    """Arithmetic captcha issued to the browser."""

    token: str = Field(..., description="Single-use challenge token")
    question: str = Field(..., description="Question to display, e.g. '3 + 7'")


class LivenessRequest(BaseModel):
    fingerprint: str | None = Field(None, description="Client-computed browser fingerprint")


class LivenessResponse(BaseModel):
    token: str = Field(..., description="Single-use liveness token")


class RequestVerificationRequest(BaseModel):
    """Ask for a one-time code to be sent by direct message."""

    identity: str | None = Field(None, description="Discord user ID (17-19 digits)")
    challenge_token: str | None = Field(None, description="Token from GET /challenge")
    challenge_answer: int | str | None = Field(None, description="Answer to the challenge")
    liveness_token: str | None = Field(None, description="Token from POST /liveness")
    fingerprint: str | None = Field(None, description="Fingerprint sent to POST /liveness")


class ConfirmVerificationRequest(BaseModel):
    identity: str | None = Field(None, description="Discord user ID (17-19 digits)")
    code: str | None = Field(None, description="Code received by direct message")


class SuccessResponse(BaseModel):
    success: Literal[True] = True
    message: str


class ConfirmVerificationResponse(SuccessResponse):
    already_granted: bool = Field(False, description="True if the role was already held")


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Human-readable error message")
    code: str = Field(..., description="Stable machine-readable error code")


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    ready: bool = Field(..., description="True when the Discord bot is connected")
    state: str = Field(..., description="connecting, ready or disconnected")
    timestamp: str
