"""Verification workflow endpoints for the Role Gate API."""

from __future__ import annotations

from fastapi import APIRouter

from role_gate.api.v1.dependencies import ContextDep, ReadyContextDep
from role_gate.schemas.verification import (
    ChallengeResponse,
    ConfirmVerificationRequest,
    ConfirmVerificationResponse,
    ErrorResponse,
    LivenessRequest,
    LivenessResponse,
    RequestVerificationRequest,
    SuccessResponse,
)
from role_gate.services.errors import InvalidInputError
from role_gate.services.orchestrator import GrantOutcome

router = APIRouter(tags=["verification"])

ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.get(
    "/challenge",
    summary="Issue an arithmetic captcha",
    response_model=ChallengeResponse,
)
async def issue_challenge(context: ContextDep) -> ChallengeResponse:
    """Provide a single-use question the user must answer before requesting a code."""
    challenge = context.challenges.issue_challenge()
    return ChallengeResponse(token=challenge.token, question=challenge.question)


@router.post(
    "/liveness",
    summary="Issue a browser liveness token",
    response_model=LivenessResponse,
    responses={400: {"model": ErrorResponse}},
)
async def issue_liveness(payload: LivenessRequest, context: ContextDep) -> LivenessResponse:
    """Exchange a browser fingerprint for a single-use liveness token."""
    fingerprint = payload.fingerprint
    if not fingerprint or not fingerprint.strip():
        raise InvalidInputError("Invalid fingerprint.")
    token = context.challenges.issue_liveness(fingerprint)
    return LivenessResponse(token=token)


@router.post(
    "/request-verification",
    summary="Send a verification code by direct message",
    response_model=SuccessResponse,
    responses=ERROR_RESPONSES,
)
async def request_verification(
    payload: RequestVerificationRequest,
    context: ReadyContextDep,
) -> SuccessResponse:
    """Check the captcha and liveness tokens, then DM a one-time code to the user."""
    await context.orchestrator.request_verification(
        payload.identity,
        payload.challenge_token,
        payload.challenge_answer,
        payload.liveness_token,
        payload.fingerprint,
    )
    return SuccessResponse(message="Code sent successfully!")


@router.post(
    "/confirm-verification",
    summary="Confirm a verification code and receive the role",
    response_model=ConfirmVerificationResponse,
    responses=ERROR_RESPONSES,
)
async def confirm_verification(
    payload: ConfirmVerificationRequest,
    context: ReadyContextDep,
) -> ConfirmVerificationResponse:
    """Consume the one-time code and grant the configured role."""
    outcome = await context.orchestrator.confirm_verification(payload.identity, payload.code)
    return ConfirmVerificationResponse(
        message="Verification completed successfully!",
        already_granted=outcome is GrantOutcome.ALREADY_GRANTED,
    )
