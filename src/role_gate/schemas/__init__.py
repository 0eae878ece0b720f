"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .verification import (
    ChallengeResponse,
    ConfirmVerificationRequest,
    ConfirmVerificationResponse,
    ErrorResponse,
    HealthResponse,
    LivenessRequest,
    LivenessResponse,
    RequestVerificationRequest,
    SuccessResponse,
)

__all__ = [
    "ChallengeResponse", "ErrorResponse", "HealthResponse",
    "LivenessRequest", "LivenessResponse",
    "RequestVerificationRequest", "SuccessResponse",
    "ConfirmVerificationRequest", "ConfirmVerificationResponse",
]
