"""Business logic services for the Role Gate application."""

from .challenge import ChallengeIssuer
from .discord import DiscordClient
from .orchestrator import GrantOutcome, VerificationOrchestrator
from .rate_limit import RateLimiter
from .readiness import ConnectionState, ReadinessTracker
from .token_store import TokenStore
from .verification import SessionState, VerificationSession

__all__ = [
    "ChallengeIssuer",
    "ConnectionState",
    "DiscordClient",
    "GrantOutcome",
    "RateLimiter",
    "ReadinessTracker",
    "SessionState",
    "TokenStore",
    "VerificationOrchestrator",
    "VerificationSession",
]
