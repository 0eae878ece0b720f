"""Process-wide verification context.

All shared state lives on one explicit object built at startup and attached
to ``app.state``; request handlers reach it through a dependency rather than
through module globals, which lets tests build a context around fakes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from role_gate.core.settings import Settings
from role_gate.services.challenge import ChallengeIssuer, LivenessRecord
from role_gate.services.collaborators import MembershipGateway, MessagingGateway
from role_gate.services.connector import DiscordConnector
from role_gate.services.discord import DiscordClient, DiscordConfig
from role_gate.services.orchestrator import VerificationOrchestrator
from role_gate.services.rate_limit import RateLimiter
from role_gate.services.readiness import ReadinessTracker
from role_gate.services.sweeper import StoreSweeper
from role_gate.services.token_store import TokenStore
from role_gate.services.verification import VerificationSession
from role_gate.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)


@dataclass
class VerificationContext:
    """Stores, workflow and collaborator handles for one process."""

    challenges: ChallengeIssuer
    rate_limiter: RateLimiter
    sessions: VerificationSession
    orchestrator: VerificationOrchestrator
    readiness: ReadinessTracker
    sweeper: StoreSweeper
    connector: DiscordConnector | None = None
    discord: DiscordClient | None = None
    started: bool = field(default=False, init=False)

    async def start(self) -> None:
        """Start background workers."""
        if self.started:
            return
        await self.sweeper.start()
        if self.connector is not None:
            await self.connector.start()
        self.started = True

    async def stop(self) -> None:
        """Stop background workers and release the collaborator client."""
        if not self.started:
            return
        if self.connector is not None:
            await self.connector.stop()
        await self.sweeper.stop()
        if self.discord is not None:
            await self.discord.close()
        self.started = False


def build_context(
    app_settings: Settings,
    *,
    messaging: MessagingGateway,
    membership: MembershipGateway,
    readiness: ReadinessTracker,
    clock: Clock = system_clock,
    connector: DiscordConnector | None = None,
    discord: DiscordClient | None = None,
) -> VerificationContext:
    """Wire stores and workflow around the given collaborators."""
    challenges = ChallengeIssuer(
        TokenStore[int]("challenge", clock=clock),
        TokenStore[LivenessRecord]("liveness", clock=clock),
        challenge_ttl_seconds=app_settings.challenge_ttl_seconds,
        liveness_ttl_seconds=app_settings.liveness_ttl_seconds,
    )
    rate_limiter = RateLimiter(
        app_settings.rate_limit_max_requests,
        app_settings.rate_limit_window_seconds,
        clock=clock,
    )
    sessions = VerificationSession(
        app_settings.code_ttl_seconds,
        app_settings.code_length,
        clock=clock,
    )
    orchestrator = VerificationOrchestrator(
        rate_limiter=rate_limiter,
        challenges=challenges,
        sessions=sessions,
        messaging=messaging,
        membership=membership,
        privilege_id=app_settings.role_id,
    )
    sweeper = StoreSweeper(
        [*challenges.stores, rate_limiter, sessions],
        interval_seconds=app_settings.sweep_interval_seconds,
    )
    return VerificationContext(
        challenges=challenges,
        rate_limiter=rate_limiter,
        sessions=sessions,
        orchestrator=orchestrator,
        readiness=readiness,
        sweeper=sweeper,
        connector=connector,
        discord=discord,
    )


def build_discord_context(app_settings: Settings) -> VerificationContext:
    """Build the production context backed by the Discord REST API."""
    readiness = ReadinessTracker()
    discord = DiscordClient(
        DiscordConfig(
            base_url=app_settings.discord_api_base_url,
            bot_token=app_settings.bot_token,
            guild_id=app_settings.guild_id,
            timeout_seconds=float(app_settings.discord_http_timeout_seconds),
        ),
        readiness=readiness,
    )
    connector = DiscordConnector(
        discord, interval_seconds=app_settings.discord_reconnect_interval_seconds
    )
    logger.info("Waiting for the Discord bot to connect...")
    return build_context(
        app_settings,
        messaging=discord,
        membership=discord,
        readiness=readiness,
        connector=connector,
        discord=discord,
    )
