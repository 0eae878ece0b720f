"""Health and public configuration endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from role_gate.api.v1.dependencies import ContextDep
from role_gate.core.settings import settings
from role_gate.schemas.verification import HealthResponse
from role_gate.utils.clock import utcnow

router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse)
async def health_check(context: ContextDep) -> HealthResponse:
    """Report whether the Discord bot is connected.

    Never blocked by readiness, so the front end can poll it while the bot
    is still connecting.
    """
    return HealthResponse(
        ready=context.readiness.is_ready,
        state=context.readiness.state.value,
        timestamp=utcnow().isoformat(),
    )


@router.get("/system/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes the bot token and Discord identifiers; suitable for the front
    end to display countdowns and limits.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
        },
        "verification": settings.public_config,
    }
