"""Background connection management for the Discord collaborator.

The HTTP server starts before Discord is reachable; this worker keeps
trying to authenticate the bot and re-authenticates whenever the client
reports that it has been disconnected.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Protocol

from role_gate.core.settings import settings
from role_gate.services.collaborators import CollaboratorError
from role_gate.services.readiness import ReadinessTracker

# Configure logger for this module
logger = logging.getLogger(__name__)


class Connectable(Protocol):
    readiness: ReadinessTracker

    async def connect(self) -> object: ...


class DiscordConnector:
    """Periodically connects the collaborator while it is not ready."""

    def __init__(self, client: Connectable, interval_seconds: float | None = None) -> None:
        """Initialize the connector.

        Args:
            client: Collaborator exposing ``connect`` and a readiness tracker.
            interval_seconds: Delay between attempts. Defaults to settings.
        """
        self.client = client
        self.interval_seconds = (
            settings.discord_reconnect_interval_seconds
            if interval_seconds is None
            else interval_seconds
        )
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    async def start(self) -> None:
        """Start the background connection loop."""

        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background connection loop."""

        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def connect_once(self) -> bool:
        """Attempt a single connection; return True if the client is ready."""
        try:
            await self.client.connect()
        except CollaboratorError as e:
            logger.error("Could not connect to Discord: %s", e)
            logger.info("HTTP server keeps running; verification is blocked until connected.")
            return False
        return True

    async def _run(self) -> None:
        interval = max(0.1, float(self.interval_seconds))

        while not self._stopping.is_set():
            if not self.client.readiness.is_ready:
                try:
                    await self.connect_once()
                except Exception as e:  # pragma: no cover - unexpected failure
                    logger.error("Unexpected error in Discord connector: %s", e, exc_info=True)

            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stopping.wait(), timeout=interval)
