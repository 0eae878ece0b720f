"""Periodic cleanup of expired tokens, codes and rate-limit windows."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Iterable
from typing import Protocol

from role_gate.core.settings import settings

logger = logging.getLogger(__name__)


class Sweepable(Protocol):
    def purge_expired(self) -> int: ...


class StoreSweeper:
    """Purges expired entries so unread tokens cannot accumulate forever."""

    def __init__(
        self, stores: Iterable[Sweepable], interval_seconds: float | None = None
    ) -> None:
        self.stores = list(stores)
        self.interval_seconds = (
            settings.sweep_interval_seconds if interval_seconds is None else interval_seconds
        )
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    async def start(self) -> None:
        """Start the background sweep loop."""
        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background sweep loop."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None

    def sweep_once(self) -> int:
        """Purge every store once and return the total number of entries removed."""
        removed = sum(store.purge_expired() for store in self.stores)
        if removed:
            logger.debug("Sweeper removed %d expired entries", removed)
        return removed

    async def _run(self) -> None:
        interval = max(0.1, float(self.interval_seconds))
        while not self._stopping.is_set():
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stopping.wait(), timeout=interval)
            if self._stopping.is_set():
                break
            try:
                self.sweep_once()
            except Exception as e:  # pragma: no cover - unexpected failure
                logger.error("Error sweeping expired entries: %s", e, exc_info=True)
