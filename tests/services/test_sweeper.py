"""Tests for the expired-entry sweeper."""

from __future__ import annotations

import asyncio

import pytest

from role_gate.context import VerificationContext
from role_gate.services.sweeper import StoreSweeper
from role_gate.services.token_store import TokenStore
from tests.conftest import TEST_IDENTITY, FakeClock


class CountingStore:
    def __init__(self, removed: int = 0) -> None:
        self.removed = removed
        self.calls = 0

    def purge_expired(self) -> int:
        self.calls += 1
        return self.removed


def test_sweep_once_totals_removed_entries() -> None:
    stores = [CountingStore(2), CountingStore(0), CountingStore(3)]
    sweeper = StoreSweeper(stores, interval_seconds=60)

    assert sweeper.sweep_once() == 5
    assert all(store.calls == 1 for store in stores)


def test_sweep_once_purges_every_context_store(
    context: VerificationContext, clock: FakeClock
) -> None:
    context.challenges.issue_challenge()
    context.challenges.issue_liveness("fp")
    context.sessions.start(TEST_IDENTITY)
    context.rate_limiter.allow(TEST_IDENTITY)

    assert context.sweeper.sweep_once() == 0

    clock.advance(301)
    assert context.sweeper.sweep_once() == 4
    assert len(context.challenges.challenge_store) == 0
    assert len(context.sessions) == 0
    assert context.rate_limiter.count(TEST_IDENTITY) == 0


@pytest.mark.asyncio
async def test_background_loop_sweeps_until_stopped() -> None:
    clock = FakeClock()
    store = TokenStore[str]("test", clock=clock)
    store.put("a", "value", 1)
    clock.advance(2)
    sweeper = StoreSweeper([store], interval_seconds=0.1)

    await sweeper.start()
    for _ in range(50):
        if len(store) == 0:
            break
        await asyncio.sleep(0.05)
    await sweeper.stop()

    assert len(store) == 0


@pytest.mark.asyncio
async def test_stop_without_start_is_noop() -> None:
    sweeper = StoreSweeper([], interval_seconds=1)

    await sweeper.stop()
