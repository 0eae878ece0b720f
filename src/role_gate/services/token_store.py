"""Short-lived single-use token storage."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Generic, TypeVar

from role_gate.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class _Entry(Generic[T]):
    value: T
    expires_at: float


class TokenStore(Generic[T]):
    """Keyed in-process store of expiring, single-use values.

    ``take`` reads and deletes in one critical section so a token can be
    redeemed at most once, even under concurrent callers. Expired entries
    are dropped lazily whenever they are looked up; ``purge_expired`` is
    called periodically by the sweeper to reclaim entries nobody reads.
    """

    def __init__(self, name: str, *, clock: Clock = system_clock) -> None:
        self.name = name
        self._clock = clock
        self._entries: dict[str, _Entry[T]] = {}
        self._lock = Lock()

    def put(self, key: str, value: T, ttl_seconds: float) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``, replacing any prior entry."""
        expires_at = self._clock() + ttl_seconds
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=expires_at)

    def take(self, key: str) -> T | None:
        """Remove and return the live value for ``key``.

        Returns None when the key is unknown or the entry has expired; an
        expired entry is removed as well.
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.pop(key, None)
        if entry is None or now > entry.expires_at:
            return None
        return entry.value

    def peek_valid(self, key: str) -> bool:
        """Return True if ``key`` holds a live entry, without consuming it."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if now > entry.expires_at:
                del self._entries[key]
                return False
            return True

    def purge_expired(self) -> int:
        """Remove all expired entries and return how many were dropped."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if now > entry.expires_at]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Purged %d expired entries from %s store", len(expired), self.name)
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
