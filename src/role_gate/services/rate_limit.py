"""Fixed-window per-identity rate limiting."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock

from role_gate.core.settings import settings
from role_gate.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)


@dataclass
class RateLimitWindow:
    """Request counter for one identity within one window."""

    count: int
    reset_at: float


class RateLimiter:
    """Allow at most ``max_requests`` per identity per fixed window.

    The first request after ``reset_at`` opens a new window with a count of
    one. Inside a window, the ``max_requests``-th request is the last one
    allowed; rejected requests leave the counter untouched.
    """

    def __init__(
        self,
        max_requests: int | None = None,
        window_seconds: float | None = None,
        *,
        clock: Clock = system_clock,
    ) -> None:
        self.max_requests = (
            settings.rate_limit_max_requests if max_requests is None else max_requests
        )
        self.window_seconds = (
            settings.rate_limit_window_seconds if window_seconds is None else window_seconds
        )
        self._clock = clock
        self._windows: dict[str, RateLimitWindow] = {}
        self._lock = Lock()

    def allow(self, identity: str) -> bool:
        """Record a request for ``identity`` and return whether it may proceed."""
        now = self._clock()
        with self._lock:
            window = self._windows.get(identity)
            if window is None or now > window.reset_at:
                self._windows[identity] = RateLimitWindow(
                    count=1, reset_at=now + self.window_seconds
                )
                return True
            if window.count >= self.max_requests:
                logger.info("Rate limit reached for identity %s", identity)
                return False
            window.count += 1
            return True

    def retry_after(self, identity: str) -> float:
        """Return seconds until ``identity`` may try again (0.0 if not throttled)."""
        now = self._clock()
        with self._lock:
            window = self._windows.get(identity)
            if window is None or now > window.reset_at or window.count < self.max_requests:
                return 0.0
            return max(0.0, window.reset_at - now)

    def count(self, identity: str) -> int:
        """Return the number of requests counted in the active window."""
        now = self._clock()
        with self._lock:
            window = self._windows.get(identity)
            if window is None or now > window.reset_at:
                return 0
            return window.count

    def purge_expired(self) -> int:
        """Drop windows that have already reset."""
        now = self._clock()
        with self._lock:
            expired = [key for key, window in self._windows.items() if now > window.reset_at]
            for key in expired:
                del self._windows[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()
