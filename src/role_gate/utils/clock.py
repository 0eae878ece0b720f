"""Time utilities shared by the in-memory stores."""

import time
from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], float]


def system_clock() -> float:
    """Return the current wall-clock time in seconds since the epoch."""
    return time.time()


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)
