"""Logging setup for the Role Gate service."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once for the process.

    Args:
        level: Log level name such as ``"INFO"`` or ``"DEBUG"``
    """
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("role_gate").setLevel(resolved)
    # httpx logs every request at INFO, which would include Discord API paths.
    logging.getLogger("httpx").setLevel(logging.WARNING)
