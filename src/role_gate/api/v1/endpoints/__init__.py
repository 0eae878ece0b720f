"""API endpoint modules for version 1."""

from .system import router as system_router
from .verification import router as verification_router

__all__ = [
    "system_router",
    "verification_router",
]
