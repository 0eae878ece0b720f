"""Connection state of the Discord collaborator."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from threading import Lock

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Lifecycle states of the collaborator connection."""

    CONNECTING = "connecting"  # Startup or reconnect in progress
    READY = "ready"  # Authenticated - workflow endpoints open
    DISCONNECTED = "disconnected"  # Lost or rejected - workflow endpoints blocked


ReadinessListener = Callable[[ConnectionState, ConnectionState], None]


class ReadinessTracker:
    """Explicit state machine for collaborator readiness.

    Transitions are driven by the collaborator itself (connect succeeded,
    credentials rejected, client closed). Listeners are notified with
    ``(previous, current)`` after every actual state change.
    """

    def __init__(self, initial: ConnectionState = ConnectionState.CONNECTING) -> None:
        self._state = initial
        self._reason: str | None = None
        self._listeners: list[ReadinessListener] = []
        self._lock = Lock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def reason(self) -> str | None:
        """Why the collaborator is disconnected, if known."""
        return self._reason

    @property
    def is_ready(self) -> bool:
        return self._state is ConnectionState.READY

    def add_listener(self, listener: ReadinessListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def mark_connecting(self) -> None:
        self._transition(ConnectionState.CONNECTING, None)

    def mark_ready(self) -> None:
        self._transition(ConnectionState.READY, None)

    def mark_disconnected(self, reason: str | None = None) -> None:
        self._transition(ConnectionState.DISCONNECTED, reason)

    def _transition(self, new_state: ConnectionState, reason: str | None) -> None:
        with self._lock:
            previous = self._state
            self._state = new_state
            self._reason = reason
            listeners = list(self._listeners)
        if previous is new_state:
            return
        logger.info("Collaborator state %s -> %s", previous.value, new_state.value)
        for listener in listeners:
            try:
                listener(previous, new_state)
            except Exception:
                logger.exception("Readiness listener failed")
