"""
tournamentflow/events.py - Synchronous publish/subscribe for lifecycle events.

Callbacks run in the publisher's call, in subscription order. A callback
that raises is logged and skipped; later callbacks still run and the
publishing operation is never aborted.
"""

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

TOURNAMENT_CREATED = "tournament_created"
PLAYER_REGISTERED = "player_registered"
TOURNAMENT_STARTED = "tournament_started"
MATCH_REPORTED = "match_reported"
TOURNAMENT_COMPLETED = "tournament_completed"

Callback = Callable[[Any], None]


class EventBus:
    """Per-event-name lists of subscriber callbacks."""

    def __init__(self):
        self._listeners: dict[str, list[Callback]] = {}

    def subscribe(self, event: str, callback: Callback) -> None:
        self._listeners.setdefault(event, []).append(callback)

    def unsubscribe(self, event: str, callback: Callback) -> None:
        """Remove the first registration of callback. Unknown callbacks are ignored."""
        callbacks = self._listeners.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def listeners(self, event: str) -> list[Callback]:
        return list(self._listeners.get(event, []))

    def publish(self, event: str, payload: Any) -> None:
        # Copy so a callback that unsubscribes doesn't skip its neighbour
        for callback in self.listeners(event):
            try:
                callback(payload)
            except Exception:
                logger.exception(f"Error in {event} listener {callback!r}")
