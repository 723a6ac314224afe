"""
One-way notification channel for sync progress.

Posting never waits for listeners and never raises; listener failures are
logged and dropped.
"""

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Set

logger = logging.getLogger(__name__)

Listener = Callable[[Any], Any]


class SyncEvent(str, Enum):
    """Events published during a sync attempt."""
    SYNC_STARTED = "sync-started"
    SYNC_FINISHED = "sync-finished"


class Notifier:
    """Fire-and-forget publisher of SyncEvents."""

    def __init__(self):
        self._listeners: Dict[SyncEvent, List[Listener]] = {}
        self._tasks: Set[asyncio.Task] = set()

    def subscribe(self, event: SyncEvent, listener: Listener) -> None:
        """Register a sync or async callable for an event."""
        self._listeners.setdefault(event, []).append(listener)

    def unsubscribe(self, event: SyncEvent, listener: Listener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def post(self, event: SyncEvent, payload: Any = None) -> None:
        """Deliver an event to every listener without waiting for them."""
        for listener in list(self._listeners.get(event, [])):
            try:
                outcome = listener(payload)
            except Exception as e:
                logger.error(f"Listener for {event.value} failed: {e}")
                continue

            if inspect.isawaitable(outcome):
                task = asyncio.ensure_future(outcome)
                self._tasks.add(task)
                task.add_done_callback(self._on_listener_done)

    def _on_listener_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Async listener failed: {task.exception()}")
