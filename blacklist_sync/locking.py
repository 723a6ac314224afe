"""
FIFO critical-section queue.

A Mutex runs the operations handed to ``lock`` one at a time, in the order
they were enqueued. Separate instances are independent of each other.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Mutex:
    """
    Serializes async operations per logical resource.

    An operation starts immediately when nothing is queued ahead of it,
    otherwise once every earlier operation has finished, successfully or not.
    An operation's error is raised only to the caller that enqueued it.
    """

    def __init__(self, name: str = "mutex"):
        self.name = name
        self._tail: Optional[asyncio.Future] = None
        self._pending = 0

    def locked(self) -> bool:
        """Check if an operation is running or queued."""
        return self._pending > 0

    @property
    def pending(self) -> int:
        """Number of operations running or waiting."""
        return self._pending

    async def lock(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``operation`` inside the critical section.

        Args:
            operation: Zero-argument coroutine function

        Returns:
            Whatever ``operation`` returns
        """
        loop = asyncio.get_running_loop()
        previous = self._tail
        released = loop.create_future()
        self._tail = released
        self._pending += 1

        if previous is not None and not previous.done():
            logger.debug(f"Mutex {self.name}: waiting behind {self._pending - 1} operation(s)")

        try:
            if previous is not None and not previous.done():
                # shield: cancelling this waiter must not resolve the predecessor
                await asyncio.shield(previous)
            return await operation()
        finally:
            self._pending -= 1
            if previous is None or previous.done():
                released.set_result(None)
            else:
                # Cancelled while queued; successors still wait for the predecessor
                previous.add_done_callback(lambda _: released.set_result(None))
