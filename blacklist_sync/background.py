"""
Host-facing entry points of the sync engine.

These mirror the messages a host application sends: set the blacklist,
request a sync, connect, disconnect. Syncs triggered as a side effect are
launched in the background and never awaited by the triggering call; their
outcome is only observable through the Notifier.
"""

import asyncio
import logging
from typing import Any, Coroutine, Optional, Set, Union

from .clouds import CloudId
from .scheduling import SyncScheduler
from .sync import BlacklistService, ConnectionManager

logger = logging.getLogger(__name__)


class BackgroundService:
    """Wires blacklist, connection and scheduling together."""

    def __init__(
        self,
        blacklist: BlacklistService,
        connections: ConnectionManager,
        scheduler: Optional[SyncScheduler] = None,
    ):
        self.blacklist = blacklist
        self.connections = connections
        self.scheduler = scheduler or SyncScheduler()
        self._tasks: Set[asyncio.Task] = set()

    async def start(self) -> None:
        """Start scheduling and run one sync right away."""
        self.scheduler.start()
        self._spawn(self.sync_blacklist())

    async def stop(self) -> None:
        """Stop scheduling and wait for background syncs to finish."""
        self.scheduler.stop()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def set_blacklist(self, blacklist: str) -> None:
        await self.blacklist.set(blacklist)
        self._spawn(self.sync_blacklist())

    async def sync_blacklist(self) -> None:
        """Sync now and book the next periodic sync."""
        interval = await self.blacklist.sync()
        if interval is not None and self.scheduler.running:
            self.scheduler.schedule_next(interval.value, self.sync_blacklist)

    async def connect_to_cloud(self, cloud_id: Union[CloudId, str]) -> None:
        """
        Connect, then sync in the background.

        Connection errors propagate; no sync is started when connecting fails.
        """
        await self.connections.connect(cloud_id)
        self._spawn(self.sync_blacklist())

    async def disconnect_from_cloud(self) -> None:
        """Disconnect and drop the pending periodic sync. Does not sync."""
        await self.connections.disconnect()
        self.scheduler.cancel()

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        """Launch without awaiting; keep a reference until it finishes."""
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Background sync failed: {task.exception()}")
