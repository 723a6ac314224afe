"""
Blacklist document service.

Owns the local document: stores local edits, and runs sync attempts whose
outcome is persisted as a SyncResult and announced on the Notifier.
"""

import logging
from typing import Optional

from ..exceptions import BlacklistSyncException, NotConnectedError
from ..locking import Mutex
from ..models import (
    BlacklistDocument,
    SyncInterval,
    SyncResult,
    parse_iso_string,
    to_iso_string,
    utcnow,
)
from ..storage import LocalStorage
from .notifications import Notifier, SyncEvent
from .orchestrator import CloudSyncOrchestrator

logger = logging.getLogger(__name__)


def error_message(error: Exception) -> str:
    """Message shown in the sync status for a failed attempt."""
    if isinstance(error, BlacklistSyncException):
        return error.user_message
    return str(error) or "Unknown error"


class BlacklistService:
    """Local blacklist edits and sync attempts, serialized by one mutex."""

    def __init__(
        self,
        storage: LocalStorage,
        orchestrator: CloudSyncOrchestrator,
        notifier: Notifier,
        mutex: Optional[Mutex] = None,
        clock=utcnow,
    ):
        self.storage = storage
        self.orchestrator = orchestrator
        self.notifier = notifier
        self.mutex = mutex or Mutex("blacklist")
        self._clock = clock

    async def get(self) -> BlacklistDocument:
        items = await self.storage.load(["blacklist", "timestamp"])
        return BlacklistDocument.from_dict(items)

    async def set(self, blacklist: str) -> None:
        """Store a local edit stamped with the current time."""
        async def _set() -> None:
            items = await self.storage.load(["timestamp"])
            # Local timestamps never go backwards
            timestamp = max(self._clock(), parse_iso_string(items["timestamp"]))
            await self.storage.store({"blacklist": blacklist, "timestamp": to_iso_string(timestamp)})

        await self.mutex.lock(_set)

    async def sync(self) -> Optional[SyncInterval]:
        """
        Run one sync attempt.

        Never raises for sync failures; they are stored as an error result.

        Returns:
            Interval until the next periodic sync, or None when no cloud
            is connected
        """
        return await self.mutex.lock(self._sync)

    async def _sync(self) -> Optional[SyncInterval]:
        items = await self.storage.load(["blacklist", "timestamp", "cloud_storage_id", "sync_interval"])
        if items["cloud_storage_id"] is None:
            return None

        self.notifier.post(SyncEvent.SYNC_STARTED)
        interval: Optional[SyncInterval] = SyncInterval(items["sync_interval"])
        try:
            synced = await self.orchestrator.sync_file(items["blacklist"], parse_iso_string(items["timestamp"]))
            result = SyncResult.success(self._clock())
            if synced is not None:
                await self.storage.store({
                    "blacklist": synced.content,
                    "timestamp": to_iso_string(synced.modified_time),
                    "sync_result": result.to_dict(),
                })
            else:
                await self.storage.store({"sync_result": result.to_dict()})
            logger.info("Blacklist sync succeeded")
        except Exception as e:
            result = SyncResult.error(error_message(e))
            await self.storage.store({"sync_result": result.to_dict()})
            if isinstance(e, NotConnectedError):
                # Nothing left to sync with; no periodic sync follows
                logger.info("Cloud disconnected before the sync could run")
                interval = None
            elif isinstance(e, BlacklistSyncException):
                logger.error(f"Blacklist sync failed: {e.to_log_string()}")
            else:
                logger.error(f"Blacklist sync failed: {e}", exc_info=True)

        self.notifier.post(SyncEvent.SYNC_FINISHED, result)
        return interval

    async def get_sync_result(self) -> Optional[SyncResult]:
        items = await self.storage.load(["sync_result"])
        return SyncResult.from_dict(items["sync_result"]) if items["sync_result"] else None

    async def set_sync_interval(self, interval: SyncInterval) -> None:
        await self.storage.store({"sync_interval": SyncInterval(interval).value})
