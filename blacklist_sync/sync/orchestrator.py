"""
Cloud file synchronization.

Reconciles the local blacklist with the remote file by modification time:
the newer side wins, equal timestamps mean nothing to do, and a missing
remote file is created from the local copy.
"""

import logging
from datetime import datetime
from typing import Awaitable, Callable, Mapping, Optional, TypeVar

from ..clouds import CloudId, CloudStorage
from ..exceptions import HTTPError, NotConnectedError, UnauthorizedError, create_error_context
from ..locking import Mutex
from ..models import CloudToken, SyncedFile, utcnow
from ..storage import TokenStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CloudSyncOrchestrator:
    """
    Runs one sync of the blacklist file against the connected cloud.

    Shares its mutex with the ConnectionManager. Token and connection are
    re-read from storage at the start of every attempt.
    """

    def __init__(
        self,
        token_store: TokenStore,
        clouds: Mapping[CloudId, CloudStorage],
        mutex: Optional[Mutex] = None,
        clock=utcnow,
    ):
        self.token_store = token_store
        self.clouds = clouds
        self.mutex = mutex or Mutex("cloud")
        self._clock = clock

    async def sync_file(self, content: str, modified_time: datetime) -> Optional[SyncedFile]:
        """
        Sync the local content with the remote file.

        Args:
            content: Local blacklist
            modified_time: Local modification time

        Returns:
            The remote content when it is newer and must replace the local
            document, otherwise None

        Raises:
            NotConnectedError: No cloud is connected
            UnauthorizedError: No usable token
            HTTPError: Provider failure other than a recoverable 401
            BadResponseError: Provider returned an invalid body
        """
        return await self.mutex.lock(lambda: self._sync_file(content, modified_time))

    async def _sync_file(self, content: str, modified_time: datetime) -> Optional[SyncedFile]:
        cloud_id, token = await self.token_store.load()
        if cloud_id is None:
            # Disconnected while this attempt was queued
            raise NotConnectedError(context=create_error_context(operation="sync_file"))

        cloud = self.clouds[CloudId(cloud_id)]
        context = create_error_context(operation="sync_file", cloud_id=cloud_id)
        if token is None:
            raise UnauthorizedError(context=context)

        session = _TokenSession(cloud, token, self.token_store, self._clock, context)
        if token.is_expired(self._clock()):
            logger.debug("Access token expired, refreshing before sync")
            await session.refresh()

        remote = await session.call(lambda access_token: cloud.find_file(access_token))
        precision = cloud.modified_time_precision

        if remote is None:
            await session.call(lambda access_token: cloud.create_file(access_token, content, modified_time))
            logger.info(f"Created remote blacklist on {cloud.name}")
            return None

        local_time = precision.truncate(modified_time)
        remote_time = precision.truncate(remote.modified_time)

        if local_time < remote_time:
            remote_content = await session.call(lambda access_token: cloud.read_file(access_token, remote.id))
            logger.info(f"Pulled newer blacklist from {cloud.name}")
            return SyncedFile(content=remote_content, modified_time=remote.modified_time)

        if local_time == remote_time:
            logger.debug("Blacklist already in sync")
            return None

        await session.call(
            lambda access_token: cloud.write_file(access_token, remote.id, content, modified_time)
        )
        logger.info(f"Pushed local blacklist to {cloud.name}")
        return None


class _TokenSession:
    """Token of one sync attempt, refreshed in place when it expires."""

    def __init__(self, cloud: CloudStorage, token: CloudToken, token_store: TokenStore, clock, context):
        self.cloud = cloud
        self.token = token
        self.token_store = token_store
        self.clock = clock
        self.context = context

    async def refresh(self) -> None:
        """
        Replace the access token.

        Raises:
            UnauthorizedError: The refresh token was rejected; the stored
                token is cleared
        """
        try:
            refreshed = await self.cloud.refresh_access_token(self.token.refresh_token)
        except HTTPError as e:
            if e.status == 400:
                logger.warning(f"Refresh token rejected by {self.cloud.name}, clearing token")
                await self.token_store.clear_token()
                raise UnauthorizedError(context=self.context) from e
            raise

        self.token = self.token.refreshed(refreshed, now=self.clock())
        await self.token_store.save_token(self.token)

    async def call(self, operation: Callable[[str], Awaitable[T]]) -> T:
        """Run a provider call; on 401 refresh once and retry once."""
        try:
            return await operation(self.token.access_token)
        except HTTPError as e:
            if e.status != 401:
                raise
            logger.debug("Provider returned 401, refreshing and retrying")
            await self.refresh()
            return await operation(self.token.access_token)
