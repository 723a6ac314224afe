"""
Connection lifecycle: connecting to and disconnecting from a cloud.
"""

import logging
from typing import Mapping, Optional, Union

from ..clouds import CloudId, CloudStorage
from ..exceptions import (
    AlreadyConnectedError,
    NotConnectedError,
    UnsupportedCloudError,
    create_error_context,
)
from ..locking import Mutex
from ..models import CloudToken, utcnow
from ..storage import TokenStore

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Acquires and releases the OAuth grant of the single active connection.

    Both operations run inside the cloud mutex, which is shared with the sync
    orchestrator so that connect, disconnect and sync never overlap.
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

    def get_cloud(self, cloud_id: Union[CloudId, str]) -> CloudStorage:
        """Look up a registered provider.

        Raises:
            UnsupportedCloudError: No provider for this id
        """
        try:
            return self.clouds[CloudId(cloud_id)]
        except (ValueError, KeyError):
            raise UnsupportedCloudError(str(cloud_id))

    async def current(self) -> Optional[CloudId]:
        """The connected cloud, or None."""
        cloud_id = await self.token_store.load_cloud_id()
        return CloudId(cloud_id) if cloud_id is not None else None

    async def connect(self, cloud_id: Union[CloudId, str]) -> None:
        """
        Connect to a cloud.

        Authorization and token-exchange failures propagate to the caller;
        nothing is stored unless both succeed.

        Raises:
            UnsupportedCloudError: Unknown cloud id
            AlreadyConnectedError: A connection already exists
            AuthorizationError: The user did not grant access
            HTTPError: Token exchange failed
        """
        cloud = self.get_cloud(cloud_id)

        async def _connect() -> None:
            old_id = await self.token_store.load_cloud_id()
            if old_id is not None:
                raise AlreadyConnectedError(
                    old_id,
                    context=create_error_context(operation="connect", cloud_id=cloud.cloud_id.value),
                )

            logger.info(f"Connecting to {cloud.name}")
            code = await cloud.authorize()
            grant = await cloud.get_access_token(code)
            token = CloudToken.from_grant(grant, now=self._clock())
            await self.token_store.save_connection(cloud.cloud_id.value, token)
            logger.info(f"Connected to {cloud.name}")

        await self.mutex.lock(_connect)

    async def disconnect(self) -> None:
        """
        Disconnect from the current cloud.

        Token revocation is best-effort and its failure is discarded.

        Raises:
            NotConnectedError: No connection exists
        """
        async def _disconnect() -> None:
            cloud_id, token = await self.token_store.load()
            if cloud_id is None:
                raise NotConnectedError(context=create_error_context(operation="disconnect"))

            cloud = self.clouds.get(CloudId(cloud_id))
            if token is not None and cloud is not None:
                try:
                    await cloud.revoke_token(token.refresh_token)
                except Exception as e:
                    logger.debug(f"Ignoring token revocation failure: {e}")

            await self.token_store.clear_connection()
            logger.info(f"Disconnected from {cloud_id}")

        await self.mutex.lock(_disconnect)
