"""
Cloud storage provider interface.

Every backend implements the same capability set: the OAuth calls needed to
obtain and maintain a token, plus create/read/write on one named file.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import ClassVar, List, Optional

from ..models import AccessTokenGrant, RefreshedToken


class CloudId(str, Enum):
    """Supported cloud storage backends."""
    GOOGLE_DRIVE = "googleDrive"
    DROPBOX = "dropbox"


class TimePrecision(str, Enum):
    """Resolution of a provider's modification timestamps."""
    SECOND = "second"
    MILLISECOND = "millisecond"

    def truncate(self, value: datetime) -> datetime:
        """Drop everything finer than this precision."""
        if self is TimePrecision.SECOND:
            return value.replace(microsecond=0)
        return value.replace(microsecond=value.microsecond // 1000 * 1000)


@dataclass
class RemoteFile:
    """The synced file as reported by the provider."""
    id: str
    modified_time: datetime


class CloudStorage(ABC):
    """Abstract base class for cloud storage providers."""

    cloud_id: ClassVar[CloudId]
    name: ClassVar[str]
    host_permissions: ClassVar[List[str]] = []
    modified_time_precision: ClassVar[TimePrecision] = TimePrecision.MILLISECOND

    @abstractmethod
    async def authorize(self) -> str:
        """
        Run the interactive OAuth grant.

        Returns:
            Authorization code

        Raises:
            AuthorizationError: User denied or no code was returned
        """
        pass

    @abstractmethod
    async def get_access_token(self, authorization_code: str) -> AccessTokenGrant:
        """
        Exchange a one-time authorization code.

        Raises:
            HTTPError: Non-2xx response
        """
        pass

    @abstractmethod
    async def refresh_access_token(self, refresh_token: str) -> RefreshedToken:
        """
        Obtain a new access token.

        Raises:
            HTTPError: status 400 when the refresh token is invalid or revoked
        """
        pass

    @abstractmethod
    async def revoke_token(self, token: str) -> None:
        """Revoke a token. Callers ignore any failure."""
        pass

    @abstractmethod
    async def find_file(self, access_token: str) -> Optional[RemoteFile]:
        """
        Look up the synced file.

        Returns:
            The file, or None if it does not exist yet

        Raises:
            HTTPError: status 401 when the access token has expired
        """
        pass

    @abstractmethod
    async def create_file(self, access_token: str, content: str, modified_time: datetime) -> None:
        """Create the synced file with the given modification time."""
        pass

    @abstractmethod
    async def read_file(self, access_token: str, file_id: str) -> str:
        """Download the content of the synced file."""
        pass

    @abstractmethod
    async def write_file(self, access_token: str, file_id: str, content: str, modified_time: datetime) -> None:
        """Overwrite the synced file and set its modification time."""
        pass
