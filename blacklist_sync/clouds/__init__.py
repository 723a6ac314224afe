"""
Cloud storage providers.

Each provider implements the CloudStorage contract; the sync engine only
talks to that contract, so new backends plug in without engine changes.
"""

from typing import Dict, Optional

from ..config.settings import SyncSettings
from .base import CloudId, CloudStorage, RemoteFile, TimePrecision
from .dropbox import DropboxStorage
from .google_drive import GoogleDriveStorage
from .http import CloudHTTPClient
from .oauth import AuthFlowLauncher, ConsoleAuthFlow, OAuthClient, OAuthCloudStorage, OAuthEndpoints


def create_cloud_storages(
    settings: SyncSettings,
    launcher: AuthFlowLauncher,
    http: Optional[CloudHTTPClient] = None,
) -> Dict[CloudId, CloudStorage]:
    """Build the registry of supported clouds.

    Args:
        settings: Configuration with app credentials and redirect URI
        launcher: Interactive OAuth launcher shared by all providers
        http: Optional shared HTTP client

    Returns:
        Providers keyed by cloud id
    """
    http = http or CloudHTTPClient(timeout=settings.http_timeout)
    return {
        CloudId.GOOGLE_DRIVE: GoogleDriveStorage(settings.google_drive, settings.redirect_uri, launcher, http),
        CloudId.DROPBOX: DropboxStorage(settings.dropbox, settings.redirect_uri, launcher, http),
    }


__all__ = [
    "CloudId",
    "CloudStorage",
    "RemoteFile",
    "TimePrecision",
    "DropboxStorage",
    "GoogleDriveStorage",
    "CloudHTTPClient",
    "AuthFlowLauncher",
    "ConsoleAuthFlow",
    "OAuthClient",
    "OAuthCloudStorage",
    "OAuthEndpoints",
    "create_cloud_storages",
]
