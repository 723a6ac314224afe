"""
Google Drive cloud storage.

The blacklist is kept as a single file in the app data folder, which is
private to this application and hidden from the user's Drive.

https://developers.google.com/identity/protocols/oauth2/web-server
https://developers.google.com/drive/api/v3/appdata
"""

import json
import logging
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from ..config.settings import CloudCredentials
from ..models import to_iso_string
from .base import CloudId, RemoteFile, TimePrecision
from .http import CloudHTTPClient, validate
from .oauth import AuthFlowLauncher, OAuthClient, OAuthCloudStorage, OAuthEndpoints

logger = logging.getLogger(__name__)

FILENAME = "blacklist.txt"
MULTIPART_RELATED_BOUNDARY = "----------BlacklistSyncMultipartRelatedBoundaryJMPRhmg2VV4JBuua"


class DriveFile(BaseModel):
    id: str
    modifiedTime: datetime


class DriveFileList(BaseModel):
    files: List[DriveFile]


def multipart_related(metadata: dict, content: str) -> str:
    """Build a multipart/related body with JSON metadata and text media."""
    boundary = MULTIPART_RELATED_BOUNDARY
    return (
        f"--{boundary}\r\n"
        "Content-Type: application/json; charset=UTF-8\r\n"
        "\r\n"
        f"{json.dumps(metadata)}\r\n"
        f"--{boundary}\r\n"
        "Content-Type: text/plain; charset=UTF-8\r\n"
        "\r\n"
        f"{content}\r\n"
        f"--{boundary}--"
    )


class GoogleDriveStorage(OAuthCloudStorage):
    """Google Drive provider using the Drive v3 REST API."""

    cloud_id = CloudId.GOOGLE_DRIVE
    name = "Google Drive"
    host_permissions = ["https://www.googleapis.com/*"]
    modified_time_precision = TimePrecision.MILLISECOND

    AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    REVOKE_URL = "https://oauth2.googleapis.com/revoke"
    FILES_URL = "https://www.googleapis.com/drive/v3/files"
    UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"
    SCOPE = "https://www.googleapis.com/auth/drive.appdata"

    def __init__(
        self,
        credentials: CloudCredentials,
        redirect_uri: str,
        launcher: AuthFlowLauncher,
        http: Optional[CloudHTTPClient] = None,
    ):
        http = http or CloudHTTPClient()
        endpoints = OAuthEndpoints(
            auth_url=self.AUTH_URL,
            token_url=self.TOKEN_URL,
            client_id=credentials.client_id,
            client_secret=credentials.client_secret,
            redirect_uri=redirect_uri,
            auth_params={
                "scope": self.SCOPE,
                "access_type": "offline",  # Get refresh token
                "prompt": "consent select_account",
            },
        )
        super().__init__(OAuthClient(endpoints, http, launcher), http)

    async def revoke_token(self, token: str) -> None:
        await self.http.request("POST", self.REVOKE_URL, data={"token": token})

    async def find_file(self, access_token: str) -> Optional[RemoteFile]:
        data = await self.http.request_json(
            "GET",
            self.FILES_URL,
            params={
                "fields": "files(id, modifiedTime)",
                "q": f"name = '{FILENAME}'",
                "spaces": "appDataFolder",
            },
            headers=self.bearer(access_token),
        )
        response = validate(DriveFileList, data)
        if not response.files:
            return None
        found = response.files[0]
        return RemoteFile(id=found.id, modified_time=found.modifiedTime)

    async def create_file(self, access_token: str, content: str, modified_time: datetime) -> None:
        body = multipart_related(
            {
                "modifiedTime": to_iso_string(modified_time),
                "name": FILENAME,
                "parents": ["appDataFolder"],
            },
            content,
        )
        await self.http.request(
            "POST",
            self.UPLOAD_URL,
            params={"uploadType": "multipart"},
            headers=self._multipart_headers(access_token),
            content=body.encode("utf-8"),
        )
        logger.info(f"Created {FILENAME} in Google Drive")

    async def read_file(self, access_token: str, file_id: str) -> str:
        return await self.http.request_text(
            "GET",
            f"{self.FILES_URL}/{file_id}",
            params={"alt": "media"},
            headers=self.bearer(access_token),
        )

    async def write_file(self, access_token: str, file_id: str, content: str, modified_time: datetime) -> None:
        body = multipart_related({"modifiedTime": to_iso_string(modified_time)}, content)
        await self.http.request(
            "PATCH",
            f"{self.UPLOAD_URL}/{file_id}",
            params={"uploadType": "multipart"},
            headers=self._multipart_headers(access_token),
            content=body.encode("utf-8"),
        )

    def _multipart_headers(self, access_token: str) -> dict:
        return {
            **self.bearer(access_token),
            "Content-Type": f"multipart/related; boundary={MULTIPART_RELATED_BOUNDARY}",
        }
