"""
Dropbox cloud storage.

https://www.dropbox.com/developers/documentation/http/documentation
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from ..config.settings import CloudCredentials
from ..exceptions import BadResponseError, create_error_context
from .base import CloudId, RemoteFile, TimePrecision
from .http import CloudHTTPClient, parse_json, raise_for_status, validate
from .oauth import AuthFlowLauncher, OAuthClient, OAuthCloudStorage, OAuthEndpoints

logger = logging.getLogger(__name__)

FILEPATH = "/blacklist.txt"


def to_iso_string_second(value: datetime) -> str:
    """Dropbox only accepts second precision for client_modified."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class FileMetadata(BaseModel):
    id: str
    client_modified: datetime


class PathErrorTag(BaseModel):
    tag: str = Field(alias=".tag")


class MetadataLookupError(BaseModel):
    tag: str = Field(alias=".tag")
    path: Optional[PathErrorTag] = None


class MetadataErrorResponse(BaseModel):
    error: MetadataLookupError


class DropboxStorage(OAuthCloudStorage):
    """Dropbox provider using the v2 HTTP API."""

    cloud_id = CloudId.DROPBOX
    name = "Dropbox"
    host_permissions = []
    modified_time_precision = TimePrecision.SECOND

    AUTH_URL = "https://www.dropbox.com/oauth2/authorize"
    TOKEN_URL = "https://api.dropboxapi.com/oauth2/token"
    REVOKE_URL = "https://api.dropboxapi.com/2/auth/token/revoke"
    GET_METADATA_URL = "https://api.dropboxapi.com/2/files/get_metadata"
    UPLOAD_URL = "https://content.dropboxapi.com/2/files/upload"
    DOWNLOAD_URL = "https://content.dropboxapi.com/2/files/download"

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
                "token_access_type": "offline",
                "force_reapprove": "true",
            },
        )
        super().__init__(OAuthClient(endpoints, http, launcher), http)

    async def revoke_token(self, token: str) -> None:
        await self.http.request("POST", self.REVOKE_URL, headers=self.bearer(token))

    async def find_file(self, access_token: str) -> Optional[RemoteFile]:
        response = await self.http.send(
            "POST",
            self.GET_METADATA_URL,
            headers=self.bearer(access_token),
            json={
                "path": FILEPATH,
                "include_media_info": False,
                "include_deleted": False,
                "include_has_explicit_shared_members": False,
            },
        )
        if response.status_code == 409:
            error = validate(MetadataErrorResponse, parse_json(response)).error
            if error.tag == "path" and error.path is not None and error.path.tag == "not_found":
                return None
            detail = error.path.tag if error.path is not None else error.tag
            raise BadResponseError(
                f"get_metadata failed: {detail}",
                context=create_error_context(operation="find_file", cloud_id=self.cloud_id.value),
            )

        raise_for_status(response)
        metadata = validate(FileMetadata, parse_json(response))
        return RemoteFile(id=metadata.id, modified_time=metadata.client_modified)

    async def create_file(self, access_token: str, content: str, modified_time: datetime) -> None:
        await self._upload(access_token, FILEPATH, "add", content, modified_time)
        logger.info(f"Created {FILEPATH} in Dropbox")

    async def read_file(self, access_token: str, file_id: str) -> str:
        return await self.http.request_text(
            "POST",
            self.DOWNLOAD_URL,
            headers={
                **self.bearer(access_token),
                "Dropbox-API-Arg": json.dumps({"path": file_id}),
            },
        )

    async def write_file(self, access_token: str, file_id: str, content: str, modified_time: datetime) -> None:
        await self._upload(access_token, file_id, "overwrite", content, modified_time)

    async def _upload(self, access_token: str, path: str, mode: str, content: str, modified_time: datetime) -> None:
        arg = {
            "path": path,
            "mode": mode,
            "autorename": False,
            "client_modified": to_iso_string_second(modified_time),
            "mute": True,
            "strict_conflict": False,
        }
        await self.http.request(
            "POST",
            self.UPLOAD_URL,
            headers={
                **self.bearer(access_token),
                "Content-Type": "application/octet-stream",
                "Dropbox-API-Arg": json.dumps(arg),
            },
            content=content.encode("utf-8"),
        )
