"""
Test doubles shared by the unit tests.
"""

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional

from blacklist_sync.clouds import CloudId, CloudStorage, RemoteFile, TimePrecision
from blacklist_sync.exceptions import AuthorizationError
from blacklist_sync.models import AccessTokenGrant, RefreshedToken

NOW = datetime(2024, 1, 10, 12, 0, 0, tzinfo=timezone.utc)


class FakeCloud(CloudStorage):
    """In-memory provider that records every call."""

    cloud_id = CloudId.GOOGLE_DRIVE
    name = "Fake Cloud"
    modified_time_precision = TimePrecision.MILLISECOND

    def __init__(self):
        self.calls: List[str] = []
        self.remote: Optional[RemoteFile] = None
        self.remote_content = ""
        self.errors: Dict[str, List[Exception]] = {}
        self.authorization_code: Optional[str] = "auth-code"
        self.refresh_count = 0
        self.written = []
        self.created = []
        self.access_tokens_seen: List[str] = []
        self.gates: Dict[str, asyncio.Event] = {}

    def fail(self, method: str, *errors: Exception) -> None:
        """Raise these errors, in order, on the next calls to ``method``."""
        self.errors.setdefault(method, []).extend(errors)

    def _record(self, method: str) -> None:
        self.calls.append(method)
        pending = self.errors.get(method)
        if pending:
            raise pending.pop(0)

    def count(self, method: str) -> int:
        return self.calls.count(method)

    def hold(self, method: str) -> asyncio.Event:
        """Keep calls to ``method`` in flight until the returned event is set."""
        gate = self.gates[method] = asyncio.Event()
        return gate

    async def _wait(self, method: str) -> None:
        gate = self.gates.get(method)
        if gate is not None:
            await gate.wait()

    async def authorize(self) -> str:
        self._record("authorize")
        await self._wait("authorize")
        if self.authorization_code is None:
            raise AuthorizationError("access_denied")
        return self.authorization_code

    async def get_access_token(self, authorization_code: str) -> AccessTokenGrant:
        self._record("get_access_token")
        return AccessTokenGrant(access_token="access-0", expires_in=3600, refresh_token="refresh")

    async def refresh_access_token(self, refresh_token: str) -> RefreshedToken:
        self._record("refresh_access_token")
        self.refresh_count += 1
        return RefreshedToken(access_token=f"access-{self.refresh_count}", expires_in=3600)

    async def revoke_token(self, token: str) -> None:
        self._record("revoke_token")
        await self._wait("revoke_token")

    async def find_file(self, access_token: str) -> Optional[RemoteFile]:
        self.access_tokens_seen.append(access_token)
        self._record("find_file")
        return self.remote

    async def create_file(self, access_token: str, content: str, modified_time: datetime) -> None:
        self._record("create_file")
        self.created.append((content, modified_time))

    async def read_file(self, access_token: str, file_id: str) -> str:
        self._record("read_file")
        return self.remote_content

    async def write_file(self, access_token: str, file_id: str, content: str, modified_time: datetime) -> None:
        self._record("write_file")
        self.written.append((file_id, content, modified_time))
