"""
Tests for the cloud sync orchestrator.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from blacklist_sync.clouds import RemoteFile, TimePrecision
from blacklist_sync.exceptions import HTTPError, NotConnectedError, UnauthorizedError
from blacklist_sync.models import SyncedFile

from .fakes import NOW

T1 = datetime(2024, 1, 1, tzinfo=timezone.utc)
T2 = datetime(2024, 1, 2, tzinfo=timezone.utc)


class TestSyncDecisions:
    """Pull, push, create and no-op outcomes."""

    @pytest.mark.asyncio
    async def test_not_connected_raises(self, orchestrator, fake_cloud):
        with pytest.raises(NotConnectedError):
            await orchestrator.sync_file("a.com", T1)
        assert fake_cloud.calls == []

    @pytest.mark.asyncio
    async def test_connected_without_token_is_unauthorized(self, orchestrator, storage, fake_cloud):
        await storage.store({"cloud_storage_id": "googleDrive"})
        with pytest.raises(UnauthorizedError):
            await orchestrator.sync_file("a.com", T1)
        assert fake_cloud.calls == []

    @pytest.mark.asyncio
    async def test_first_sync_creates_remote_file(self, orchestrator, fake_cloud, connect_fake):
        await connect_fake()
        assert await orchestrator.sync_file("a.com", T1) is None
        assert fake_cloud.count("create_file") == 1
        assert fake_cloud.created == [("a.com", T1)]

    @pytest.mark.asyncio
    async def test_equal_timestamps_issue_no_write(self, orchestrator, fake_cloud, connect_fake):
        await connect_fake()
        fake_cloud.remote = RemoteFile(id="file-1", modified_time=T1)
        assert await orchestrator.sync_file("a.com", T1) is None
        assert fake_cloud.calls == ["find_file"]

    @pytest.mark.asyncio
    async def test_newer_remote_is_pulled(self, orchestrator, fake_cloud, connect_fake):
        await connect_fake()
        fake_cloud.remote = RemoteFile(id="file-1", modified_time=T2)
        fake_cloud.remote_content = "b.com"

        result = await orchestrator.sync_file("a.com", T1)

        assert result == SyncedFile(content="b.com", modified_time=T2)
        assert "write_file" not in fake_cloud.calls
        assert "create_file" not in fake_cloud.calls

    @pytest.mark.asyncio
    async def test_older_remote_is_overwritten(self, orchestrator, fake_cloud, connect_fake):
        await connect_fake()
        fake_cloud.remote = RemoteFile(id="file-1", modified_time=T1)

        assert await orchestrator.sync_file("a.com", T2) is None
        assert fake_cloud.written == [("file-1", "a.com", T2)]

    @pytest.mark.asyncio
    async def test_sub_second_jitter_ignored_at_second_precision(self, orchestrator, fake_cloud, connect_fake):
        await connect_fake()
        fake_cloud.modified_time_precision = TimePrecision.SECOND
        fake_cloud.remote = RemoteFile(id="file-1", modified_time=T1 + timedelta(milliseconds=900))

        assert await orchestrator.sync_file("a.com", T1 + timedelta(milliseconds=100)) is None
        assert fake_cloud.calls == ["find_file"]


class TestTokenRefresh:
    """Proactive and 401-triggered refresh."""

    @pytest.mark.asyncio
    async def test_expired_token_refreshed_before_find(self, orchestrator, fake_cloud, connect_fake, token_store):
        await connect_fake(expires_at=NOW - timedelta(seconds=1))
        fake_cloud.remote = RemoteFile(id="file-1", modified_time=T1)

        await orchestrator.sync_file("a.com", T1)

        assert fake_cloud.calls[:2] == ["refresh_access_token", "find_file"]
        assert fake_cloud.access_tokens_seen == ["access-1"]
        _, token = await token_store.load()
        assert token.access_token == "access-1"
        assert token.refresh_token == "refresh"
        assert token.expires_at == NOW + timedelta(seconds=3600)

    @pytest.mark.asyncio
    async def test_401_refreshes_once_and_retries_once(self, orchestrator, fake_cloud, connect_fake):
        await connect_fake()
        fake_cloud.remote = RemoteFile(id="file-1", modified_time=T1)
        fake_cloud.fail("write_file", HTTPError(401, "Unauthorized"))

        assert await orchestrator.sync_file("a.com", T2) is None

        assert fake_cloud.count("refresh_access_token") == 1
        assert fake_cloud.count("write_file") == 2

    @pytest.mark.asyncio
    async def test_retry_uses_refreshed_access_token(self, orchestrator, fake_cloud, connect_fake):
        await connect_fake()
        fake_cloud.fail("find_file", HTTPError(401, "Unauthorized"))

        await orchestrator.sync_file("a.com", T1)

        assert fake_cloud.access_tokens_seen == ["access-0", "access-1"]

    @pytest.mark.asyncio
    async def test_second_401_fails_without_further_retry(self, orchestrator, fake_cloud, connect_fake):
        await connect_fake()
        fake_cloud.fail("find_file", HTTPError(401, "Unauthorized"), HTTPError(401, "Unauthorized"))

        with pytest.raises(HTTPError) as exc_info:
            await orchestrator.sync_file("a.com", T1)

        assert exc_info.value.status == 401
        assert fake_cloud.count("find_file") == 2
        assert fake_cloud.count("refresh_access_token") == 1

    @pytest.mark.asyncio
    async def test_other_http_errors_propagate_without_refresh(self, orchestrator, fake_cloud, connect_fake):
        await connect_fake()
        fake_cloud.fail("find_file", HTTPError(500, "Server Error"))

        with pytest.raises(HTTPError) as exc_info:
            await orchestrator.sync_file("a.com", T1)

        assert exc_info.value.status == 500
        assert fake_cloud.count("refresh_access_token") == 0

    @pytest.mark.asyncio
    async def test_dead_refresh_token_clears_token(self, orchestrator, fake_cloud, connect_fake, token_store):
        await connect_fake(expires_at=NOW - timedelta(seconds=1))
        fake_cloud.fail("refresh_access_token", HTTPError(400, "Bad Request"))

        with pytest.raises(UnauthorizedError):
            await orchestrator.sync_file("a.com", T1)

        cloud_id, token = await token_store.load()
        assert cloud_id == "googleDrive"
        assert token is None

        # The next attempt fails before any network call
        fake_cloud.calls.clear()
        with pytest.raises(UnauthorizedError):
            await orchestrator.sync_file("a.com", T1)
        assert fake_cloud.calls == []

    @pytest.mark.asyncio
    async def test_refresh_failure_other_than_400_keeps_token(self, orchestrator, fake_cloud, connect_fake, token_store):
        await connect_fake(expires_at=NOW - timedelta(seconds=1))
        fake_cloud.fail("refresh_access_token", HTTPError(503, "Unavailable"))

        with pytest.raises(HTTPError):
            await orchestrator.sync_file("a.com", T1)

        _, token = await token_store.load()
        assert token is not None


async def settle():
    for _ in range(10):
        await asyncio.sleep(0)


class TestSharedCloudMutex:
    """Sync attempts wait for connect and disconnect to finish."""

    @pytest.mark.asyncio
    async def test_sync_waits_for_connect(self, orchestrator, connections, fake_cloud):
        released = fake_cloud.hold("authorize")
        connecting = asyncio.create_task(connections.connect("googleDrive"))
        await settle()

        syncing = asyncio.create_task(orchestrator.sync_file("a.com", T1))
        await settle()
        assert fake_cloud.calls == ["authorize"]
        assert not syncing.done()

        released.set()
        await connecting
        assert await syncing is None

        assert fake_cloud.calls == ["authorize", "get_access_token", "find_file", "create_file"]
        assert fake_cloud.access_tokens_seen == ["access-0"]

    @pytest.mark.asyncio
    async def test_sync_queued_behind_disconnect_is_not_connected(self, orchestrator, connections, connect_fake, fake_cloud):
        await connect_fake()
        released = fake_cloud.hold("revoke_token")
        disconnecting = asyncio.create_task(connections.disconnect())
        await settle()

        syncing = asyncio.create_task(orchestrator.sync_file("a.com", T1))
        await settle()
        assert not syncing.done()

        released.set()
        await disconnecting
        with pytest.raises(NotConnectedError):
            await syncing

        assert fake_cloud.calls == ["revoke_token"]


@pytest.mark.asyncio
async def test_end_to_end_pull(orchestrator, fake_cloud, connect_fake):
    from blacklist_sync.models import parse_iso_string

    await connect_fake()
    fake_cloud.remote = RemoteFile(id="file-1", modified_time=parse_iso_string("2024-01-02T00:00:00Z"))
    fake_cloud.remote_content = "b.com"

    result = await orchestrator.sync_file("a.com", parse_iso_string("2024-01-01T00:00:00Z"))

    assert result.content == "b.com"
    assert result.modified_time == parse_iso_string("2024-01-02T00:00:00Z")
