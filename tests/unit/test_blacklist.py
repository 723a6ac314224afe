"""
Tests for the blacklist service and its notifications.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from blacklist_sync.clouds import RemoteFile
from blacklist_sync.exceptions import HTTPError
from blacklist_sync.models import EPOCH, SyncInterval, SyncResultType, parse_iso_string
from blacklist_sync.sync import BlacklistService, Notifier, SyncEvent, error_message

from .fakes import NOW


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def events(notifier):
    received = []
    notifier.subscribe(SyncEvent.SYNC_STARTED, lambda payload: received.append((SyncEvent.SYNC_STARTED, payload)))
    notifier.subscribe(SyncEvent.SYNC_FINISHED, lambda payload: received.append((SyncEvent.SYNC_FINISHED, payload)))
    return received


@pytest.fixture
def service(storage, orchestrator, notifier):
    return BlacklistService(storage, orchestrator, notifier, clock=lambda: NOW)


class TestLocalDocument:
    """Tests for get and set."""

    @pytest.mark.asyncio
    async def test_defaults(self, service):
        document = await service.get()
        assert document.blacklist == ""
        assert document.timestamp == EPOCH

    @pytest.mark.asyncio
    async def test_set_stamps_current_time(self, service):
        await service.set("*://example.com/*")

        document = await service.get()
        assert document.blacklist == "*://example.com/*"
        assert document.timestamp == NOW

    @pytest.mark.asyncio
    async def test_timestamp_never_moves_backwards(self, service, storage):
        later = NOW + timedelta(days=1)
        await storage.store({"timestamp": "2024-01-11T12:00:00.000Z"})

        await service.set("a.com")

        document = await service.get()
        assert document.blacklist == "a.com"
        assert document.timestamp == later

    @pytest.mark.asyncio
    async def test_sync_interval_roundtrip(self, service, storage):
        await service.set_sync_interval(SyncInterval.ONE_HOUR)
        items = await storage.load(["sync_interval"])
        assert items["sync_interval"] == 60


class TestSync:
    """Tests for BlacklistService.sync."""

    @pytest.mark.asyncio
    async def test_not_connected_returns_none_without_events(self, service, events, fake_cloud):
        assert await service.sync() is None
        assert events == []
        assert fake_cloud.calls == []
        assert await service.get_sync_result() is None

    @pytest.mark.asyncio
    async def test_push_records_success(self, service, events, connect_fake, fake_cloud):
        await connect_fake()
        await service.set("a.com")
        fake_cloud.remote = RemoteFile(id="file-1", modified_time=datetime(2024, 1, 1, tzinfo=timezone.utc))

        interval = await service.sync()

        assert interval == SyncInterval.FIVE_MINUTES
        assert fake_cloud.written == [("file-1", "a.com", NOW)]
        result = await service.get_sync_result()
        assert result.type == SyncResultType.SUCCESS
        assert result.timestamp == NOW
        assert [event for event, _ in events] == [SyncEvent.SYNC_STARTED, SyncEvent.SYNC_FINISHED]
        assert events[1][1].is_success

    @pytest.mark.asyncio
    async def test_pull_replaces_local_document(self, service, connect_fake, fake_cloud, storage):
        await connect_fake()
        await storage.store({"blacklist": "a.com", "timestamp": "2024-01-01T00:00:00.000Z"})
        fake_cloud.remote = RemoteFile(id="file-1", modified_time=parse_iso_string("2024-01-02T03:04:05.678Z"))
        fake_cloud.remote_content = "b.com"

        await service.sync()

        items = await storage.load(["blacklist", "timestamp", "sync_result"])
        assert items["blacklist"] == "b.com"
        assert items["timestamp"] == "2024-01-02T03:04:05.678Z"
        assert items["sync_result"]["type"] == "success"

    @pytest.mark.asyncio
    async def test_failure_records_error_and_notifies(self, service, events, connect_fake, fake_cloud):
        await connect_fake()
        fake_cloud.fail("find_file", HTTPError(500, "Internal Server Error"))

        interval = await service.sync()

        assert interval == SyncInterval.FIVE_MINUTES
        result = await service.get_sync_result()
        assert result.type == SyncResultType.ERROR
        assert result.message == "500 Internal Server Error"
        assert events[-1] == (SyncEvent.SYNC_FINISHED, result)

    @pytest.mark.asyncio
    async def test_dead_token_reports_unauthorized(self, service, connect_fake, fake_cloud):
        await connect_fake(expires_at=NOW - timedelta(seconds=1))
        fake_cloud.fail("refresh_access_token", HTTPError(400, "Bad Request"))

        await service.sync()

        result = await service.get_sync_result()
        assert result.message == "Unauthorized. Please turn sync off and on again."

    @pytest.mark.asyncio
    async def test_disconnect_ahead_of_sync_is_not_a_success(self, service, events, connections, connect_fake, fake_cloud):
        await connect_fake()
        released = fake_cloud.hold("revoke_token")
        disconnecting = asyncio.create_task(connections.disconnect())
        for _ in range(10):
            await asyncio.sleep(0)

        # Sees the connection, then queues behind the disconnect
        syncing = asyncio.create_task(service.sync())
        for _ in range(10):
            await asyncio.sleep(0)
        assert events == [(SyncEvent.SYNC_STARTED, None)]

        released.set()
        await disconnecting
        interval = await syncing

        assert interval is None
        assert fake_cloud.calls == ["revoke_token"]
        result = await service.get_sync_result()
        assert result.type == SyncResultType.ERROR
        assert result.message == "Not connected"
        assert events[-1] == (SyncEvent.SYNC_FINISHED, result)

    @pytest.mark.asyncio
    async def test_uses_configured_interval(self, service, connect_fake, fake_cloud):
        await connect_fake()
        fake_cloud.remote = RemoteFile(id="file-1", modified_time=EPOCH)
        await service.set_sync_interval(SyncInterval.TWO_HOURS)

        assert await service.sync() == SyncInterval.TWO_HOURS


class TestNotifier:
    """Tests for Notifier delivery."""

    def test_listener_error_is_contained(self, notifier):
        received = []

        def broken(payload):
            raise RuntimeError("listener failure")

        notifier.subscribe(SyncEvent.SYNC_STARTED, broken)
        notifier.subscribe(SyncEvent.SYNC_STARTED, received.append)

        notifier.post(SyncEvent.SYNC_STARTED, "payload")

        assert received == ["payload"]

    def test_unsubscribe(self, notifier):
        received = []
        notifier.subscribe(SyncEvent.SYNC_FINISHED, received.append)
        notifier.unsubscribe(SyncEvent.SYNC_FINISHED, received.append)

        notifier.post(SyncEvent.SYNC_FINISHED, None)

        assert received == []

    @pytest.mark.asyncio
    async def test_async_listener_is_not_awaited_by_post(self, notifier):
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow(payload):
            started.set()
            await release.wait()

        notifier.subscribe(SyncEvent.SYNC_STARTED, slow)
        notifier.post(SyncEvent.SYNC_STARTED)

        await asyncio.wait_for(started.wait(), timeout=1)
        release.set()
        await asyncio.sleep(0)


def test_error_message_fallbacks():
    assert error_message(HTTPError(404, "Not Found")) == "404 Not Found"
    assert error_message(RuntimeError("plain")) == "plain"
    assert error_message(RuntimeError()) == "Unknown error"
