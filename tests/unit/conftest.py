"""
Shared fixtures for the unit tests.
"""

from datetime import datetime, timedelta

import pytest
from cryptography.fernet import Fernet

from blacklist_sync.clouds import CloudId
from blacklist_sync.locking import Mutex
from blacklist_sync.models import CloudToken
from blacklist_sync.storage import MemoryStorage, TokenStore
from blacklist_sync.sync import CloudSyncOrchestrator, ConnectionManager

from .fakes import NOW, FakeCloud


@pytest.fixture
def fake_cloud():
    return FakeCloud()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def token_store(storage):
    return TokenStore(storage, Fernet(Fernet.generate_key()))


@pytest.fixture
def clouds(fake_cloud):
    return {CloudId.GOOGLE_DRIVE: fake_cloud}


@pytest.fixture
def cloud_mutex():
    return Mutex("cloud")


@pytest.fixture
def orchestrator(token_store, clouds, cloud_mutex):
    return CloudSyncOrchestrator(token_store, clouds, cloud_mutex, clock=lambda: NOW)


@pytest.fixture
def connections(token_store, clouds, cloud_mutex):
    return ConnectionManager(token_store, clouds, cloud_mutex, clock=lambda: NOW)


@pytest.fixture
def connect_fake(token_store):
    """Store a connection to the fake cloud directly."""
    async def _connect(expires_at: datetime = NOW + timedelta(hours=1)) -> CloudToken:
        token = CloudToken(access_token="access-0", refresh_token="refresh", expires_at=expires_at)
        await token_store.save_connection(CloudId.GOOGLE_DRIVE.value, token)
        return token
    return _connect
