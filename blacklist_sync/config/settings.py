"""
Configuration settings for the blacklist sync engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StorageBackend(str, Enum):
    """Local storage backends."""
    MEMORY = "memory"
    SQLITE = "sqlite"


@dataclass
class CloudCredentials:
    """App identity registered with a cloud provider."""
    client_id: str = ""
    client_secret: str = ""

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass
class SyncSettings:
    """Top-level configuration."""
    storage_backend: StorageBackend = StorageBackend.SQLITE
    db_path: str = "data/blacklist_sync.db"
    token_encryption_key: Optional[str] = None
    redirect_uri: str = "http://127.0.0.1:8765/oauth/callback"
    http_timeout: Optional[float] = None
    log_level: LogLevel = LogLevel.INFO
    log_file: Optional[str] = "data/blacklist_sync.log"
    google_drive: CloudCredentials = field(default_factory=CloudCredentials)
    dropbox: CloudCredentials = field(default_factory=CloudCredentials)
