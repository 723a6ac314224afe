"""
Environment variable handling for blacklist sync configuration.
"""

import os
from typing import Optional

from dotenv import load_dotenv

from .settings import CloudCredentials, LogLevel, StorageBackend, SyncSettings


class EnvironmentLoader:
    """Loads configuration from environment variables."""

    @staticmethod
    def load_config(dotenv_path: Optional[str] = None) -> SyncSettings:
        """Load configuration from environment variables."""
        # Values from .env override the shell environment
        load_dotenv(dotenv_path, override=True)

        storage_backend = StorageBackend.SQLITE
        try:
            storage_backend = StorageBackend(os.getenv('BLACKLIST_SYNC_STORAGE', 'sqlite').lower())
        except ValueError:
            pass  # Use default

        log_level = LogLevel.INFO
        try:
            log_level = LogLevel(os.getenv('LOG_LEVEL', 'INFO').upper())
        except ValueError:
            pass  # Use default

        return SyncSettings(
            storage_backend=storage_backend,
            db_path=os.getenv('BLACKLIST_SYNC_DB_PATH', 'data/blacklist_sync.db'),
            token_encryption_key=os.getenv('BLACKLIST_SYNC_TOKEN_KEY') or None,
            redirect_uri=os.getenv(
                'BLACKLIST_SYNC_REDIRECT_URI',
                'http://127.0.0.1:8765/oauth/callback'
            ),
            http_timeout=EnvironmentLoader._parse_float(os.getenv('BLACKLIST_SYNC_HTTP_TIMEOUT')),
            log_level=log_level,
            log_file=os.getenv('BLACKLIST_SYNC_LOG_FILE', 'data/blacklist_sync.log') or None,
            google_drive=CloudCredentials(
                client_id=os.getenv('GOOGLE_DRIVE_CLIENT_ID', ''),
                client_secret=os.getenv('GOOGLE_DRIVE_CLIENT_SECRET', ''),
            ),
            dropbox=CloudCredentials(
                client_id=os.getenv('DROPBOX_APP_KEY', ''),
                client_secret=os.getenv('DROPBOX_APP_SECRET', ''),
            ),
        )

    @staticmethod
    def _parse_float(value: Optional[str]) -> Optional[float]:
        """Parse an optional float; blank means unset."""
        if value is None or not value.strip():
            return None
        return float(value)
