"""
Configuration validation for blacklist sync.
"""

import re
from typing import List
from urllib.parse import urlparse

from ..exceptions import ConfigurationError, create_error_context
from .environment import EnvironmentLoader
from .settings import CloudCredentials, StorageBackend, SyncSettings


class ConfigValidator:
    """Validates configuration settings."""

    @staticmethod
    def validate_config(config: SyncSettings) -> List[str]:
        """Validate the entire configuration."""
        errors = []

        errors.extend(ConfigValidator._validate_storage(config))
        errors.extend(ConfigValidator._validate_redirect_uri(config.redirect_uri))

        if config.http_timeout is not None and config.http_timeout <= 0:
            errors.append("HTTP timeout must be positive")

        errors.extend(ConfigValidator._validate_credentials("Google Drive", config.google_drive))
        errors.extend(ConfigValidator._validate_credentials("Dropbox", config.dropbox))

        return errors

    @staticmethod
    def _validate_storage(config: SyncSettings) -> List[str]:
        errors = []
        if config.storage_backend == StorageBackend.SQLITE and not config.db_path:
            errors.append("SQLite storage requires a database path")
        return errors

    @staticmethod
    def _validate_redirect_uri(uri: str) -> List[str]:
        errors = []
        parsed = urlparse(uri)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append(f"Redirect URI is not an http(s) URL: {uri}")
        return errors

    @staticmethod
    def _validate_credentials(name: str, credentials: CloudCredentials) -> List[str]:
        """Partially configured credentials are an error; fully absent ones are not."""
        errors = []
        if bool(credentials.client_id) != bool(credentials.client_secret):
            errors.append(f"{name} credentials need both a client id and a client secret")
        if credentials.client_id and not re.match(r'^[A-Za-z0-9._-]+$', credentials.client_id):
            errors.append(f"{name} client id contains invalid characters")
        return errors


class ConfigManager:
    """Loads and validates configuration."""

    def __init__(self, dotenv_path: str = None):
        self.dotenv_path = dotenv_path
        self.config: SyncSettings = None

    def load_config(self) -> SyncSettings:
        """
        Load configuration from the environment and validate it.

        Raises:
            ConfigurationError: Any validation problem
        """
        config = EnvironmentLoader.load_config(self.dotenv_path)
        errors = ConfigValidator.validate_config(config)
        if errors:
            raise ConfigurationError(
                message=f"Invalid configuration: {'; '.join(errors)}",
                context=create_error_context(operation="load_config"),
                user_message="Configuration is invalid. Check the environment variables.",
            )
        self.config = config
        return config
