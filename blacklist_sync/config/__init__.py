"""
Configuration for the blacklist sync engine.
"""

from .settings import CloudCredentials, LogLevel, StorageBackend, SyncSettings
from .environment import EnvironmentLoader
from .validation import ConfigManager, ConfigValidator

__all__ = [
    "CloudCredentials",
    "LogLevel",
    "StorageBackend",
    "SyncSettings",
    "EnvironmentLoader",
    "ConfigManager",
    "ConfigValidator",
]
