"""
Blacklist synchronization engine.
"""

from .notifications import Notifier, SyncEvent
from .connection import ConnectionManager
from .orchestrator import CloudSyncOrchestrator
from .blacklist import BlacklistService, error_message

__all__ = [
    "Notifier",
    "SyncEvent",
    "ConnectionManager",
    "CloudSyncOrchestrator",
    "BlacklistService",
    "error_message",
]
