"""
Scheduling of periodic blacklist syncs.
"""

from .scheduler import SYNC_BLACKLIST_JOB_ID, SyncScheduler

__all__ = ["SYNC_BLACKLIST_JOB_ID", "SyncScheduler"]
