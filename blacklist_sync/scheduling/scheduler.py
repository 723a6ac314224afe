"""
Periodic sync scheduling using APScheduler.

A single one-shot job is kept for the next sync. Each completed sync books
the following run after the configured interval.
"""

import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from ..models import utcnow

logger = logging.getLogger(__name__)

SYNC_BLACKLIST_JOB_ID = "sync-blacklist"


class SyncScheduler:
    """Books the next periodic sync."""

    def __init__(self, timezone: str = "UTC"):
        """Initialize sync scheduler.

        Args:
            timezone: Timezone for scheduling (default: UTC)
        """
        self.scheduler = AsyncIOScheduler(timezone=timezone)
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start the scheduler; must be called with a running event loop."""
        if self._running:
            logger.warning("Sync scheduler already running")
            return
        self.scheduler.start()
        self._running = True
        logger.info("Sync scheduler started")

    def stop(self, wait: bool = False) -> None:
        if not self._running:
            return
        self.scheduler.shutdown(wait=wait)
        self._running = False
        logger.info("Sync scheduler stopped")

    def schedule_next(self, delay_minutes: int, job: Callable[[], Awaitable[None]]) -> datetime:
        """
        Replace the pending sync with one ``delay_minutes`` from now.

        Args:
            delay_minutes: Minutes until the run
            job: Coroutine function to run

        Returns:
            Time of the next run
        """
        run_date = utcnow() + timedelta(minutes=int(delay_minutes))
        self.scheduler.add_job(
            job,
            trigger=DateTrigger(run_date=run_date),
            id=SYNC_BLACKLIST_JOB_ID,
            replace_existing=True,
            misfire_grace_time=None,
        )
        logger.debug(f"Next blacklist sync at {run_date.isoformat()}")
        return run_date

    def cancel(self) -> None:
        """Drop the pending sync, if any."""
        try:
            self.scheduler.remove_job(SYNC_BLACKLIST_JOB_ID)
            logger.debug("Cancelled pending blacklist sync")
        except JobLookupError:
            pass

    def next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(SYNC_BLACKLIST_JOB_ID)
        return job.next_run_time if job else None
