"""APScheduler configuration and scheduled job definitions.

This module configures the AsyncIOScheduler from APScheduler 3.x and defines
the visit log retention sweep: once a day at a fixed UTC time, plus one run
right after startup so a long-stopped deployment does not wait a day before
pruning.

The sweep uses the LogStore, which opens its own session per call, so the
job shares no session or lock with request handlers.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger

if TYPE_CHECKING:
    from visitlog.config.settings import Settings
    from visitlog.services.store.service import LogStore

logger = logging.getLogger(__name__)


class SweepStats:
    """Counters for retention sweeps, shared with the stats endpoint."""

    def __init__(self) -> None:
        self.runs: int = 0
        self.failures: int = 0
        self.deleted: int = 0
        self.last_run: datetime | None = None


async def retention_sweep_job(
    store: "LogStore",
    retention_days: int,
    stats: SweepStats | None = None,
) -> int:
    """Delete visit logs older than the retention horizon.

    Failures are logged and swallowed so the next scheduled run still happens.

    Args:
        store: Visit log store.
        retention_days: Maximum age of a record in days.
        stats: Optional counters to update.

    Returns:
        Number of deleted records (0 on failure).
    """
    if stats is not None:
        stats.runs += 1
        stats.last_run = datetime.now(timezone.utc)
    try:
        deleted: int = await store.delete_older_than(retention_days)
    except Exception as e:
        if stats is not None:
            stats.failures += 1
        logger.exception("Retention sweep failed: %s", e)
        return 0

    if stats is not None:
        stats.deleted += deleted
    logger.info("Completed retention sweep (retention=%d days, deleted=%d)", retention_days, deleted)
    return deleted


def create_scheduler(
    store: "LogStore",
    settings: "Settings",
    stats: SweepStats | None = None,
) -> AsyncIOScheduler:
    """Create and configure the APScheduler instance.

    Args:
        store: Visit log store the sweep prunes.
        settings: Application settings for job configuration.
        stats: Optional counters updated by each sweep.

    Returns:
        Configured AsyncIOScheduler (not yet started).
    """
    scheduler = AsyncIOScheduler(timezone=timezone.utc)

    if not settings.scheduler.enabled:
        logger.info("Scheduler disabled via settings")
        return scheduler

    job_args = [store, settings.retention.days, stats]

    # Daily retention sweep at configured time (default: 02:05 UTC)
    scheduler.add_job(
        retention_sweep_job,
        CronTrigger(
            hour=settings.scheduler.retention_hour,
            minute=settings.scheduler.retention_minute,
            timezone=timezone.utc,
        ),
        id="retention-sweep",
        name="Daily visit log retention sweep",
        args=job_args,
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    logger.info(
        "Scheduled retention sweep at %02d:%02d UTC (retention=%d days)",
        settings.scheduler.retention_hour,
        settings.scheduler.retention_minute,
        settings.retention.days,
    )

    if settings.retention.run_on_startup:
        scheduler.add_job(
            retention_sweep_job,
            DateTrigger(run_date=datetime.now(timezone.utc), timezone=timezone.utc),
            id="retention-startup-sweep",
            name="Startup visit log retention sweep",
            args=job_args,
            replace_existing=True,
            misfire_grace_time=None,
        )
        logger.info("Scheduled startup retention sweep")

    return scheduler
