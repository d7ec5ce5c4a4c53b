"""Internal task scheduler using APScheduler.

Runs housekeeping inside the FastAPI process:
- shared TTL caches are swept for expired entries on an interval
- an optional daily maintenance job purges old logs and archived snippets

Maintenance takes a PostgreSQL advisory lock so that only one instance
does the work when several are running.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import text

from codepocket.config import settings
from codepocket.core.cache import cleanup_all_caches
from codepocket.core.database import direct_session_maker

logger = logging.getLogger(__name__)

# Advisory lock IDs (arbitrary unique integers, one per job)
MAINTENANCE_LOCK_ID = 720311


@dataclass
class MaintenanceReport:
    logs_deleted: int
    snippets_purged: int


@asynccontextmanager
async def advisory_lock(lock_id: int) -> AsyncIterator[bool]:
    """
    Acquire a PostgreSQL advisory lock for the duration of the context.

    Advisory locks are session-level, so this uses the direct (non-pooled)
    connection. pg_try_advisory_lock() returns immediately; if another
    process holds the lock we yield False and the caller skips.
    """
    async with direct_session_maker() as session:
        result = await session.execute(
            text("SELECT pg_try_advisory_lock(:lock_id)"),
            {"lock_id": lock_id},
        )
        acquired = result.scalar()

        if not acquired:
            yield False
            return

        try:
            yield True
        finally:
            await session.execute(
                text("SELECT pg_advisory_unlock(:lock_id)"),
                {"lock_id": lock_id},
            )
            await session.commit()


def run_cache_cleanup() -> int:
    """Evict expired entries from every shared cache."""
    removed = cleanup_all_caches()
    if removed:
        logger.info(f"[scheduler] Cache cleanup: evicted {removed} entries")
    return removed


async def purge_expired_data() -> MaintenanceReport:
    """Delete logs and archived snippets past their retention periods."""
    from codepocket.domain import log_ops, snippet_ops

    async with direct_session_maker() as db:
        logs_deleted = await log_ops.purge_older_than(db, settings.log_retention_days)
        snippets_purged = await snippet_ops.purge_archived(
            db, settings.deleted_snippet_retention_days
        )
        await db.commit()

    return MaintenanceReport(logs_deleted=logs_deleted, snippets_purged=snippets_purged)


async def run_maintenance() -> dict[str, Any] | None:
    """
    Execute the maintenance job with advisory lock protection.

    Returns the report dict if executed, None if skipped or failed.
    """
    async with advisory_lock(MAINTENANCE_LOCK_ID) as acquired:
        if not acquired:
            logger.info("[scheduler] Maintenance: skipped (another instance is running)")
            return None

        logger.info("[scheduler] Maintenance: starting")

        try:
            report = await purge_expired_data()
            logger.info(
                f"[scheduler] Maintenance: completed "
                f"({report.logs_deleted} logs deleted, "
                f"{report.snippets_purged} archived snippets purged)"
            )
            return asdict(report)

        except Exception as e:
            logger.exception(f"[scheduler] Maintenance: failed with error: {e}")
            return None


class Scheduler:
    """Manages the APScheduler instance and job registration."""

    def __init__(self) -> None:
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """Start the scheduler and register jobs."""
        if not settings.scheduler_enabled:
            logger.info("[scheduler] Disabled via SCHEDULER_ENABLED=false")
            return

        self._scheduler = AsyncIOScheduler()

        self._scheduler.add_job(
            run_cache_cleanup,
            trigger=IntervalTrigger(minutes=settings.cache_cleanup_interval_minutes),
            id="cache_cleanup",
            name="Cache Cleanup",
            replace_existing=True,
        )

        if settings.maintenance_enabled:
            self._scheduler.add_job(
                run_maintenance,
                trigger=CronTrigger(hour=settings.maintenance_hour, minute=0),
                id="maintenance",
                name="Retention Maintenance",
                replace_existing=True,
            )

        self._scheduler.start()
        maintenance = (
            f"maintenance at {settings.maintenance_hour:02d}:00 UTC"
            if settings.maintenance_enabled
            else "maintenance disabled"
        )
        logger.info(
            f"[scheduler] Started with cache cleanup every "
            f"{settings.cache_cleanup_interval_minutes} min, {maintenance}"
        )

    def stop(self) -> None:
        """Gracefully shut down the scheduler."""
        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("[scheduler] Stopped")


scheduler = Scheduler()
