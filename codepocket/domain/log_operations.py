"""Domain operations for the event log."""

import uuid as uuid_pkg
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.models.log_entry import LogEntry


@dataclass
class LogAnalytics:
    total_events: int
    by_category: dict[str, int]
    recent_logs: list[LogEntry]


class LogOperations:
    """Append events and read them back for the admin panel."""

    async def create(
        self,
        db: AsyncSession,
        event_type: str,
        event_category: str,
        details: dict[str, Any] | None = None,
        user_id: uuid_pkg.UUID | None = None,
        ip_address: str = "unknown",
        user_agent: str = "unknown",
    ) -> LogEntry:
        entry = LogEntry(
            event_type=event_type,
            event_category=event_category,
            details=details or {},
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        db.add(entry)
        await db.flush()
        return entry

    async def list_recent(
        self,
        db: AsyncSession,
        category: str | None = None,
        event_type: str | None = None,
        limit: int = 100,
    ) -> list[LogEntry]:
        statement = select(LogEntry)
        if category:
            statement = statement.where(LogEntry.event_category == category)
        if event_type:
            statement = statement.where(LogEntry.event_type == event_type)
        statement = statement.order_by(LogEntry.created_at.desc()).limit(limit)  # type: ignore[attr-defined]
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def oldest_created_at(self, db: AsyncSession) -> datetime | None:
        result = await db.execute(select(func.min(LogEntry.created_at)))
        return result.scalar_one_or_none()

    async def analytics(self, db: AsyncSession, recent: int = 50) -> LogAnalytics:
        """Event totals per category plus the most recent entries."""
        result = await db.execute(
            select(LogEntry.event_category, func.count()).group_by(LogEntry.event_category)
        )
        by_category = {category: int(n) for category, n in result.all()}

        return LogAnalytics(
            total_events=sum(by_category.values()),
            by_category=by_category,
            recent_logs=await self.list_recent(db, limit=recent),
        )

    async def purge_older_than(self, db: AsyncSession, days: int) -> int:
        """Delete entries older than ``days``. Returns the number removed."""
        cutoff = datetime.now(UTC) - timedelta(days=days)
        result = await db.execute(delete(LogEntry).where(LogEntry.created_at < cutoff))  # type: ignore[arg-type]
        await db.flush()
        return result.rowcount or 0  # type: ignore[attr-defined]


log_ops = LogOperations()
