"""Group activity feed. Rows are inserted, never updated or deleted."""

import uuid as uuid_pkg
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.models.group import ActivityType, GroupActivity


class ActivityOperations:
    """Append to and read a group's activity feed."""

    async def record(
        self,
        db: AsyncSession,
        group_id: uuid_pkg.UUID,
        activity_type: ActivityType,
        actor_id: uuid_pkg.UUID | None,
        target_user_id: uuid_pkg.UUID | None = None,
        target_snippet_id: uuid_pkg.UUID | None = None,
        details: dict[str, Any] | None = None,
    ) -> GroupActivity:
        activity = GroupActivity(
            group_id=group_id,
            activity_type=activity_type.value,
            actor_id=actor_id,
            target_user_id=target_user_id,
            target_snippet_id=target_snippet_id,
            details=details or {},
        )
        db.add(activity)
        await db.flush()
        return activity

    async def list_for_group(
        self,
        db: AsyncSession,
        group_id: uuid_pkg.UUID,
        limit: int = 50,
        offset: int = 0,
        activity_type: str | None = None,
    ) -> list[GroupActivity]:
        """Newest-first page of a group's feed, optionally filtered by type."""
        statement = select(GroupActivity).where(GroupActivity.group_id == group_id)
        if activity_type:
            statement = statement.where(GroupActivity.activity_type == activity_type)
        statement = (
            statement.order_by(GroupActivity.created_at.desc())  # type: ignore[attr-defined]
            .offset(offset)
            .limit(limit)
        )
        result = await db.execute(statement)
        return list(result.scalars().all())


activity_ops = ActivityOperations()
