"""Group activity feed endpoint."""

import uuid as uuid_pkg
from typing import Any

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.api.deps import get_current_user, get_db_with_rls
from codepocket.api.v1.groups.helpers import require_group_member, user_summary_to_dict
from codepocket.domain import activity_ops, user_ops
from codepocket.models.user import User


async def list_activities(
    group_id: uuid_pkg.UUID,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    activity_type: str | None = Query(default=None, alias="type"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    """
    Newest-first page of the group's activity feed.

    Actor and target users are returned with their email and profile.
    """
    await require_group_member(db, group_id, user)

    activities = await activity_ops.list_for_group(
        db, group_id, limit=limit, offset=offset, activity_type=activity_type
    )

    user_ids = {a.actor_id for a in activities if a.actor_id} | {
        a.target_user_id for a in activities if a.target_user_id
    }
    summaries = await user_ops.get_summaries(db, user_ids)

    items = [
        {
            "id": str(a.id),
            "group_id": str(a.group_id),
            "activity_type": a.activity_type,
            "actor_id": str(a.actor_id) if a.actor_id else None,
            "target_user_id": str(a.target_user_id) if a.target_user_id else None,
            "target_snippet_id": str(a.target_snippet_id) if a.target_snippet_id else None,
            "metadata": a.details or {},
            "created_at": a.created_at.isoformat(),
            "actor": user_summary_to_dict(summaries.get(a.actor_id)) if a.actor_id else None,
            "target_user": (
                user_summary_to_dict(summaries.get(a.target_user_id))
                if a.target_user_id
                else None
            ),
        }
        for a in activities
    ]

    return {"activities": items, "count": len(items), "limit": limit, "offset": offset}
