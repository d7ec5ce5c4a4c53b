"""Group CRUD endpoints."""

import uuid as uuid_pkg
from typing import Any

from fastapi import BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.api.deps import get_current_user, get_db_with_rls
from codepocket.api.v1.groups.helpers import (
    group_to_dict,
    require_group_member,
    require_group_owner,
    user_summary_to_dict,
)
from codepocket.core.cache import cache_key, group_cache
from codepocket.core.exceptions import ValidationError
from codepocket.domain import group_member_ops, group_ops
from codepocket.models.group import GroupCreate, GroupUpdate
from codepocket.models.user import User
from codepocket.services.event_logger import event_logger


async def list_groups(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> list[dict[str, Any]]:
    """List groups the caller owns or belongs to."""

    async def load() -> list[dict[str, Any]]:
        rows = await group_ops.list_for_user(db, user.id)
        return [group_to_dict(g, user_id=user.id, member_count=count) for g, count in rows]

    return await group_cache.get_or_set(cache_key("groups", "user", user.id), load)


async def create_group(
    data: GroupCreate,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    try:
        group = await group_ops.create_group(db, user.id, data)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    background_tasks.add_task(event_logger.group_created, user.id, group.id, group.name)
    return group_to_dict(group, user_id=user.id, member_count=1)


async def get_group(
    group_id: uuid_pkg.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    """Get a group with its members. Requires membership."""
    group = await require_group_member(db, group_id, user)
    members = await group_member_ops.list_members(db, group_id)

    return {
        **group_to_dict(group, user_id=user.id, member_count=len(members)),
        "members": [
            {
                "user_id": str(m.user_id),
                "joined_at": m.joined_at.isoformat(),
                "is_owner": m.user_id == group.owner_id,
                "user": user_summary_to_dict(summary),
            }
            for m, summary in members
        ],
    }


async def update_group(
    group_id: uuid_pkg.UUID,
    data: GroupUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    group = await require_group_owner(db, group_id, user)
    try:
        group = await group_ops.update_group(db, group, data, actor_id=user.id)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    return group_to_dict(group, user_id=user.id)


async def delete_group(
    group_id: uuid_pkg.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> None:
    group = await require_group_owner(db, group_id, user)
    await group_ops.delete_group(db, group)
