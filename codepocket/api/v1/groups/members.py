"""Group member endpoints."""

import uuid as uuid_pkg
from typing import Any

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.api.deps import get_current_user, get_db_with_rls
from codepocket.api.v1.groups.helpers import require_group_member, user_summary_to_dict
from codepocket.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from codepocket.domain import group_member_ops
from codepocket.domain.group_member_operations import CannotRemoveOwnerError
from codepocket.models.user import User


async def list_members(
    group_id: uuid_pkg.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> list[dict[str, Any]]:
    """List members with email and profile. Requires membership."""
    group = await require_group_member(db, group_id, user)
    members = await group_member_ops.list_members(db, group_id)

    return [
        {
            "id": str(m.id),
            "user_id": str(m.user_id),
            "joined_at": m.joined_at.isoformat(),
            "is_owner": m.user_id == group.owner_id,
            "user": user_summary_to_dict(summary),
        }
        for m, summary in members
    ]


async def remove_member(
    group_id: uuid_pkg.UUID,
    user_id: uuid_pkg.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> None:
    """
    Remove a member from a group.

    The owner can remove anyone but themselves; any member can remove
    themselves (leave the group).
    """
    group = await require_group_member(db, group_id, user)

    if user.id != group.owner_id and user.id != user_id:
        raise ForbiddenError("Only the group owner can remove other members")

    try:
        removed = await group_member_ops.remove_member(db, group, user_id, actor_id=user.id)
    except CannotRemoveOwnerError as e:
        raise ValidationError(str(e)) from e

    if not removed:
        raise NotFoundError("Member")
