"""Shared helpers for group endpoints."""

import uuid as uuid_pkg
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.core.exceptions import ForbiddenError, NotFoundError
from codepocket.domain import group_ops
from codepocket.domain.invitation_operations import (
    InvitationCooldownError,
    InvitationEmailMismatchError,
    InvitationError,
    InvitationForbiddenError,
)
from codepocket.domain.user_operations import UserSummary
from codepocket.models.group import Group, GroupInvitation
from codepocket.models.user import User


async def get_group_or_404(db: AsyncSession, group_id: uuid_pkg.UUID) -> Group:
    group = await group_ops.get(db, group_id)
    if not group:
        raise NotFoundError("Group")
    return group


async def require_group_member(
    db: AsyncSession,
    group_id: uuid_pkg.UUID,
    user: User,
) -> Group:
    """
    Check that the group exists and the user belongs to it.

    Returns the group if authorized, raises HTTPException otherwise.
    """
    group = await get_group_or_404(db, group_id)
    if group.owner_id != user.id and not await group_ops.is_member(db, group_id, user.id):
        raise ForbiddenError("You are not a member of this group")
    return group


async def require_group_owner(
    db: AsyncSession,
    group_id: uuid_pkg.UUID,
    user: User,
) -> Group:
    group = await get_group_or_404(db, group_id)
    if group.owner_id != user.id:
        raise ForbiddenError("Only the group owner can do this")
    return group


def group_to_dict(
    g: Group,
    user_id: uuid_pkg.UUID | None = None,
    member_count: int | None = None,
) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": str(g.id),
        "name": g.name,
        "description": g.description,
        "owner_id": str(g.owner_id),
        "created_at": g.created_at.isoformat(),
        "updated_at": g.updated_at.isoformat() if g.updated_at else None,
    }
    if user_id is not None:
        data["is_owner"] = g.owner_id == user_id
    if member_count is not None:
        data["member_count"] = member_count
    return data


def invitation_to_dict(inv: GroupInvitation, group: Group | None = None) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": str(inv.id),
        "group_id": str(inv.group_id),
        "inviter_id": str(inv.inviter_id),
        "email": inv.email,
        "invite_code": inv.invite_code,
        "status": inv.status,
        "created_at": inv.created_at.isoformat(),
        "expires_at": inv.expires_at.isoformat(),
    }
    if group is not None:
        data["group"] = {
            "id": str(group.id),
            "name": group.name,
            "description": group.description,
        }
    return data


def user_summary_to_dict(summary: UserSummary | None) -> dict[str, Any] | None:
    return summary.as_dict() if summary else None


_INVITATION_ERROR_STATUS: dict[type[InvitationError], int] = {
    InvitationEmailMismatchError: status.HTTP_403_FORBIDDEN,
    InvitationForbiddenError: status.HTTP_403_FORBIDDEN,
    InvitationCooldownError: status.HTTP_429_TOO_MANY_REQUESTS,
}


def invitation_http_error(error: InvitationError) -> HTTPException:
    """Map a domain invitation error to its HTTP response (400 unless listed)."""
    status_code = _INVITATION_ERROR_STATUS.get(type(error), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=status_code, detail=str(error))
