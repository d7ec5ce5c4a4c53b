"""Invitation endpoints for the invitee: inbox and share-link flows."""

import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.api.deps import get_current_user, get_db_with_rls
from codepocket.api.v1.groups.helpers import invitation_http_error, invitation_to_dict
from codepocket.core.cache import cache_key, invitation_cache
from codepocket.core.database import get_db
from codepocket.core.exceptions import NotFoundError, ValidationError
from codepocket.domain import group_ops, invitation_ops
from codepocket.domain.invitation_operations import InvitationError
from codepocket.models.group import GroupInvitation, InvitationResponse
from codepocket.models.user import User
from codepocket.services.event_logger import event_logger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invitations", tags=["invitations"])

ACTIONS = ("accept", "decline")


async def _get_by_code_or_404(db: AsyncSession, code: str) -> GroupInvitation:
    invitation = await invitation_ops.get_by_code(db, code)
    if not invitation:
        raise NotFoundError("Invitation")
    return invitation


async def _respond(
    db: AsyncSession,
    invitation: GroupInvitation,
    user: User,
    action: str,
    background_tasks: BackgroundTasks,
) -> dict[str, Any]:
    try:
        if action == "accept":
            invitation = await invitation_ops.accept(db, invitation, user)
            background_tasks.add_task(event_logger.group_joined, user.id, invitation.group_id)
        else:
            invitation = await invitation_ops.decline(db, invitation, user)
    except InvitationError as e:
        raise invitation_http_error(e) from e

    return {"success": True, "invitation": invitation_to_dict(invitation)}


@router.get("")
async def list_my_invitations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> list[dict[str, Any]]:
    """Pending, unexpired invitations addressed to the caller's email."""
    if not current_user.email:
        return []
    email = current_user.email.lower()

    async def load() -> list[dict[str, Any]]:
        rows = await invitation_ops.list_pending_for_email(db, email)
        return [invitation_to_dict(r.invitation, r.group) for r in rows]

    return await invitation_cache.get_or_set(cache_key("invitations", "email", email), load)


@router.post("")
async def respond_to_invitation(
    data: InvitationResponse,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    """Accept or decline an invitation from the inbox."""
    if not data.invitation_id or not data.action:
        raise ValidationError("invitation_id and action are required")
    if data.action not in ACTIONS:
        raise ValidationError('action must be either "accept" or "decline"')

    invitation = await invitation_ops.get_by_id(db, data.invitation_id)
    if not invitation:
        raise NotFoundError("Invitation")

    return await _respond(db, invitation, current_user, data.action, background_tasks)


@router.get("/code/{invite_code}")
async def preview_invitation(
    invite_code: str,
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """
    Public preview of a share link: which group, who it's for, and expiry.

    Answers 400 once the invitation has been used, cancelled or has expired.
    """
    invitation = await _get_by_code_or_404(db, invite_code)
    try:
        await invitation_ops.ensure_pending(db, invitation)
    except InvitationError as e:
        raise invitation_http_error(e) from e

    group = await group_ops.get(db, invitation.group_id)
    data = invitation_to_dict(invitation, group)
    # The caller already holds the code
    data.pop("invite_code", None)
    return data


@router.post("/code/{invite_code}/accept")
async def accept_invitation(
    invite_code: str,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    invitation = await _get_by_code_or_404(db, invite_code)
    return await _respond(db, invitation, current_user, "accept", background_tasks)


@router.post("/code/{invite_code}/decline")
async def decline_invitation(
    invite_code: str,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    invitation = await _get_by_code_or_404(db, invite_code)
    return await _respond(db, invitation, current_user, "decline", background_tasks)
