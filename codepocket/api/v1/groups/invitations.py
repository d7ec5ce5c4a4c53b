"""Group-scoped invitation endpoints."""

import logging
import uuid as uuid_pkg
from typing import Any

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.api.deps import get_current_user, get_db_with_rls
from codepocket.api.v1.groups.helpers import (
    invitation_http_error,
    invitation_to_dict,
    require_group_member,
)
from codepocket.core.exceptions import NotFoundError
from codepocket.core.rate_limit import INVITE_SEND_LIMIT, rate_limiter
from codepocket.domain import invitation_ops
from codepocket.domain.invitation_operations import InvitationError
from codepocket.models.group import InvitationCreate
from codepocket.models.user import User

logger = logging.getLogger(__name__)


async def list_group_invitations(
    group_id: uuid_pkg.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> list[dict[str, Any]]:
    """List pending invitations of a group. Requires membership."""
    await require_group_member(db, group_id, user)
    invitations = await invitation_ops.list_pending_for_group(db, group_id)
    return [invitation_to_dict(inv) for inv in invitations]


async def send_invitation(
    group_id: uuid_pkg.UUID,
    data: InvitationCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    """
    Invite someone to the group by email. Any member can invite.

    A second invitation to the same address within a minute is refused;
    after that it replaces the pending one.
    """
    group = await require_group_member(db, group_id, user)
    rate_limiter.enforce(str(user.id), INVITE_SEND_LIMIT, scope="invite_send")

    try:
        invitation = await invitation_ops.send(db, group_id, user.id, data.email)
    except InvitationError as e:
        raise invitation_http_error(e) from e

    return invitation_to_dict(invitation, group)


async def cancel_invitation(
    group_id: uuid_pkg.UUID,
    invitation_id: uuid_pkg.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    """Cancel a pending invitation (inviter or group owner)."""
    group = await require_group_member(db, group_id, user)

    invitation = await invitation_ops.get_by_id(db, invitation_id)
    if not invitation or invitation.group_id != group_id:
        raise NotFoundError("Invitation")

    try:
        invitation = await invitation_ops.cancel(db, invitation, group, actor_id=user.id)
    except InvitationError as e:
        raise invitation_http_error(e) from e

    return invitation_to_dict(invitation)
