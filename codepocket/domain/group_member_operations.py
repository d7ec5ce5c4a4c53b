"""Domain operations for group membership."""

import logging
import uuid as uuid_pkg

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.domain.activity_operations import activity_ops
from codepocket.domain.group_operations import group_ops
from codepocket.domain.user_operations import UserSummary, user_ops
from codepocket.models.group import ActivityType, Group, GroupMember

logger = logging.getLogger(__name__)


class CannotRemoveOwnerError(Exception):
    """Raised when removing the group owner from their own group."""

    pass


class GroupMemberOperations:
    """List, add and remove group members."""

    async def list_members(
        self,
        db: AsyncSession,
        group_id: uuid_pkg.UUID,
    ) -> list[tuple[GroupMember, UserSummary | None]]:
        """Members in join order, each with email and profile."""
        statement = (
            select(GroupMember)
            .where(GroupMember.group_id == group_id)
            .order_by(GroupMember.joined_at)  # type: ignore[arg-type]
        )
        result = await db.execute(statement)
        members = list(result.scalars().all())

        summaries = await user_ops.get_summaries(db, {m.user_id for m in members})
        return [(m, summaries.get(m.user_id)) for m in members]

    async def add_member(
        self,
        db: AsyncSession,
        group_id: uuid_pkg.UUID,
        user_id: uuid_pkg.UUID,
        via_invitation: uuid_pkg.UUID | None = None,
    ) -> GroupMember:
        member = GroupMember(group_id=group_id, user_id=user_id)
        db.add(member)
        await db.flush()
        await activity_ops.record(
            db,
            group_id=group_id,
            activity_type=ActivityType.MEMBER_JOINED,
            actor_id=user_id,
            target_user_id=user_id,
            details={"invitation_id": str(via_invitation)} if via_invitation else None,
        )
        group_ops.invalidate_group(group_id)
        return member

    async def remove_member(
        self,
        db: AsyncSession,
        group: Group,
        user_id: uuid_pkg.UUID,
        actor_id: uuid_pkg.UUID,
    ) -> bool:
        """Remove a member. A member removing themselves is recorded as leaving.

        Raises:
            CannotRemoveOwnerError: the target is the group owner
        """
        if user_id == group.owner_id:
            raise CannotRemoveOwnerError("Cannot remove the group owner")

        member = await group_ops.get_membership(db, group.id, user_id)
        if not member:
            return False

        await db.delete(member)
        await db.flush()

        left = user_id == actor_id
        await activity_ops.record(
            db,
            group_id=group.id,
            activity_type=ActivityType.MEMBER_LEFT if left else ActivityType.MEMBER_REMOVED,
            actor_id=actor_id,
            target_user_id=user_id,
        )
        group_ops.invalidate_group(group.id)
        logger.info(f"Member {user_id} {'left' if left else 'removed from'} group {group.id}")
        return True


group_member_ops = GroupMemberOperations()
