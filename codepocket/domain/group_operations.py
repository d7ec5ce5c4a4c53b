"""Domain operations for groups."""

import logging
import uuid as uuid_pkg

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.core.cache import cache_key, group_cache
from codepocket.domain.activity_operations import activity_ops
from codepocket.models.group import (
    ActivityType,
    Group,
    GroupCreate,
    GroupMember,
    GroupUpdate,
)

logger = logging.getLogger(__name__)

MAX_GROUP_NAME_LENGTH = 100
MAX_GROUP_DESCRIPTION_LENGTH = 500


def _clean_group_fields(changes: dict) -> dict:
    """Trim and length-check name/description.

    Raises ValueError on validation failure.
    """
    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValueError("Group name is required")
        if len(name) > MAX_GROUP_NAME_LENGTH:
            raise ValueError("Group name must be 100 characters or less")
        changes["name"] = name
    if "description" in changes:
        description = (changes["description"] or "").strip()
        if len(description) > MAX_GROUP_DESCRIPTION_LENGTH:
            raise ValueError("Description must be 500 characters or less")
        changes["description"] = description or None
    return changes


class GroupOperations:
    """Create, list and manage groups."""

    async def get(self, db: AsyncSession, group_id: uuid_pkg.UUID) -> Group | None:
        statement = select(Group).where(Group.id == group_id)
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def get_membership(
        self,
        db: AsyncSession,
        group_id: uuid_pkg.UUID,
        user_id: uuid_pkg.UUID,
    ) -> GroupMember | None:
        statement = select(GroupMember).where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id,
        )
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def is_member(
        self,
        db: AsyncSession,
        group_id: uuid_pkg.UUID,
        user_id: uuid_pkg.UUID,
    ) -> bool:
        return await self.get_membership(db, group_id, user_id) is not None

    async def list_for_user(
        self,
        db: AsyncSession,
        user_id: uuid_pkg.UUID,
    ) -> list[tuple[Group, int]]:
        """Groups the user owns or belongs to, newest first, with member counts."""
        member_counts = (
            select(GroupMember.group_id, func.count().label("member_count"))
            .group_by(GroupMember.group_id)
            .subquery()
        )
        my_groups = select(GroupMember.group_id).where(GroupMember.user_id == user_id)
        statement = (
            select(Group, func.coalesce(member_counts.c.member_count, 0))
            .outerjoin(member_counts, member_counts.c.group_id == Group.id)
            .where(
                (Group.owner_id == user_id) | (Group.id.in_(my_groups))  # type: ignore[attr-defined]
            )
            .order_by(Group.created_at.desc())  # type: ignore[attr-defined]
        )
        result = await db.execute(statement)
        return [(group, int(count)) for group, count in result.all()]

    async def create_group(
        self,
        db: AsyncSession,
        owner_id: uuid_pkg.UUID,
        data: GroupCreate,
    ) -> Group:
        """Create a group and enrol the owner as its first member."""
        changes = _clean_group_fields({"name": data.name, "description": data.description})

        group = Group(owner_id=owner_id, **changes)
        db.add(group)
        await db.flush()

        db.add(GroupMember(group_id=group.id, user_id=owner_id))
        await activity_ops.record(
            db,
            group_id=group.id,
            activity_type=ActivityType.GROUP_CREATED,
            actor_id=owner_id,
            details={"name": group.name},
        )
        await db.refresh(group)

        self.invalidate_user(owner_id)
        logger.info(f"Group created: {group.id} by {owner_id}")
        return group

    async def update_group(
        self,
        db: AsyncSession,
        group: Group,
        data: GroupUpdate,
        actor_id: uuid_pkg.UUID,
    ) -> Group:
        changes = _clean_group_fields(data.model_dump(exclude_unset=True))
        if not changes:
            return group

        for field, value in changes.items():
            setattr(group, field, value)
        db.add(group)
        await db.flush()
        await activity_ops.record(
            db,
            group_id=group.id,
            activity_type=ActivityType.GROUP_UPDATED,
            actor_id=actor_id,
            details={"fields": sorted(changes)},
        )
        await db.refresh(group)

        self.invalidate_group(group.id)
        return group

    async def delete_group(self, db: AsyncSession, group: Group) -> None:
        """Delete a group; members, invitations, shares and activity cascade."""
        group_id = group.id
        await db.delete(group)
        await db.flush()
        self.invalidate_group(group_id)
        logger.info(f"Group deleted: {group_id}")

    def invalidate_user(self, user_id: uuid_pkg.UUID) -> None:
        group_cache.delete_pattern(cache_key("groups", "user", user_id))

    def invalidate_group(self, group_id: uuid_pkg.UUID) -> None:
        """Drop cached data for a group, and membership lists of everyone."""
        group_cache.delete_pattern(cache_key("groups", group_id))
        group_cache.delete_pattern(cache_key("groups", "user"))


group_ops = GroupOperations()
