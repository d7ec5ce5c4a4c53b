"""Domain operations for snippets shared into groups."""

import uuid as uuid_pkg
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.domain.activity_operations import activity_ops
from codepocket.domain.snippet_operations import snippet_ops
from codepocket.models.group import ActivityType, Group, GroupSnippet
from codepocket.models.snippet import Snippet, SnippetCreate


class SnippetNotFoundError(Exception):
    """Raised when the snippet to share doesn't exist or is archived."""

    pass


class NotSnippetOwnerError(Exception):
    """Raised when sharing someone else's snippet."""

    pass


class AlreadySharedError(Exception):
    """Raised when the snippet is already shared to the group."""

    pass


@dataclass
class SharedSnippet:
    share: GroupSnippet
    snippet: Snippet


class GroupSnippetOperations:
    """Share, list and unshare snippets within a group."""

    async def get_share(
        self,
        db: AsyncSession,
        group_id: uuid_pkg.UUID,
        snippet_id: uuid_pkg.UUID,
    ) -> GroupSnippet | None:
        statement = select(GroupSnippet).where(
            GroupSnippet.group_id == group_id,
            GroupSnippet.snippet_id == snippet_id,
        )
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def list_for_group(
        self,
        db: AsyncSession,
        group_id: uuid_pkg.UUID,
    ) -> list[SharedSnippet]:
        """Active shared snippets, most recently shared first."""
        statement = (
            select(GroupSnippet, Snippet)
            .join(Snippet, Snippet.id == GroupSnippet.snippet_id)  # type: ignore[arg-type]
            .where(
                GroupSnippet.group_id == group_id,
                Snippet.deleted_at.is_(None),  # type: ignore[union-attr]
            )
            .order_by(GroupSnippet.shared_at.desc())  # type: ignore[attr-defined]
        )
        result = await db.execute(statement)
        return [SharedSnippet(share=share, snippet=snippet) for share, snippet in result.all()]

    async def share(
        self,
        db: AsyncSession,
        group_id: uuid_pkg.UUID,
        snippet_id: uuid_pkg.UUID,
        user_id: uuid_pkg.UUID,
    ) -> SharedSnippet:
        """Share one of the caller's own snippets.

        Raises:
            SnippetNotFoundError: no active snippet with that id
            NotSnippetOwnerError: the snippet belongs to someone else
            AlreadySharedError: the snippet is already in the group
        """
        snippet = await snippet_ops.get(db, snippet_id)
        if not snippet or snippet.deleted_at is not None:
            raise SnippetNotFoundError("Snippet not found")
        if snippet.user_id != user_id:
            raise NotSnippetOwnerError("You can only share your own snippets")
        if await self.get_share(db, group_id, snippet_id):
            raise AlreadySharedError("Snippet is already shared to this group")

        share = GroupSnippet(group_id=group_id, snippet_id=snippet_id, shared_by=user_id)
        db.add(share)
        await db.flush()
        await activity_ops.record(
            db,
            group_id=group_id,
            activity_type=ActivityType.SNIPPET_SHARED,
            actor_id=user_id,
            target_snippet_id=snippet_id,
            details={"title": snippet.title},
        )
        await db.refresh(share)
        return SharedSnippet(share=share, snippet=snippet)

    async def create_and_share(
        self,
        db: AsyncSession,
        group_id: uuid_pkg.UUID,
        user_id: uuid_pkg.UUID,
        data: SnippetCreate,
    ) -> SharedSnippet:
        """Create a snippet for the caller and share it in the same transaction."""
        snippet = await snippet_ops.create_snippet(db, user_id, data)
        return await self.share(db, group_id, snippet.id, user_id)

    async def unshare(
        self,
        db: AsyncSession,
        group: Group,
        snippet_id: uuid_pkg.UUID,
        user_id: uuid_pkg.UUID,
    ) -> bool:
        """Remove a share. Allowed for whoever shared it and the group owner.

        Raises NotSnippetOwnerError for anyone else.
        """
        share = await self.get_share(db, group.id, snippet_id)
        if not share:
            return False
        if user_id not in (share.shared_by, group.owner_id):
            raise NotSnippetOwnerError("Only the sharer or the group owner can remove this snippet")

        await db.delete(share)
        await db.flush()
        await activity_ops.record(
            db,
            group_id=group.id,
            activity_type=ActivityType.SNIPPET_REMOVED,
            actor_id=user_id,
            target_snippet_id=snippet_id,
        )
        return True


group_snippet_ops = GroupSnippetOperations()
