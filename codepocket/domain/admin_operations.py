"""Read models for the admin panel."""

import logging
import uuid as uuid_pkg
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, or_, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.core.validation import LIKE_ESCAPE, contains_pattern, sanitize_search_query
from codepocket.models.group import Group, GroupMember
from codepocket.models.log_entry import LogEntry
from codepocket.models.profile import Profile
from codepocket.models.snippet import Snippet
from codepocket.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class AdminUserRow:
    id: uuid_pkg.UUID
    email: str | None
    username: str | None
    display_name: str | None
    created_at: datetime
    snippet_count: int
    group_count: int


@dataclass
class SystemTotals:
    total_logs: int
    total_users: int
    total_snippets: int
    total_groups: int


class AdminOperations:
    """Queries that span every user. Run without RLS context."""

    async def list_users(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 20,
        search: str | None = None,
    ) -> tuple[list[AdminUserRow], int]:
        """One page of users, newest first, and the total matching the search."""
        snippet_counts = (
            select(Snippet.user_id, func.count().label("snippet_count"))
            .where(Snippet.deleted_at.is_(None))  # type: ignore[union-attr]
            .group_by(Snippet.user_id)
            .subquery()
        )
        group_counts = (
            select(GroupMember.user_id, func.count().label("group_count"))
            .group_by(GroupMember.user_id)
            .subquery()
        )

        filters = []
        query = sanitize_search_query(search)
        if query:
            pattern = contains_pattern(query)
            filters.append(
                or_(
                    User.email.ilike(pattern, escape=LIKE_ESCAPE),  # type: ignore[union-attr]
                    Profile.username.ilike(pattern, escape=LIKE_ESCAPE),  # type: ignore[union-attr]
                )
            )

        count_statement = (
            select(func.count())
            .select_from(User)
            .outerjoin(Profile, Profile.id == User.id)  # type: ignore[arg-type]
            .where(*filters)
        )
        total = (await db.execute(count_statement)).scalar_one()

        statement = (
            select(
                User,
                Profile,
                func.coalesce(snippet_counts.c.snippet_count, 0),
                func.coalesce(group_counts.c.group_count, 0),
            )
            .outerjoin(Profile, Profile.id == User.id)  # type: ignore[arg-type]
            .outerjoin(snippet_counts, snippet_counts.c.user_id == User.id)
            .outerjoin(group_counts, group_counts.c.user_id == User.id)
            .where(*filters)
            .order_by(User.created_at.desc())  # type: ignore[attr-defined]
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await db.execute(statement)

        rows = [
            AdminUserRow(
                id=user.id,
                email=user.email,
                username=profile.username if profile else None,
                display_name=profile.display_name if profile else None,
                created_at=user.created_at,
                snippet_count=int(snippets),
                group_count=int(groups),
            )
            for user, profile, snippets, groups in result.all()
        ]
        return rows, total

    async def system_totals(self, db: AsyncSession) -> SystemTotals:
        async def count(statement) -> int:  # type: ignore[no-untyped-def]
            return (await db.execute(statement)).scalar_one()

        return SystemTotals(
            total_logs=await count(select(func.count()).select_from(LogEntry)),
            total_users=await count(select(func.count()).select_from(User)),
            total_snippets=await count(
                select(func.count())
                .select_from(Snippet)
                .where(Snippet.deleted_at.is_(None))  # type: ignore[union-attr]
            ),
            total_groups=await count(select(func.count()).select_from(Group)),
        )

    async def database_ok(self, db: AsyncSession) -> bool:
        try:
            await db.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return False
        return True


admin_ops = AdminOperations()
