import uuid as uuid_pkg
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.models.profile import Profile
from codepocket.models.user import User


@dataclass
class UserSummary:
    """Email and public profile fields used to enrich member and activity lists."""

    id: uuid_pkg.UUID
    email: str | None
    username: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None

    def as_dict(self) -> dict:
        return {
            "id": str(self.id),
            "email": self.email,
            "profile": {
                "username": self.username,
                "display_name": self.display_name,
                "avatar_url": self.avatar_url,
            },
        }


class UserOperations:
    """Operations for the User mirror table."""

    async def get_by_id(
        self,
        db: AsyncSession,
        user_id: uuid_pkg.UUID,
    ) -> User | None:
        """Get a user by ID."""
        statement = select(User).where(User.id == user_id)
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def get_or_create(
        self,
        db: AsyncSession,
        user_id: uuid_pkg.UUID,
        email: str | None,
    ) -> User:
        """Return the mirror row for an auth user, creating it on first sight."""
        user = await self.get_by_id(db, user_id)
        if user:
            if email and user.email != email:
                # Email changed in Supabase Auth since the row was created
                user.email = email
                db.add(user)
                await db.flush()
            return user

        user = User(id=user_id, email=email)
        db.add(user)
        await db.flush()
        await db.refresh(user)
        return user

    async def get_summaries(
        self,
        db: AsyncSession,
        user_ids: set[uuid_pkg.UUID],
    ) -> dict[uuid_pkg.UUID, UserSummary]:
        """Batch-load email and profile fields for a set of users."""
        if not user_ids:
            return {}

        statement = (
            select(User, Profile)
            .outerjoin(Profile, Profile.id == User.id)  # type: ignore[arg-type]
            .where(User.id.in_(user_ids))  # type: ignore[attr-defined]
        )
        result = await db.execute(statement)

        summaries: dict[uuid_pkg.UUID, UserSummary] = {}
        for user, profile in result.all():
            summaries[user.id] = UserSummary(
                id=user.id,
                email=user.email,
                username=profile.username if profile else None,
                display_name=profile.display_name if profile else None,
                avatar_url=profile.avatar_url if profile else None,
            )
        return summaries


user_ops = UserOperations()
