"""Domain operations for user profiles."""

import logging
import uuid as uuid_pkg

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.core.cache import cache_key, profile_cache
from codepocket.core.validation import validate_username
from codepocket.models.profile import Profile, ProfileUpdate

logger = logging.getLogger(__name__)


class InvalidUsernameError(Exception):
    """Raised when a username doesn't match the allowed pattern."""

    pass


class UsernameTakenError(Exception):
    """Raised when another profile already uses the username."""

    pass


class ProfileOperations:
    """Lazy-created one-to-one profile rows."""

    async def get(self, db: AsyncSession, user_id: uuid_pkg.UUID) -> Profile | None:
        statement = select(Profile).where(Profile.id == user_id)
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def get_or_create(self, db: AsyncSession, user_id: uuid_pkg.UUID) -> Profile:
        """Return the caller's profile, inserting an empty one on first access."""
        profile = await self.get(db, user_id)
        if profile:
            return profile

        profile = Profile(id=user_id)
        db.add(profile)
        await db.flush()
        await db.refresh(profile)
        logger.info(f"Created profile for user {user_id}")
        return profile

    async def is_username_taken(
        self,
        db: AsyncSession,
        username: str,
        exclude_user_id: uuid_pkg.UUID | None = None,
    ) -> bool:
        statement = select(Profile.id).where(func.lower(Profile.username) == username.lower())
        if exclude_user_id is not None:
            statement = statement.where(Profile.id != exclude_user_id)
        result = await db.execute(statement)
        return result.first() is not None

    async def update_profile(
        self,
        db: AsyncSession,
        profile: Profile,
        data: ProfileUpdate,
    ) -> Profile:
        """Apply a partial update.

        Raises:
            InvalidUsernameError: username is not 3-20 letters, digits or underscores
            UsernameTakenError: another user already has the username
        """
        changes = data.model_dump(exclude_unset=True)

        if "username" in changes and changes["username"] is not None:
            username = changes["username"].strip()
            if not validate_username(username):
                raise InvalidUsernameError(
                    "Username must be 3-20 characters and contain only letters, "
                    "numbers and underscores"
                )
            username = username.lower()
            if await self.is_username_taken(db, username, exclude_user_id=profile.id):
                raise UsernameTakenError("Username is already taken")
            changes["username"] = username

        for field in ("display_name", "bio"):
            if isinstance(changes.get(field), str):
                changes[field] = changes[field].strip() or None

        for field, value in changes.items():
            setattr(profile, field, value)
        db.add(profile)
        await db.flush()
        await db.refresh(profile)

        self.invalidate(profile.id)
        return profile

    async def set_avatar_url(
        self,
        db: AsyncSession,
        profile: Profile,
        avatar_url: str | None,
    ) -> Profile:
        profile.avatar_url = avatar_url
        db.add(profile)
        await db.flush()
        await db.refresh(profile)

        self.invalidate(profile.id)
        return profile

    def invalidate(self, user_id: uuid_pkg.UUID) -> None:
        profile_cache.delete(cache_key("profile", user_id))


profile_ops = ProfileOperations()
