"""Domain operations for editor-extension API keys."""

import logging
import uuid as uuid_pkg

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.core.cache import api_key_cache, cache_key
from codepocket.core.security import (
    API_KEY_DISPLAY_LENGTH,
    generate_api_key,
    hash_api_key,
)
from codepocket.domain.base_operations import BaseOperations
from codepocket.models.api_key import ApiKey

logger = logging.getLogger(__name__)


class ApiKeyOperations(BaseOperations[ApiKey]):
    """Issue, resolve and revoke API keys."""

    def __init__(self) -> None:
        super().__init__(ApiKey)

    async def list_by_user(self, db: AsyncSession, user_id: uuid_pkg.UUID) -> list[ApiKey]:
        return await self.list_newest(db, user_id, limit=1000)

    async def create_key(
        self,
        db: AsyncSession,
        user_id: uuid_pkg.UUID,
        name: str,
    ) -> tuple[ApiKey, str]:
        """Create a key and return it with its plaintext.

        The plaintext is not stored and cannot be recovered later.
        """
        plaintext = generate_api_key()
        api_key = await self.create(
            db,
            obj_in={
                "name": name.strip(),
                "key_hash": hash_api_key(plaintext),
                "key_prefix": plaintext[:API_KEY_DISPLAY_LENGTH],
            },
            user_id=user_id,
        )
        logger.info(f"API key created for user {user_id}: {api_key.key_prefix}")
        return api_key, plaintext

    async def resolve_user_id(self, db: AsyncSession, plaintext: str) -> uuid_pkg.UUID | None:
        """Return the owner of a key, or None if the key is unknown.

        Lookups are cached, so a revoked key is rejected at once on this
        instance and within the cache lifetime elsewhere. ``last_used_at`` is
        stamped on each cache miss, so it is accurate to the cache lifetime.
        """
        key_hash = hash_api_key(plaintext)

        async def load() -> str | None:
            result = await db.execute(
                update(ApiKey)
                .where(ApiKey.key_hash == key_hash)  # type: ignore[arg-type]
                .values(last_used_at=func.now())
                .returning(ApiKey.user_id)
            )
            user_id = result.scalar_one_or_none()
            return str(user_id) if user_id else None

        user_id = await api_key_cache.get_or_set(cache_key("api_key", key_hash), load)
        return uuid_pkg.UUID(user_id) if user_id else None

    async def revoke(
        self,
        db: AsyncSession,
        user_id: uuid_pkg.UUID,
        key_id: uuid_pkg.UUID,
    ) -> bool:
        api_key = await self.get_by_user(db, user_id=user_id, id=key_id)
        if not api_key:
            return False

        api_key_cache.delete(cache_key("api_key", api_key.key_hash))
        await db.delete(api_key)
        await db.flush()
        logger.info(f"API key revoked for user {user_id}: {api_key.key_prefix}")
        return True


api_key_ops = ApiKeyOperations()
