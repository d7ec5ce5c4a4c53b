"""Domain operations for snippets, favorites and the archive."""

import logging
import uuid as uuid_pkg
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.core.cache import cache_key, snippet_cache
from codepocket.core.validation import (
    LIKE_ESCAPE,
    contains_pattern,
    sanitize_code,
    sanitize_description,
    sanitize_search_query,
    sanitize_snippet_title,
    validate_language,
)
from codepocket.domain.base_operations import BaseOperations
from codepocket.models.folder import Folder
from codepocket.models.snippet import Snippet, SnippetCreate, SnippetUpdate

logger = logging.getLogger(__name__)

EXTENSION_LIST_LIMIT = 1000


class SnippetOperations(BaseOperations[Snippet]):
    """CRUD operations for Snippet model.

    All writes drop the owner's ``snippets:<user_id>`` cache entries.
    """

    def __init__(self) -> None:
        super().__init__(Snippet)

    def invalidate(self, user_id: uuid_pkg.UUID) -> None:
        snippet_cache.delete_pattern(cache_key("snippets", user_id))

    async def _clean(
        self,
        db: AsyncSession,
        user_id: uuid_pkg.UUID,
        changes: dict,
    ) -> dict:
        """Sanitize user-supplied fields in place.

        Raises ValueError on validation failure.
        """
        # The favorite flag is NOT NULL; an explicit null means "leave it"
        if changes.get("is_favorite", False) is None:
            del changes["is_favorite"]
        if "title" in changes:
            changes["title"] = sanitize_snippet_title(changes["title"])
            if not changes["title"]:
                raise ValueError("Title is required")
        if "code" in changes:
            changes["code"] = sanitize_code(changes["code"])
            if not changes["code"]:
                raise ValueError("Code is required")
        if "description" in changes:
            changes["description"] = sanitize_description(changes["description"]) or None
        if "language" in changes:
            language = (changes["language"] or "plaintext").lower()
            if not validate_language(language):
                raise ValueError(f"Unsupported language: {language}")
            changes["language"] = language
        if "tags" in changes:
            tags = changes["tags"] or []
            # Trim, drop blanks and de-duplicate while keeping order
            changes["tags"] = list(dict.fromkeys(t.strip() for t in tags if t and t.strip()))
        if changes.get("folder_id") is not None:
            folder = await db.execute(
                select(Folder.id).where(
                    Folder.id == changes["folder_id"],
                    Folder.user_id == user_id,
                )
            )
            if folder.first() is None:
                raise ValueError("Folder not found")
        return changes

    async def list_active(
        self,
        db: AsyncSession,
        user_id: uuid_pkg.UUID,
        folder_id: uuid_pkg.UUID | None = None,
        favorites_only: bool = False,
        language: str | None = None,
        tag: str | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Snippet]:
        """Non-deleted snippets, newest first, with optional filters."""
        statement = select(Snippet).where(
            Snippet.user_id == user_id,
            Snippet.deleted_at.is_(None),  # type: ignore[union-attr]
        )
        if folder_id is not None:
            statement = statement.where(Snippet.folder_id == folder_id)
        if favorites_only:
            statement = statement.where(Snippet.is_favorite.is_(True))  # type: ignore[attr-defined]
        if language:
            statement = statement.where(Snippet.language == language.lower())
        if tag:
            statement = statement.where(Snippet.tags.contains([tag]))  # type: ignore[attr-defined]
        query = sanitize_search_query(search)
        if query:
            pattern = contains_pattern(query)
            statement = statement.where(
                or_(
                    Snippet.title.ilike(pattern, escape=LIKE_ESCAPE),  # type: ignore[attr-defined]
                    Snippet.code.ilike(pattern, escape=LIKE_ESCAPE),  # type: ignore[attr-defined]
                )
            )

        statement = statement.order_by(Snippet.created_at.desc()).offset(skip).limit(limit)  # type: ignore[attr-defined]
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def list_archived(
        self,
        db: AsyncSession,
        user_id: uuid_pkg.UUID,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Snippet]:
        """Soft-deleted snippets, most recently deleted first."""
        statement = (
            select(Snippet)
            .where(Snippet.user_id == user_id, Snippet.deleted_at.is_not(None))  # type: ignore[union-attr]
            .order_by(Snippet.deleted_at.desc())  # type: ignore[union-attr]
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def list_for_extension(
        self,
        db: AsyncSession,
        user_id: uuid_pkg.UUID,
    ) -> list[Snippet]:
        return await self.list_active(db, user_id, limit=EXTENSION_LIST_LIMIT)

    async def get_active(
        self,
        db: AsyncSession,
        user_id: uuid_pkg.UUID,
        snippet_id: uuid_pkg.UUID,
    ) -> Snippet | None:
        """Get a non-deleted snippet owned by the user."""
        statement = select(Snippet).where(
            Snippet.id == snippet_id,
            Snippet.user_id == user_id,
            Snippet.deleted_at.is_(None),  # type: ignore[union-attr]
        )
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def create_snippet(
        self,
        db: AsyncSession,
        user_id: uuid_pkg.UUID,
        data: SnippetCreate,
    ) -> Snippet:
        changes = await self._clean(db, user_id, data.model_dump())
        snippet = await self.create(db, obj_in=changes, user_id=user_id)
        self.invalidate(user_id)
        logger.info(f"Snippet created: {snippet.id} (source={snippet.source})")
        return snippet

    async def update_snippet(
        self,
        db: AsyncSession,
        snippet: Snippet,
        data: SnippetUpdate,
    ) -> Snippet:
        """Apply a partial update; only fields present in the request change."""
        changes = await self._clean(db, snippet.user_id, data.model_dump(exclude_unset=True))
        snippet = await self.update(db, db_obj=snippet, obj_in=changes)
        self.invalidate(snippet.user_id)
        return snippet

    async def set_favorite(
        self,
        db: AsyncSession,
        snippet: Snippet,
        is_favorite: bool,
    ) -> Snippet:
        snippet = await self.update(db, db_obj=snippet, obj_in={"is_favorite": is_favorite})
        self.invalidate(snippet.user_id)
        return snippet

    async def toggle_favorite(self, db: AsyncSession, snippet: Snippet) -> Snippet:
        return await self.set_favorite(db, snippet, not snippet.is_favorite)

    async def soft_delete(self, db: AsyncSession, snippet: Snippet) -> Snippet:
        """Move a snippet to the archive."""
        snippet = await self.update(db, db_obj=snippet, obj_in={"deleted_at": datetime.now(UTC)})
        self.invalidate(snippet.user_id)
        return snippet

    async def restore(self, db: AsyncSession, snippet: Snippet) -> Snippet:
        """Bring a snippet back from the archive."""
        snippet = await self.update(db, db_obj=snippet, obj_in={"deleted_at": None})
        self.invalidate(snippet.user_id)
        return snippet

    async def delete_permanently(self, db: AsyncSession, snippet: Snippet) -> None:
        """Remove an archived snippet for good.

        Raises ValueError when the snippet is still active.
        """
        if snippet.deleted_at is None:
            raise ValueError("Only archived snippets can be permanently deleted")
        await db.delete(snippet)
        await db.flush()
        self.invalidate(snippet.user_id)

    async def purge_archived(self, db: AsyncSession, older_than_days: int) -> int:
        """Hard-delete snippets that have sat in the archive longer than the cutoff."""
        cutoff = datetime.now(UTC) - timedelta(days=older_than_days)
        result = await db.execute(
            delete(Snippet).where(
                Snippet.deleted_at.is_not(None),  # type: ignore[union-attr]
                Snippet.deleted_at < cutoff,  # type: ignore[operator]
            )
        )
        await db.flush()
        # Owners are unknown here, so drop every snippet entry
        snippet_cache.delete_pattern("snippets:")
        return result.rowcount or 0  # type: ignore[attr-defined]


snippet_ops = SnippetOperations()
