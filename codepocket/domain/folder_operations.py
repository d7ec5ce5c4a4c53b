"""Domain operations for snippet folders."""

import uuid as uuid_pkg

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.core.cache import cache_key, snippet_cache
from codepocket.core.validation import (
    FOLDER_COLORS,
    sanitize_description,
    sanitize_folder_name,
    validate_folder_color,
)
from codepocket.domain.base_operations import BaseOperations
from codepocket.models.folder import Folder, FolderCreate, FolderUpdate
from codepocket.models.snippet import Snippet


class FolderOperations(BaseOperations[Folder]):
    """CRUD operations for Folder model."""

    def __init__(self) -> None:
        super().__init__(Folder)

    def _clean(self, changes: dict) -> dict:
        """Sanitize folder fields in place.

        Raises ValueError on validation failure.
        """
        if "name" in changes:
            name = sanitize_folder_name(changes["name"])
            if not name:
                raise ValueError("Folder name is required")
            changes["name"] = name
        if "description" in changes:
            changes["description"] = sanitize_description(changes["description"]) or None
        if "color" in changes:
            if not validate_folder_color(changes["color"]):
                raise ValueError(f"Color must be one of: {', '.join(FOLDER_COLORS)}")
            changes["color"] = changes["color"].lower()
        return changes

    async def list_with_counts(
        self,
        db: AsyncSession,
        user_id: uuid_pkg.UUID,
    ) -> list[tuple[Folder, int]]:
        """All of the user's folders by name, each with its active snippet count."""
        counts = (
            select(Snippet.folder_id, func.count().label("snippet_count"))
            .where(Snippet.user_id == user_id, Snippet.deleted_at.is_(None))  # type: ignore[union-attr]
            .group_by(Snippet.folder_id)
            .subquery()
        )
        statement = (
            select(Folder, func.coalesce(counts.c.snippet_count, 0))
            .outerjoin(counts, counts.c.folder_id == Folder.id)
            .where(Folder.user_id == user_id)
            .order_by(Folder.name)
        )
        result = await db.execute(statement)
        return [(folder, int(count)) for folder, count in result.all()]

    async def create_folder(
        self,
        db: AsyncSession,
        user_id: uuid_pkg.UUID,
        data: FolderCreate,
    ) -> Folder:
        changes = self._clean(data.model_dump())
        return await self.create(db, obj_in=changes, user_id=user_id)

    async def update_folder(
        self,
        db: AsyncSession,
        folder: Folder,
        data: FolderUpdate,
    ) -> Folder:
        changes = self._clean(data.model_dump(exclude_unset=True))
        return await self.update(db, db_obj=folder, obj_in=changes)

    async def delete_folder(
        self,
        db: AsyncSession,
        user_id: uuid_pkg.UUID,
        folder_id: uuid_pkg.UUID,
    ) -> bool:
        """Delete a folder. Its snippets stay, moved out of the folder."""
        folder = await self.get_by_user(db, user_id=user_id, id=folder_id)
        if not folder:
            return False

        await db.execute(
            update(Snippet)
            .where(Snippet.folder_id == folder_id, Snippet.user_id == user_id)  # type: ignore[arg-type]
            .values(folder_id=None)
        )
        await db.delete(folder)
        await db.flush()

        snippet_cache.delete_pattern(cache_key("snippets", user_id))
        return True


folder_ops = FolderOperations()
