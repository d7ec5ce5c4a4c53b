"""Snippet endpoints: CRUD, favorites and the archive."""

import logging
import uuid as uuid_pkg
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.api.deps import get_current_user, get_db_with_rls
from codepocket.core.exceptions import NotFoundError, ValidationError
from codepocket.domain import snippet_ops
from codepocket.models.snippet import (
    Snippet,
    SnippetCreate,
    SnippetFavoriteUpdate,
    SnippetUpdate,
)
from codepocket.models.user import User
from codepocket.services.event_logger import event_logger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/snippets", tags=["snippets"])


def snippet_to_dict(s: Snippet) -> dict[str, Any]:
    """Convert Snippet model to response dict."""
    return {
        "id": str(s.id),
        "user_id": str(s.user_id),
        "folder_id": str(s.folder_id) if s.folder_id else None,
        "title": s.title,
        "description": s.description,
        "code": s.code,
        "language": s.language,
        "tags": s.tags or [],
        "is_favorite": s.is_favorite,
        "source": s.source,
        "deleted_at": s.deleted_at.isoformat() if s.deleted_at else None,
        "created_at": s.created_at.isoformat(),
        "updated_at": s.updated_at.isoformat() if s.updated_at else None,
    }


async def _get_owned_snippet(
    db: AsyncSession,
    user: User,
    snippet_id: uuid_pkg.UUID,
    active_only: bool = True,
) -> Snippet:
    if active_only:
        snippet = await snippet_ops.get_active(db, user.id, snippet_id)
    else:
        snippet = await snippet_ops.get_by_user(db, user_id=user.id, id=snippet_id)
    if not snippet:
        raise NotFoundError("Snippet")
    return snippet


@router.get("")
async def list_snippets(
    folder_id: uuid_pkg.UUID | None = None,
    favorites: bool = False,
    language: str | None = None,
    tag: str | None = None,
    search: str | None = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> list[dict[str, Any]]:
    """List active snippets, newest first."""
    snippets = await snippet_ops.list_active(
        db,
        current_user.id,
        folder_id=folder_id,
        favorites_only=favorites,
        language=language,
        tag=tag,
        search=search,
        skip=skip,
        limit=limit,
    )
    return [snippet_to_dict(s) for s in snippets]


@router.get("/favorites")
async def list_favorites(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> list[dict[str, Any]]:
    snippets = await snippet_ops.list_active(db, current_user.id, favorites_only=True)
    return [snippet_to_dict(s) for s in snippets]


@router.get("/archive")
async def list_archive(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> list[dict[str, Any]]:
    """List soft-deleted snippets, most recently deleted first."""
    snippets = await snippet_ops.list_archived(db, current_user.id, skip=skip, limit=limit)
    return [snippet_to_dict(s) for s in snippets]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_snippet(
    data: SnippetCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    try:
        snippet = await snippet_ops.create_snippet(db, current_user.id, data)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    background_tasks.add_task(
        event_logger.snippet_created, current_user.id, snippet.id, snippet.title
    )
    return snippet_to_dict(snippet)


@router.get("/{snippet_id}")
async def get_snippet(
    snippet_id: uuid_pkg.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    """Get one snippet, archived ones included."""
    snippet = await _get_owned_snippet(db, current_user, snippet_id, active_only=False)
    return snippet_to_dict(snippet)


@router.patch("/{snippet_id}")
async def update_snippet(
    snippet_id: uuid_pkg.UUID,
    data: SnippetUpdate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    snippet = await _get_owned_snippet(db, current_user, snippet_id)
    try:
        snippet = await snippet_ops.update_snippet(db, snippet, data)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    background_tasks.add_task(event_logger.snippet_updated, current_user.id, snippet.id)
    return snippet_to_dict(snippet)


@router.post("/{snippet_id}/favorite")
async def toggle_favorite(
    snippet_id: uuid_pkg.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    snippet = await _get_owned_snippet(db, current_user, snippet_id)
    snippet = await snippet_ops.toggle_favorite(db, snippet)
    return snippet_to_dict(snippet)


@router.put("/{snippet_id}/favorite")
async def set_favorite(
    snippet_id: uuid_pkg.UUID,
    data: SnippetFavoriteUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    snippet = await _get_owned_snippet(db, current_user, snippet_id)
    snippet = await snippet_ops.set_favorite(db, snippet, data.is_favorite)
    return snippet_to_dict(snippet)


@router.delete("/{snippet_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_snippet(
    snippet_id: uuid_pkg.UUID,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> None:
    """Move a snippet to the archive."""
    snippet = await _get_owned_snippet(db, current_user, snippet_id)
    await snippet_ops.soft_delete(db, snippet)
    background_tasks.add_task(event_logger.snippet_deleted, current_user.id, snippet_id)


@router.post("/{snippet_id}/restore")
async def restore_snippet(
    snippet_id: uuid_pkg.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    snippet = await _get_owned_snippet(db, current_user, snippet_id, active_only=False)
    snippet = await snippet_ops.restore(db, snippet)
    return snippet_to_dict(snippet)


@router.delete("/{snippet_id}/permanent", status_code=status.HTTP_204_NO_CONTENT)
async def delete_snippet_permanently(
    snippet_id: uuid_pkg.UUID,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> None:
    """Delete an archived snippet for good."""
    snippet = await _get_owned_snippet(db, current_user, snippet_id, active_only=False)
    try:
        await snippet_ops.delete_permanently(db, snippet)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    background_tasks.add_task(
        event_logger.snippet_deleted, current_user.id, snippet_id, permanent=True
    )
