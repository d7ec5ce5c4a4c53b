"""Editor extension API, authenticated with an ``X-API-Key`` header."""

import logging
import uuid as uuid_pkg
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.api.deps import get_api_key_user
from codepocket.core.cache import cache_key, snippet_cache
from codepocket.core.database import get_db
from codepocket.core.exceptions import NotFoundError, ValidationError
from codepocket.core.rls import set_rls_user_context
from codepocket.domain import snippet_ops
from codepocket.models.snippet import Snippet, SnippetCreate, SnippetSource, SnippetUpdate
from codepocket.services.event_logger import event_logger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/extension/snippets", tags=["extension"])


class ExtensionSnippetIn(BaseModel):
    """Snippet payload sent by the editor. Required fields are checked by hand."""

    title: str | None = None
    code: str | None = None
    language: str | None = None
    description: str | None = None
    tags: list[str] | None = None
    folder_id: uuid_pkg.UUID | None = None
    source: str | None = None


def _snippet_to_dict(s: Snippet) -> dict[str, Any]:
    return {
        "id": str(s.id),
        "title": s.title,
        "code": s.code,
        "language": s.language,
        "description": s.description,
        "tags": s.tags or [],
        "folder_id": str(s.folder_id) if s.folder_id else None,
        "source": s.source,
        "created_at": s.created_at.isoformat(),
    }


async def get_extension_db(
    user_id: uuid_pkg.UUID = Depends(get_api_key_user),
    db: AsyncSession = Depends(get_db),
) -> AsyncSession:
    """Session with the key owner's RLS context."""
    await set_rls_user_context(db, user_id)
    return db


async def _get_snippet_or_404(
    db: AsyncSession, user_id: uuid_pkg.UUID, snippet_id: uuid_pkg.UUID
) -> Snippet:
    snippet = await snippet_ops.get_active(db, user_id, snippet_id)
    if not snippet:
        raise NotFoundError("Snippet")
    return snippet


@router.get("")
async def list_snippets(
    user_id: uuid_pkg.UUID = Depends(get_api_key_user),
    db: AsyncSession = Depends(get_extension_db),
) -> dict[str, Any]:
    """All active snippets of the key's owner (newest first, capped at 1000)."""

    async def load() -> list[dict[str, Any]]:
        snippets = await snippet_ops.list_for_extension(db, user_id)
        return [_snippet_to_dict(s) for s in snippets]

    snippets = await snippet_cache.get_or_set(cache_key("snippets", user_id, "extension"), load)
    return {"snippets": snippets}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_snippet(
    data: ExtensionSnippetIn,
    background_tasks: BackgroundTasks,
    user_id: uuid_pkg.UUID = Depends(get_api_key_user),
    db: AsyncSession = Depends(get_extension_db),
) -> dict[str, Any]:
    if not data.title or not data.code:
        raise ValidationError("Title and code are required")

    create = SnippetCreate(
        title=data.title,
        code=data.code,
        language=data.language or "plaintext",
        description=data.description,
        tags=data.tags or [],
        folder_id=data.folder_id,
        source=data.source or SnippetSource.VSCODE.value,
    )
    try:
        snippet = await snippet_ops.create_snippet(db, user_id, create)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    background_tasks.add_task(event_logger.snippet_created, user_id, snippet.id, snippet.title)
    return {
        "snippet": {
            "id": str(snippet.id),
            "title": snippet.title,
            "language": snippet.language,
            "created_at": snippet.created_at.isoformat(),
        }
    }


@router.get("/{snippet_id}")
async def get_snippet(
    snippet_id: uuid_pkg.UUID,
    user_id: uuid_pkg.UUID = Depends(get_api_key_user),
    db: AsyncSession = Depends(get_extension_db),
) -> dict[str, Any]:
    snippet = await _get_snippet_or_404(db, user_id, snippet_id)
    return {"snippet": _snippet_to_dict(snippet)}


@router.put("/{snippet_id}")
async def update_snippet(
    snippet_id: uuid_pkg.UUID,
    data: ExtensionSnippetIn,
    background_tasks: BackgroundTasks,
    user_id: uuid_pkg.UUID = Depends(get_api_key_user),
    db: AsyncSession = Depends(get_extension_db),
) -> dict[str, Any]:
    snippet = await _get_snippet_or_404(db, user_id, snippet_id)

    # Source is fixed at creation
    changes = data.model_dump(exclude_unset=True, exclude={"source"})
    try:
        snippet = await snippet_ops.update_snippet(db, snippet, SnippetUpdate(**changes))
    except ValueError as e:
        raise ValidationError(str(e)) from e

    background_tasks.add_task(event_logger.snippet_updated, user_id, snippet.id)
    return {"snippet": _snippet_to_dict(snippet)}


@router.delete("/{snippet_id}")
async def delete_snippet(
    snippet_id: uuid_pkg.UUID,
    background_tasks: BackgroundTasks,
    user_id: uuid_pkg.UUID = Depends(get_api_key_user),
    db: AsyncSession = Depends(get_extension_db),
) -> dict[str, Any]:
    """Move the snippet to the archive (restorable from the web app)."""
    snippet = await _get_snippet_or_404(db, user_id, snippet_id)
    await snippet_ops.soft_delete(db, snippet)

    background_tasks.add_task(event_logger.snippet_deleted, user_id, snippet_id)
    return {"success": True}
