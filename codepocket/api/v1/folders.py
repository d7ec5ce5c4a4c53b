"""Folder endpoints."""

import uuid as uuid_pkg
from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.api.deps import get_current_user, get_db_with_rls
from codepocket.core.exceptions import NotFoundError, ValidationError
from codepocket.domain import folder_ops
from codepocket.models.folder import Folder, FolderCreate, FolderUpdate
from codepocket.models.user import User

router = APIRouter(prefix="/folders", tags=["folders"])


def _folder_to_dict(f: Folder, snippet_count: int | None = None) -> dict[str, Any]:
    data = {
        "id": str(f.id),
        "name": f.name,
        "description": f.description,
        "color": f.color,
        "created_at": f.created_at.isoformat(),
        "updated_at": f.updated_at.isoformat() if f.updated_at else None,
    }
    if snippet_count is not None:
        data["snippet_count"] = snippet_count
    return data


async def _get_folder_or_404(db: AsyncSession, user: User, folder_id: uuid_pkg.UUID) -> Folder:
    folder = await folder_ops.get_by_user(db, user_id=user.id, id=folder_id)
    if not folder:
        raise NotFoundError("Folder")
    return folder


@router.get("")
async def list_folders(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> list[dict[str, Any]]:
    """List folders by name with their active snippet counts."""
    rows = await folder_ops.list_with_counts(db, current_user.id)
    return [_folder_to_dict(folder, count) for folder, count in rows]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_folder(
    data: FolderCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    try:
        folder = await folder_ops.create_folder(db, current_user.id, data)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    return _folder_to_dict(folder, 0)


@router.get("/{folder_id}")
async def get_folder(
    folder_id: uuid_pkg.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    folder = await _get_folder_or_404(db, current_user, folder_id)
    return _folder_to_dict(folder)


@router.patch("/{folder_id}")
async def update_folder(
    folder_id: uuid_pkg.UUID,
    data: FolderUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    folder = await _get_folder_or_404(db, current_user, folder_id)
    try:
        folder = await folder_ops.update_folder(db, folder, data)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    return _folder_to_dict(folder)


@router.delete("/{folder_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_folder(
    folder_id: uuid_pkg.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> None:
    """Delete a folder. Its snippets are kept and moved out of it."""
    deleted = await folder_ops.delete_folder(db, current_user.id, folder_id)
    if not deleted:
        raise NotFoundError("Folder")
