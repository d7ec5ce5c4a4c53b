"""Snippets shared into a group."""

import uuid as uuid_pkg
from typing import Any

from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.api.deps import get_current_user, get_db_with_rls
from codepocket.api.v1.groups.helpers import require_group_member
from codepocket.api.v1.snippets import snippet_to_dict
from codepocket.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from codepocket.domain import group_snippet_ops
from codepocket.domain.group_snippet_operations import (
    AlreadySharedError,
    NotSnippetOwnerError,
    SharedSnippet,
    SnippetNotFoundError,
)
from codepocket.models.group import GroupSnippetCreate, GroupSnippetShare
from codepocket.models.snippet import SnippetCreate
from codepocket.models.user import User


def _shared_to_dict(item: SharedSnippet) -> dict[str, Any]:
    return {
        **snippet_to_dict(item.snippet),
        "shared_by": str(item.share.shared_by),
        "shared_at": item.share.shared_at.isoformat(),
    }


def _share_error(error: Exception) -> HTTPException:
    if isinstance(error, SnippetNotFoundError):
        return NotFoundError("Snippet")
    if isinstance(error, NotSnippetOwnerError):
        return ForbiddenError(str(error))
    return ValidationError(str(error))


async def list_group_snippets(
    group_id: uuid_pkg.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> list[dict[str, Any]]:
    await require_group_member(db, group_id, user)
    items = await group_snippet_ops.list_for_group(db, group_id)
    return [_shared_to_dict(item) for item in items]


async def share_snippet(
    group_id: uuid_pkg.UUID,
    data: GroupSnippetShare,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    """Share one of the caller's own snippets into the group."""
    await require_group_member(db, group_id, user)
    try:
        item = await group_snippet_ops.share(db, group_id, data.snippet_id, user.id)
    except (SnippetNotFoundError, NotSnippetOwnerError, AlreadySharedError) as e:
        raise _share_error(e) from e
    return _shared_to_dict(item)


async def create_group_snippet(
    group_id: uuid_pkg.UUID,
    data: GroupSnippetCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    """Create a new snippet and share it into the group in one step."""
    await require_group_member(db, group_id, user)
    try:
        item = await group_snippet_ops.create_and_share(
            db, group_id, user.id, SnippetCreate(**data.model_dump())
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e
    except (SnippetNotFoundError, NotSnippetOwnerError, AlreadySharedError) as e:
        raise _share_error(e) from e
    return _shared_to_dict(item)


async def unshare_snippet(
    group_id: uuid_pkg.UUID,
    snippet_id: uuid_pkg.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> None:
    """Remove a snippet from the group (sharer or group owner)."""
    group = await require_group_member(db, group_id, user)
    try:
        removed = await group_snippet_ops.unshare(db, group, snippet_id, user.id)
    except NotSnippetOwnerError as e:
        raise _share_error(e) from e

    if not removed:
        raise NotFoundError("Snippet")
