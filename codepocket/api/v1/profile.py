"""Profile endpoints, including avatar upload to Supabase Storage."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.api.deps import get_current_user, get_db_with_rls
from codepocket.config import settings
from codepocket.core.cache import cache_key, profile_cache
from codepocket.core.exceptions import ConflictError, ValidationError
from codepocket.domain import profile_ops
from codepocket.domain.profile_operations import InvalidUsernameError, UsernameTakenError
from codepocket.models.profile import Profile, ProfileUpdate
from codepocket.models.user import User
from codepocket.services.avatar_storage import (
    AvatarStorageError,
    InvalidAvatarError,
    avatar_storage,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])


def _profile_to_dict(profile: Profile, user: User) -> dict[str, Any]:
    """Profile fields plus the account email and creation time."""
    return {
        "id": str(profile.id),
        "email": user.email,
        "username": profile.username,
        "display_name": profile.display_name,
        "bio": profile.bio,
        "avatar_url": profile.avatar_url,
        "created_at": user.created_at.isoformat(),
        "updated_at": profile.updated_at.isoformat() if profile.updated_at else None,
    }


@router.get("")
async def get_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    """Get the caller's profile, creating an empty one on first access."""

    async def load() -> dict[str, Any]:
        profile = await profile_ops.get_or_create(db, current_user.id)
        return _profile_to_dict(profile, current_user)

    return await profile_cache.get_or_set(cache_key("profile", current_user.id), load)


@router.patch("")
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    profile = await profile_ops.get_or_create(db, current_user.id)
    try:
        profile = await profile_ops.update_profile(db, profile, data)
    except InvalidUsernameError as e:
        raise ValidationError(str(e)) from e
    except UsernameTakenError as e:
        raise ConflictError(str(e)) from e
    return _profile_to_dict(profile, current_user)


@router.post("/avatar")
async def upload_avatar(
    avatar: UploadFile | None = File(default=None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    """Replace the caller's avatar (JPEG, PNG, GIF or WebP up to 2 MB)."""
    if avatar is None:
        raise ValidationError("No file provided")
    if not settings.storage_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Avatar storage not configured",
        )

    data = await avatar.read()
    profile = await profile_ops.get_or_create(db, current_user.id)
    try:
        url = await avatar_storage.upload(
            current_user.id, data, avatar.content_type, previous_url=profile.avatar_url
        )
    except InvalidAvatarError as e:
        raise ValidationError(str(e)) from e
    except AvatarStorageError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    profile = await profile_ops.set_avatar_url(db, profile, url)
    return {"avatar_url": profile.avatar_url}


@router.delete("/avatar")
async def delete_avatar(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    profile = await profile_ops.get_or_create(db, current_user.id)
    if profile.avatar_url and settings.storage_enabled:
        await avatar_storage.remove(current_user.id, profile.avatar_url)
    await profile_ops.set_avatar_url(db, profile, None)
    return {"avatar_url": None}
