"""API key management for the editor extension."""

import uuid as uuid_pkg
from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.api.deps import get_current_user, get_db_with_rls
from codepocket.core.exceptions import NotFoundError
from codepocket.core.security import mask_api_key
from codepocket.domain import api_key_ops
from codepocket.models.api_key import ApiKey, ApiKeyCreate
from codepocket.models.user import User

router = APIRouter(prefix="/api-keys", tags=["api-keys"])


def _api_key_to_dict(k: ApiKey) -> dict[str, Any]:
    return {
        "id": str(k.id),
        "name": k.name,
        "masked_key": mask_api_key(k.key_prefix),
        "created_at": k.created_at.isoformat(),
        "last_used_at": k.last_used_at.isoformat() if k.last_used_at else None,
    }


@router.get("")
async def list_api_keys(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> list[dict[str, Any]]:
    keys = await api_key_ops.list_by_user(db, current_user.id)
    return [_api_key_to_dict(k) for k in keys]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_api_key(
    data: ApiKeyCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> dict[str, Any]:
    """Create a key. The full key is only ever returned in this response."""
    api_key, plaintext = await api_key_ops.create_key(db, current_user.id, data.name)
    return {**_api_key_to_dict(api_key), "api_key": plaintext}


@router.delete("/{key_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_api_key(
    key_id: uuid_pkg.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_with_rls),
) -> None:
    revoked = await api_key_ops.revoke(db, current_user.id, key_id)
    if not revoked:
        raise NotFoundError("API key")
