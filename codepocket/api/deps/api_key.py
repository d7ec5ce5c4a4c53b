"""API-key authentication for the editor extension."""

import logging
import uuid as uuid_pkg

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.core.database import get_db
from codepocket.core.exceptions import UnauthorizedError
from codepocket.core.rate_limit import API_KEY_LIMIT, rate_limiter
from codepocket.core.security import hash_api_key
from codepocket.domain import api_key_ops

logger = logging.getLogger(__name__)


async def get_api_key_user(
    x_api_key: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> uuid_pkg.UUID:
    """
    Resolve the ``X-API-Key`` header to its owner's user id.

    Each key gets its own fixed rate-limit window, unknown keys included,
    so guessing is throttled too.
    """
    if not x_api_key:
        raise UnauthorizedError("API key required")

    rate_limiter.enforce(hash_api_key(x_api_key), API_KEY_LIMIT, scope="api_key")

    user_id = await api_key_ops.resolve_user_id(db, x_api_key)
    if user_id is None:
        logger.info("Rejected request with unknown API key")
        raise UnauthorizedError("Invalid API key")
    return user_id
