"""Bearer-token authentication against Supabase Auth.

Access tokens are ES256 JWTs signed with a key published at the project's
JWKS endpoint. A verified token yields the caller's ``User`` row, and
``get_db_with_rls`` hands routes a session already scoped to that user.
"""

import hashlib
import logging
import time
import uuid as uuid_pkg
from collections.abc import AsyncGenerator
from typing import Annotated, Any

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from jose.backends import ECKey
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.config import settings
from codepocket.core.cache import auth_cache, cache_key
from codepocket.core.database import get_db
from codepocket.core.rls import set_rls_user_context
from codepocket.domain import user_ops
from codepocket.models.user import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

JWT_ALGORITHM = "ES256"
JWT_AUDIENCE = "authenticated"
JWKS_MAX_AGE_SECONDS = 3600.0


class _JwksState:
    keys: dict[str, Any] = {}
    fetched_at: float = 0.0


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


async def get_jwks(force_refresh: bool = False) -> dict[str, Any]:
    """Return the signing key set, refetching it once an hour or on demand."""
    age = time.monotonic() - _JwksState.fetched_at
    if _JwksState.keys and not force_refresh and age < JWKS_MAX_AGE_SECONDS:
        return _JwksState.keys

    async with httpx.AsyncClient() as client:
        response = await client.get(settings.supabase_jwks_url)
        response.raise_for_status()

    _JwksState.keys = response.json()
    _JwksState.fetched_at = time.monotonic()
    return _JwksState.keys


def get_signing_key(jwks: dict[str, Any], token: str) -> ECKey:
    """Pick the JWK whose ``kid`` matches the token header."""
    kid = jwt.get_unverified_header(token).get("kid")
    match = next((k for k in jwks.get("keys", []) if k.get("kid") == kid), None)
    if match is None:
        raise ValueError("Unable to find matching key in JWKS")
    return ECKey(match, algorithm=JWT_ALGORITHM)


async def _decode_token(token: str, force_refresh: bool = False) -> dict[str, Any]:
    jwks = await get_jwks(force_refresh=force_refresh)
    return jwt.decode(
        token,
        get_signing_key(jwks, token),
        algorithms=[JWT_ALGORITHM],
        audience=JWT_AUDIENCE,
    )


async def verify_token(token: str) -> dict[str, Any]:
    """
    Check a token's signature and audience and return its claims.

    Claims are cached under a hash of the token and reused until the token's
    own ``exp``. A failure against the cached key set is retried once with a
    freshly fetched one, since Supabase may have rotated keys.
    """
    token_key = cache_key("auth", hashlib.sha256(token.encode("utf-8")).hexdigest())
    cached = auth_cache.get(token_key)
    if cached is not None and cached.get("exp", 0) > time.time():
        return cached

    try:
        try:
            claims = await _decode_token(token)
        except (JWTError, ValueError):
            logger.info("Token rejected with cached JWKS, refetching keys")
            claims = await _decode_token(token, force_refresh=True)
    except (JWTError, ValueError, httpx.HTTPError) as e:
        raise _unauthorized("Could not validate credentials") from e

    auth_cache.set(token_key, claims)
    return claims


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to a user, inserting the mirror row if needed."""
    if not credentials:
        raise _unauthorized("Not authenticated")

    claims = await verify_token(credentials.credentials)
    try:
        user_id = uuid_pkg.UUID(claims["sub"])
    except (KeyError, TypeError, ValueError):
        raise _unauthorized("Invalid authentication token") from None

    return await user_ops.get_or_create(db, user_id, claims.get("email"))


async def get_current_user_optional(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    if not credentials:
        return None
    try:
        return await get_current_user(credentials, db)
    except HTTPException:
        return None


DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]


async def get_db_with_rls(
    db: DbSession,
    current_user: CurrentUser,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Session with ``app.current_user_id`` set for the current transaction.

    The setting is transaction-local, so it is discarded when the request's
    transaction ends and never leaks to another client through the pooler.

    Usage:
        @router.get("/snippets")
        async def endpoint(db: AsyncSession = Depends(get_db_with_rls)):
            ...
    """
    await set_rls_user_context(db, current_user.id)
    yield db
