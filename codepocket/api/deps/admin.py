"""Admin panel authentication via a shared password header."""

import logging
import secrets

from fastapi import Header, HTTPException, Request, status

from codepocket.config import settings
from codepocket.core.rate_limit import ADMIN_LOGIN_LIMIT, client_address, rate_limiter
from codepocket.services.event_logger import event_logger, get_client_ip, get_user_agent

logger = logging.getLogger(__name__)

ADMIN_LOGIN_SCOPE = "admin_login"


def _password_matches(candidate: str) -> bool:
    return secrets.compare_digest(
        candidate.encode("utf-8"), settings.admin_password.encode("utf-8")
    )


async def require_admin(
    request: Request,
    x_admin_password: str | None = Header(default=None),
) -> None:
    """
    Validate the X-Admin-Password header against the configured password.

    Failed attempts count against a window keyed on the peer address and
    are recorded as security events. Once the window is exhausted even a
    correct password is refused until it resets.
    """
    if not settings.admin_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin panel not configured",
        )

    peer = client_address(request)
    if rate_limiter.get_remaining(peer, ADMIN_LOGIN_LIMIT, ADMIN_LOGIN_SCOPE) == 0:
        # Consumes nothing further; enforce() raises with the proper Retry-After
        rate_limiter.enforce(peer, ADMIN_LOGIN_LIMIT, ADMIN_LOGIN_SCOPE)

    if x_admin_password and _password_matches(x_admin_password):
        return

    rate_limiter.check(peer, ADMIN_LOGIN_LIMIT, ADMIN_LOGIN_SCOPE)
    ip_address = get_client_ip(request)
    logger.warning(f"Failed admin login from {peer}")
    # Awaited directly: background tasks don't run when the request fails
    await event_logger.failed_admin_login(ip_address, get_user_agent(request))
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid admin password",
    )
