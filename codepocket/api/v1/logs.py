"""Event ingestion for the browser client."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.api.deps import get_current_user_optional
from codepocket.core.database import get_db
from codepocket.core.rate_limit import LOG_INGEST_LIMIT, client_address, rate_limiter
from codepocket.domain import log_ops
from codepocket.models.log_entry import EventCategory, LogEntryCreate
from codepocket.models.user import User
from codepocket.services.event_logger import get_client_ip, get_user_agent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/logs", tags=["logs"])

CATEGORIES = {c.value for c in EventCategory}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_log(
    data: LogEntryCreate,
    request: Request,
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """
    Record a client-side event.

    Anonymous events are accepted (failed logins happen before there is a
    session). IP and user agent come from the request, never the body.
    """
    rate_limiter.enforce(client_address(request), LOG_INGEST_LIMIT, scope="log_ingest")

    if not data.event_type or not data.event_category:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields: event_type, event_category",
        )
    if data.event_category not in CATEGORIES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"event_category must be one of: {', '.join(sorted(CATEGORIES))}",
        )

    await log_ops.create(
        db,
        event_type=data.event_type[:100],
        event_category=data.event_category,
        details=data.metadata,
        user_id=current_user.id if current_user else None,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request)[:500],
    )
    return {"success": True}
