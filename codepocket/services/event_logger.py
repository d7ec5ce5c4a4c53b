"""Persistent product and security event logging.

Events are written to the ``logs`` table in their own session, normally from
a FastAPI background task after the response has been sent. A failed write
is reported to the application log and never reaches the request.

Usage:
    background_tasks.add_task(event_logger.snippet_created, user.id, snippet.id, title)
"""

import logging
import uuid as uuid_pkg
from typing import Any

from fastapi import Request

from codepocket.core.database import async_session_maker
from codepocket.models.log_entry import EventCategory

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, else "unknown"."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return UNKNOWN


def get_user_agent(request: Request) -> str:
    return request.headers.get("user-agent") or UNKNOWN


class EventLogger:
    """Writes rows to the event log. Every method is safe to run as a background task."""

    async def log(
        self,
        event_type: str,
        category: EventCategory | str,
        details: dict[str, Any] | None = None,
        user_id: uuid_pkg.UUID | None = None,
        ip_address: str = UNKNOWN,
        user_agent: str = UNKNOWN,
    ) -> None:
        from codepocket.domain import log_ops

        category_value = category.value if isinstance(category, EventCategory) else category
        try:
            async with async_session_maker() as db:
                await log_ops.create(
                    db,
                    event_type=event_type,
                    event_category=category_value,
                    details=details,
                    user_id=user_id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
                await db.commit()
        except Exception as e:
            logger.error(f"Failed to record event {category_value}/{event_type}: {e}")

    # Snippets

    async def snippet_created(
        self, user_id: uuid_pkg.UUID, snippet_id: uuid_pkg.UUID, title: str
    ) -> None:
        await self.log(
            "snippet_created",
            EventCategory.SNIPPET,
            {"snippet_id": str(snippet_id), "title": title},
            user_id=user_id,
        )

    async def snippet_updated(self, user_id: uuid_pkg.UUID, snippet_id: uuid_pkg.UUID) -> None:
        await self.log(
            "snippet_updated",
            EventCategory.SNIPPET,
            {"snippet_id": str(snippet_id)},
            user_id=user_id,
        )

    async def snippet_deleted(
        self, user_id: uuid_pkg.UUID, snippet_id: uuid_pkg.UUID, permanent: bool = False
    ) -> None:
        await self.log(
            "snippet_deleted",
            EventCategory.SNIPPET,
            {"snippet_id": str(snippet_id), "permanent": permanent},
            user_id=user_id,
        )

    # Groups

    async def group_created(
        self, user_id: uuid_pkg.UUID, group_id: uuid_pkg.UUID, name: str
    ) -> None:
        await self.log(
            "group_created",
            EventCategory.GROUP,
            {"group_id": str(group_id), "name": name},
            user_id=user_id,
        )

    async def group_joined(self, user_id: uuid_pkg.UUID, group_id: uuid_pkg.UUID) -> None:
        await self.log(
            "group_joined",
            EventCategory.GROUP,
            {"group_id": str(group_id)},
            user_id=user_id,
        )

    # Security and errors

    async def failed_admin_login(self, ip_address: str, user_agent: str) -> None:
        await self.log(
            "failed_admin_login",
            EventCategory.SECURITY,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    async def error(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        user_id: uuid_pkg.UUID | None = None,
    ) -> None:
        await self.log(
            "error",
            EventCategory.ERROR,
            {"message": message, **(context or {})},
            user_id=user_id,
        )


event_logger = EventLogger()
