"""Admin panel endpoints, protected by the X-Admin-Password header."""

import logging
import math
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.api.deps import require_admin
from codepocket.config import settings
from codepocket.core.cache import clear_all_caches, get_cache_stats
from codepocket.core.database import get_db
from codepocket.domain import admin_ops, log_ops, snippet_ops
from codepocket.models.log_entry import LogEntry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


class AdminUser(BaseModel):
    """A user row in the admin listing."""

    id: str
    email: str | None
    username: str | None
    display_name: str | None
    created_at: str
    snippet_count: int
    group_count: int


class Pagination(BaseModel):
    currentPage: int
    itemsPerPage: int
    totalItems: int
    totalPages: int


class AdminUserList(BaseModel):
    users: list[AdminUser]
    pagination: Pagination


class SystemInfo(BaseModel):
    appVersion: str
    databaseStatus: str
    uptime: str
    totalLogs: int
    totalUsers: int
    totalSnippets: int
    totalGroups: int


class SecurityInfo(BaseModel):
    adminPasswordSet: bool
    sessionTimeout: str


class AdminSettings(BaseModel):
    system: SystemInfo
    security: SecurityInfo


class AdminAction(BaseModel):
    """Schema for a maintenance action."""

    action: str | None = None


def _log_to_dict(entry: LogEntry) -> dict[str, Any]:
    return {
        "id": str(entry.id),
        "event_type": entry.event_type,
        "event_category": entry.event_category,
        "metadata": entry.details or {},
        "user_id": str(entry.user_id) if entry.user_id else None,
        "ip_address": entry.ip_address,
        "user_agent": entry.user_agent,
        "created_at": entry.created_at.isoformat(),
    }


@router.get("/users")
async def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    search: str | None = None,
    db: AsyncSession = Depends(get_db),
) -> AdminUserList:
    """List users with snippet and group counts, searchable by email or username."""
    rows, total = await admin_ops.list_users(db, page=page, limit=limit, search=search)

    return AdminUserList(
        users=[
            AdminUser(
                id=str(r.id),
                email=r.email,
                username=r.username,
                display_name=r.display_name,
                created_at=r.created_at.isoformat(),
                snippet_count=r.snippet_count,
                group_count=r.group_count,
            )
            for r in rows
        ],
        pagination=Pagination(
            currentPage=page,
            itemsPerPage=limit,
            totalItems=total,
            totalPages=math.ceil(total / limit) if total else 0,
        ),
    )


@router.get("/settings")
async def get_settings(db: AsyncSession = Depends(get_db)) -> AdminSettings:
    """System overview and security configuration."""
    database_ok = await admin_ops.database_ok(db)

    if database_ok:
        totals = await admin_ops.system_totals(db)
        oldest = await log_ops.oldest_created_at(db)
        uptime_days = (datetime.now(UTC) - oldest).days if oldest else 0
        system = SystemInfo(
            appVersion=settings.app_version,
            databaseStatus="connected",
            uptime=f"{uptime_days} days",
            totalLogs=totals.total_logs,
            totalUsers=totals.total_users,
            totalSnippets=totals.total_snippets,
            totalGroups=totals.total_groups,
        )
    else:
        system = SystemInfo(
            appVersion=settings.app_version,
            databaseStatus="error",
            uptime="0 days",
            totalLogs=0,
            totalUsers=0,
            totalSnippets=0,
            totalGroups=0,
        )

    return AdminSettings(
        system=system,
        security=SecurityInfo(
            adminPasswordSet=settings.admin_enabled,
            sessionTimeout=settings.admin_session_timeout,
        ),
    )


@router.post("/settings")
async def run_action(
    data: AdminAction,
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Run a maintenance action."""
    if data.action == "clear_old_logs":
        deleted = await log_ops.purge_older_than(db, settings.log_retention_days)
        message = f"Deleted {deleted} logs older than {settings.log_retention_days} days"
    elif data.action == "clear_deleted_snippets":
        deleted = await snippet_ops.purge_archived(db, settings.deleted_snippet_retention_days)
        message = (
            f"Permanently deleted {deleted} snippets archived more than "
            f"{settings.deleted_snippet_retention_days} days ago"
        )
    elif data.action == "clear_cache":
        clear_all_caches()
        deleted = 0
        message = "Cleared all caches"
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid action",
        )

    logger.info(f"[admin] {data.action}: {message}")
    return {"success": True, "message": message, "deleted": deleted}


@router.get("/logs")
async def list_logs(
    category: str | None = None,
    event_type: str | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    logs = await log_ops.list_recent(db, category=category, event_type=event_type, limit=limit)
    return {"logs": [_log_to_dict(entry) for entry in logs]}


@router.get("/logs/analytics")
async def log_analytics(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    """Event totals per category, the latest events and cache statistics."""
    analytics = await log_ops.analytics(db)
    return {
        "totalEvents": analytics.total_events,
        "byCategory": analytics.by_category,
        "recentLogs": [_log_to_dict(entry) for entry in analytics.recent_logs],
        "cache": get_cache_stats(),
    }
