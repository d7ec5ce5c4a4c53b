"""Event log - append-only record of product and security events."""

import uuid as uuid_pkg
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel
from sqlalchemy import Column, DateTime, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from codepocket.models.base import UUIDMixin, utcnow


class EventCategory(str, Enum):
    """Top-level grouping of logged events."""

    AUTH = "auth"
    SNIPPET = "snippet"
    GROUP = "group"
    ERROR = "error"
    SECURITY = "security"


class LogEntry(UUIDMixin, table=True):
    """A single logged event. Rows are only removed by the retention purge."""

    __tablename__ = "logs"

    event_type: str = Field(max_length=100, nullable=False, index=True)
    event_category: str = Field(max_length=20, nullable=False, index=True)
    # "metadata" is reserved on SQLModel classes, so the attribute is renamed
    details: dict[str, Any] = Field(
        default={}, sa_column=Column("metadata", JSONB, server_default="{}")
    )
    user_id: uuid_pkg.UUID | None = Field(
        default=None,
        foreign_key="users.id",
        ondelete="SET NULL",
        nullable=True,
        index=True,
    )
    ip_address: str = Field(default="unknown", max_length=100)
    user_agent: str = Field(default="unknown", max_length=500)

    created_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": text("now()")},
        index=True,
    )


class LogEntryCreate(BaseModel):
    """Schema for events submitted by the browser client.

    Fields are optional here so the endpoint can answer with its own 400 message.
    """

    event_type: str | None = None
    event_category: str | None = None
    metadata: dict[str, Any] | None = None
