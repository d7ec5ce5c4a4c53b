"""Snippet model - a saved piece of code."""

import uuid as uuid_pkg
from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from codepocket.models.base import TimestampMixin, UserOwnedMixin, UUIDMixin


class SnippetSource(str, Enum):
    """Where a snippet was created."""

    WEB = "web"
    VSCODE = "vscode"
    API = "api"


class Snippet(UUIDMixin, TimestampMixin, UserOwnedMixin, table=True):
    """A user's code snippet.

    Soft-deleted snippets keep their row with ``deleted_at`` set and are
    shown only in the archive until restored or permanently deleted.
    """

    __tablename__ = "snippets"

    folder_id: uuid_pkg.UUID | None = Field(
        default=None,
        foreign_key="folders.id",
        ondelete="SET NULL",
        nullable=True,
        index=True,
    )

    title: str = Field(max_length=200, nullable=False)
    description: str | None = Field(default=None)
    code: str = Field(nullable=False)
    language: str = Field(default="plaintext", max_length=30, nullable=False)
    tags: list[str] = Field(default=[], sa_column=Column(JSONB, server_default="[]"))
    is_favorite: bool = Field(default=False, nullable=False)
    source: str = Field(default=SnippetSource.WEB.value, max_length=20, nullable=False)

    deleted_at: datetime | None = Field(  # type: ignore[call-overload]
        default=None,
        sa_type=DateTime(timezone=True),
        index=True,
    )


class SnippetCreate(SQLModel):
    """Schema for creating a snippet."""

    title: str
    code: str
    language: str = "plaintext"
    description: str | None = None
    tags: list[str] = []
    folder_id: uuid_pkg.UUID | None = None
    is_favorite: bool = False
    source: str = SnippetSource.WEB.value


class SnippetUpdate(SQLModel):
    """Schema for updating a snippet. Omitted fields are left unchanged."""

    title: str | None = None
    code: str | None = None
    language: str | None = None
    description: str | None = None
    tags: list[str] | None = None
    folder_id: uuid_pkg.UUID | None = None
    is_favorite: bool | None = None


class SnippetFavoriteUpdate(SQLModel):
    """Schema for setting the favorite flag explicitly."""

    is_favorite: bool
