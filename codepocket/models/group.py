"""Group models - teams that share snippets."""

import uuid as uuid_pkg
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel
from sqlalchemy import Column, DateTime, String, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from codepocket.models.base import TimestampMixin, UUIDMixin, utcnow


class Group(UUIDMixin, TimestampMixin, table=True):
    """
    A group of users sharing snippets.

    The owner is also stored as a member so that membership checks
    need only one table.
    """

    __tablename__ = "groups"

    name: str = Field(max_length=100, nullable=False)
    description: str | None = Field(default=None, max_length=500)
    owner_id: uuid_pkg.UUID = Field(
        foreign_key="users.id",
        ondelete="CASCADE",
        nullable=False,
        index=True,
    )


class GroupMember(UUIDMixin, table=True):
    """Membership - join table between users and groups."""

    __tablename__ = "group_members"
    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_group_member"),)

    group_id: uuid_pkg.UUID = Field(
        foreign_key="groups.id",
        ondelete="CASCADE",
        nullable=False,
        index=True,
    )
    user_id: uuid_pkg.UUID = Field(
        foreign_key="users.id",
        ondelete="CASCADE",
        nullable=False,
        index=True,
    )
    joined_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": text("now()")},
    )


class InvitationStatus(str, Enum):
    """Lifecycle of an invitation. Only PENDING invitations can change state."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class GroupInvitation(UUIDMixin, table=True):
    """An email invitation to join a group, redeemable by code."""

    __tablename__ = "group_invitations"

    group_id: uuid_pkg.UUID = Field(
        foreign_key="groups.id",
        ondelete="CASCADE",
        nullable=False,
        index=True,
    )
    inviter_id: uuid_pkg.UUID = Field(
        foreign_key="users.id",
        ondelete="CASCADE",
        nullable=False,
    )
    # Stored lower-case
    email: str = Field(max_length=254, nullable=False, index=True)
    invite_code: str = Field(max_length=64, unique=True, index=True, nullable=False)
    status: str = Field(
        default=InvitationStatus.PENDING.value,
        sa_column=Column(String(20), nullable=False, server_default="pending", index=True),
    )
    created_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": text("now()")},
    )
    expires_at: datetime = Field(  # type: ignore[call-overload]
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
    responded_at: datetime | None = Field(  # type: ignore[call-overload]
        default=None, sa_type=DateTime(timezone=True)
    )


class GroupSnippet(UUIDMixin, table=True):
    """A snippet shared into a group."""

    __tablename__ = "group_snippets"
    __table_args__ = (UniqueConstraint("group_id", "snippet_id", name="uq_group_snippet"),)

    group_id: uuid_pkg.UUID = Field(
        foreign_key="groups.id",
        ondelete="CASCADE",
        nullable=False,
        index=True,
    )
    snippet_id: uuid_pkg.UUID = Field(
        foreign_key="snippets.id",
        ondelete="CASCADE",
        nullable=False,
        index=True,
    )
    shared_by: uuid_pkg.UUID = Field(
        foreign_key="users.id",
        ondelete="CASCADE",
        nullable=False,
    )
    shared_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": text("now()")},
    )


class ActivityType(str, Enum):
    """Kinds of entries in a group's activity feed."""

    GROUP_CREATED = "group_created"
    GROUP_UPDATED = "group_updated"
    MEMBER_JOINED = "member_joined"
    MEMBER_LEFT = "member_left"
    MEMBER_INVITED = "member_invited"
    MEMBER_REMOVED = "member_removed"
    SNIPPET_SHARED = "snippet_shared"
    SNIPPET_REMOVED = "snippet_removed"


class GroupActivity(UUIDMixin, table=True):
    """Append-only activity feed entry."""

    __tablename__ = "group_activities"

    group_id: uuid_pkg.UUID = Field(
        foreign_key="groups.id",
        ondelete="CASCADE",
        nullable=False,
        index=True,
    )
    activity_type: str = Field(max_length=30, nullable=False, index=True)
    actor_id: uuid_pkg.UUID | None = Field(
        default=None,
        foreign_key="users.id",
        ondelete="SET NULL",
        nullable=True,
    )
    target_user_id: uuid_pkg.UUID | None = Field(
        default=None,
        foreign_key="users.id",
        ondelete="SET NULL",
        nullable=True,
    )
    target_snippet_id: uuid_pkg.UUID | None = Field(
        default=None,
        foreign_key="snippets.id",
        ondelete="SET NULL",
        nullable=True,
    )
    # "metadata" is reserved on SQLModel classes, so the attribute is renamed
    details: dict[str, Any] = Field(
        default={}, sa_column=Column("metadata", JSONB, server_default="{}")
    )
    created_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": text("now()")},
        index=True,
    )


# Request schemas
class GroupCreate(BaseModel):
    """Schema for creating a group. Length rules are checked by the router."""

    name: str | None = None
    description: str | None = None


class GroupUpdate(BaseModel):
    """Schema for updating a group."""

    name: str | None = None
    description: str | None = None


class InvitationCreate(BaseModel):
    """Schema for inviting someone to a group by email."""

    email: str


class InvitationResponse(BaseModel):
    """Schema for answering an invitation from the caller's inbox."""

    invitation_id: uuid_pkg.UUID | None = None
    action: str | None = None


class GroupSnippetShare(BaseModel):
    """Schema for sharing an existing snippet into a group."""

    snippet_id: uuid_pkg.UUID


class GroupSnippetCreate(SQLModel):
    """Schema for creating a snippet and sharing it into a group in one call."""

    title: str
    code: str
    language: str = "plaintext"
    description: str | None = None
    tags: list[str] = []
    folder_id: uuid_pkg.UUID | None = None
