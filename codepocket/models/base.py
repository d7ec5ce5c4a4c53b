"""Column mixins shared by the CodePocket tables."""

import uuid as uuid_pkg
from datetime import UTC, datetime

from sqlalchemy import DateTime, text
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(UTC)


class UUIDMixin(SQLModel):
    """Random UUID primary key, generated client-side with a database fallback."""

    id: uuid_pkg.UUID = Field(
        default_factory=uuid_pkg.uuid4,
        primary_key=True,
        index=True,
        nullable=False,
        sa_column_kwargs={"server_default": text("gen_random_uuid()")},
    )


class CreatedAtMixin(SQLModel):
    created_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": text("now()")},
    )


class TimestampMixin(CreatedAtMixin):
    """created_at plus an updated_at the database bumps on every UPDATE.

    Both columns are TIMESTAMP WITH TIME ZONE; sa_type overrides SQLModel's
    naive DateTime mapping.
    """

    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": text("now()"), "onupdate": text("now()")},
    )


class UserOwnedMixin(SQLModel):
    """Owner column. RLS policies compare it to app.current_user_id."""

    user_id: uuid_pkg.UUID = Field(
        foreign_key="users.id",
        ondelete="CASCADE",
        nullable=False,
        index=True,
    )
