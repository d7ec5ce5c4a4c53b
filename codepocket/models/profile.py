"""Public profile attached one-to-one to a user."""

import uuid as uuid_pkg

from sqlmodel import Field, SQLModel

from codepocket.models.base import TimestampMixin


class Profile(TimestampMixin, table=True):
    """Profile row, created lazily the first time it is read.

    Usernames are stored lower-case so the unique index is case-insensitive.
    """

    __tablename__ = "profiles"

    id: uuid_pkg.UUID = Field(
        foreign_key="users.id",
        ondelete="CASCADE",
        primary_key=True,
        nullable=False,
    )
    username: str | None = Field(default=None, max_length=20, unique=True, index=True)
    display_name: str | None = Field(default=None, max_length=100)
    bio: str | None = Field(default=None, max_length=500)
    avatar_url: str | None = Field(default=None, max_length=500)


class ProfileUpdate(SQLModel):
    """Schema for updating a profile. Omitted fields are left unchanged."""

    username: str | None = None
    display_name: str | None = None
    bio: str | None = None
