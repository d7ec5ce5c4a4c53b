"""API keys used by the editor extension."""

from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from codepocket.models.base import TimestampMixin, UserOwnedMixin, UUIDMixin


class ApiKey(UUIDMixin, TimestampMixin, UserOwnedMixin, table=True):
    """An API key owned by a user.

    Only the SHA-256 digest of the key is stored; ``key_prefix`` keeps the
    first characters so the key can be recognised in listings.
    """

    __tablename__ = "api_keys"

    name: str = Field(max_length=100, nullable=False)
    key_hash: str = Field(max_length=64, unique=True, index=True, nullable=False)
    key_prefix: str = Field(max_length=16, nullable=False)
    last_used_at: datetime | None = Field(  # type: ignore[call-overload]
        default=None, sa_type=DateTime(timezone=True)
    )


class ApiKeyCreate(SQLModel):
    """Schema for creating an API key."""

    name: str = Field(min_length=1, max_length=100)
