import uuid as uuid_pkg
from datetime import datetime

from sqlalchemy import DateTime, text
from sqlmodel import Field

from codepocket.models.base import CreatedAtMixin


class User(CreatedAtMixin, table=True):
    """
    Local copy of a Supabase Auth account.

    Only the id and email are kept. The row is inserted the first time a
    verified token for the account reaches the API; everything else owned by
    the user hangs off it with ON DELETE CASCADE.
    """

    __tablename__ = "users"

    id: uuid_pkg.UUID = Field(primary_key=True, nullable=False)
    email: str | None = Field(default=None, max_length=255, index=True)
    updated_at: datetime | None = Field(  # type: ignore[call-overload]
        default=None,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"onupdate": text("now()")},
    )
