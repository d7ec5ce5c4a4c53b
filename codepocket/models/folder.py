from sqlmodel import Field, SQLModel

from codepocket.models.base import TimestampMixin, UserOwnedMixin, UUIDMixin


class Folder(UUIDMixin, TimestampMixin, UserOwnedMixin, table=True):
    """A user's folder for organising snippets."""

    __tablename__ = "folders"

    name: str = Field(max_length=50, nullable=False)
    description: str | None = Field(default=None, max_length=1000)
    color: str = Field(default="emerald", max_length=20, nullable=False)


class FolderCreate(SQLModel):
    """Schema for creating a folder."""

    name: str
    description: str | None = None
    color: str = "emerald"


class FolderUpdate(SQLModel):
    """Schema for updating a folder."""

    name: str | None = None
    description: str | None = None
    color: str | None = None
