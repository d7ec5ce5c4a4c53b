import uuid as uuid_pkg
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseOperations(Generic[ModelType]):
    """Row access shared by snippets, folders and API keys.

    Each of these tables has an ``id`` primary key and a ``user_id`` owner
    column. Reads that take a ``user_id`` never return another user's row,
    even on connections that bypass RLS.
    """

    def __init__(self, model: type[ModelType]):
        self.model = model

    async def get(self, db: AsyncSession, id: uuid_pkg.UUID) -> ModelType | None:
        """Unscoped lookup. Callers check ownership themselves."""
        result = await db.execute(select(self.model).where(self.model.id == id))  # type: ignore[attr-defined]
        return result.scalar_one_or_none()

    async def get_by_user(
        self,
        db: AsyncSession,
        user_id: uuid_pkg.UUID,
        id: uuid_pkg.UUID,
    ) -> ModelType | None:
        statement = select(self.model).where(
            self.model.id == id,  # type: ignore[attr-defined]
            self.model.user_id == user_id,  # type: ignore[attr-defined]
        )
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def list_newest(
        self,
        db: AsyncSession,
        user_id: uuid_pkg.UUID,
        limit: int,
    ) -> list[ModelType]:
        statement = (
            select(self.model)
            .where(self.model.user_id == user_id)  # type: ignore[attr-defined]
            .order_by(self.model.created_at.desc())  # type: ignore[attr-defined]
            .limit(limit)
        )
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def create(
        self,
        db: AsyncSession,
        obj_in: dict[str, Any],
        user_id: uuid_pkg.UUID,
    ) -> ModelType:
        db_obj = self.model(**obj_in, user_id=user_id)
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        db_obj: ModelType,
        obj_in: dict[str, Any],
    ) -> ModelType:
        """Write every key of ``obj_in`` onto the row, None included.

        Partial updates pass ``model_dump(exclude_unset=True)``.
        """
        for field, value in obj_in.items():
            setattr(db_obj, field, value)
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj
