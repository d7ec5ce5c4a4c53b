"""Engines and session factories.

Requests go through the Supabase transaction pooler (port 6543). Maintenance
jobs and DDL use the direct connection (port 5432), because advisory locks are
held per session and the pooler multiplexes sessions.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from codepocket.config import settings


def _session_factory(bind: AsyncEngine) -> Any:
    return sessionmaker(  # type: ignore[call-overload]
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_size=10,
    max_overflow=20,
    pool_pre_ping=True,
    pool_recycle=300,  # pooler closes idle server connections
    pool_timeout=30,
    # The transaction pooler cannot hold prepared statements
    connect_args={
        "statement_cache_size": 0,
        "prepared_statement_cache_size": 0,
        "command_timeout": 60,
    },
)

direct_engine = create_async_engine(
    settings.database_url_direct,
    echo=False,
    pool_size=3,
    max_overflow=5,
    pool_pre_ping=True,
    connect_args={"command_timeout": 300},
)

async_session_maker = _session_factory(engine)
direct_session_maker = _session_factory(direct_engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session: one transaction per request.

    Committed after the handler returns, rolled back if anything raises.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create missing tables in debug runs. Deployed databases use Alembic."""
    async with direct_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
