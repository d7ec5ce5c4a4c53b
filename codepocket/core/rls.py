"""Row-Level Security (RLS) context management.

The Supabase Postgres enforces per-row access on snippets, folders, api_keys,
profiles and the group tables. Policies read the caller from the
``app.current_user_id`` setting through the ``app_user_id()`` SQL function
created by the row-level security migration.

Key concepts:
- SET LOCAL scopes the setting to the current transaction (safe with PgBouncer)
- The service connection (table owner) is not subject to the policies, so the
  application still performs its own ownership checks
"""

from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession


async def set_rls_user_context(session: AsyncSession, user_id: UUID) -> None:
    """
    Set the current user context for RLS policies.

    The setting is automatically reset when the transaction ends.

    Example:
        async with async_session_maker() as session:
            await set_rls_user_context(session, current_user.id)
            snippets = await session.execute(select(Snippet))
    """
    await session.execute(
        # SET LOCAL takes no bind parameters; set_config with is_local=true is equivalent
        text("SELECT set_config('app.current_user_id', :user_id, true)"),
        {"user_id": str(user_id)},
    )
