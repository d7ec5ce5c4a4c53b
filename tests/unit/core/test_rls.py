"""Unit tests for RLS session context helpers."""

import uuid
from unittest.mock import AsyncMock

import pytest

from codepocket.core.rls import set_rls_user_context


@pytest.mark.asyncio
async def test_sets_transaction_local_user_id():
    session = AsyncMock()
    user_id = uuid.uuid4()

    await set_rls_user_context(session, user_id)

    statement, params = session.execute.await_args.args
    assert "set_config('app.current_user_id', :user_id, true)" in str(statement)
    assert params == {"user_id": str(user_id)}

