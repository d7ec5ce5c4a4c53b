"""Editor extension API tests (X-API-Key authentication)."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from codepocket.domain import snippet_ops

from tests.helpers.mock_factories import make_mock_snippet


@pytest.mark.asyncio
async def test_missing_key_is_401(anon_client: AsyncClient):
    resp = await anon_client.get("/api/v1/extension/snippets")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "API key required"


@pytest.mark.asyncio
async def test_list_is_cached(extension_client: AsyncClient, extension_user_id):
    snippet = make_mock_snippet(user_id=extension_user_id)
    with patch.object(
        snippet_ops, "list_for_extension", new_callable=AsyncMock, return_value=[snippet]
    ) as mock_list:
        first = await extension_client.get("/api/v1/extension/snippets")
        second = await extension_client.get("/api/v1/extension/snippets")

    assert first.status_code == 200
    assert first.json() == second.json()
    assert first.json()["snippets"][0]["id"] == str(snippet.id)
    mock_list.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_requires_title_and_code(extension_client: AsyncClient):
    resp = await extension_client.post("/api/v1/extension/snippets", json={"title": "only"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Title and code are required"


@pytest.mark.asyncio
async def test_create_defaults_source_and_language(
    extension_client: AsyncClient, extension_user_id
):
    snippet = make_mock_snippet(user_id=extension_user_id, language="plaintext", source="vscode")
    with patch.object(
        snippet_ops, "create_snippet", new_callable=AsyncMock, return_value=snippet
    ) as mock_create:
        resp = await extension_client.post(
            "/api/v1/extension/snippets", json={"title": "t", "code": "c"}
        )

    assert resp.status_code == 201
    assert resp.json()["snippet"]["id"] == str(snippet.id)
    data = mock_create.await_args.args[2]
    assert data.language == "plaintext"
    assert data.source == "vscode"


@pytest.mark.asyncio
async def test_update_cannot_change_source(extension_client: AsyncClient, extension_user_id):
    snippet = make_mock_snippet(user_id=extension_user_id)
    with (
        patch.object(snippet_ops, "get_active", new_callable=AsyncMock, return_value=snippet),
        patch.object(
            snippet_ops, "update_snippet", new_callable=AsyncMock, return_value=snippet
        ) as mock_update,
    ):
        resp = await extension_client.put(
            f"/api/v1/extension/snippets/{snippet.id}",
            json={"title": "Renamed", "source": "web"},
        )

    assert resp.status_code == 200
    update = mock_update.await_args.args[2]
    assert update.model_dump(exclude_unset=True) == {"title": "Renamed"}


@pytest.mark.asyncio
async def test_delete_archives(extension_client: AsyncClient, extension_user_id):
    snippet = make_mock_snippet(user_id=extension_user_id)
    with (
        patch.object(snippet_ops, "get_active", new_callable=AsyncMock, return_value=snippet),
        patch.object(snippet_ops, "soft_delete", new_callable=AsyncMock) as mock_soft_delete,
    ):
        resp = await extension_client.delete(f"/api/v1/extension/snippets/{snippet.id}")

    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    mock_soft_delete.assert_awaited_once()


@pytest.mark.asyncio
async def test_unknown_snippet_is_404(extension_client: AsyncClient):
    with patch.object(snippet_ops, "get_active", new_callable=AsyncMock, return_value=None):
        resp = await extension_client.get(f"/api/v1/extension/snippets/{uuid.uuid4()}")
    assert resp.status_code == 404
