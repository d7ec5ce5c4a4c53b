"""Snippet API endpoint tests."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from codepocket.domain import snippet_ops

from tests.helpers.mock_factories import make_mock_snippet


@pytest.mark.asyncio
async def test_requires_auth(anon_client: AsyncClient):
    """GET /api/v1/snippets without a bearer token returns 401."""
    resp = await anon_client.get("/api/v1/snippets")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_list_snippets_passes_filters(api_client: AsyncClient, test_user):
    snippet = make_mock_snippet(user_id=test_user.id)
    with patch.object(
        snippet_ops, "list_active", new_callable=AsyncMock, return_value=[snippet]
    ) as mock_list:
        resp = await api_client.get(
            "/api/v1/snippets", params={"language": "python", "tag": "utils", "favorites": "true"}
        )

    assert resp.status_code == 200
    data = resp.json()
    assert [s["id"] for s in data] == [str(snippet.id)]
    kwargs = mock_list.await_args.kwargs
    assert kwargs["language"] == "python"
    assert kwargs["tag"] == "utils"
    assert kwargs["favorites_only"] is True


@pytest.mark.asyncio
async def test_create_snippet(api_client: AsyncClient, test_user, mock_event_log):
    snippet = make_mock_snippet(user_id=test_user.id, title="Retry helper")
    with patch.object(
        snippet_ops, "create_snippet", new_callable=AsyncMock, return_value=snippet
    ):
        resp = await api_client.post(
            "/api/v1/snippets",
            json={"title": "Retry helper", "code": "def retry(): ...", "language": "python"},
        )

    assert resp.status_code == 201
    assert resp.json()["title"] == "Retry helper"
    # The creation event runs as a background task after the response
    assert mock_event_log.await_args.args[0] == "snippet_created"


@pytest.mark.asyncio
async def test_create_snippet_validation_error(api_client: AsyncClient):
    with patch.object(
        snippet_ops,
        "create_snippet",
        new_callable=AsyncMock,
        side_effect=ValueError("Title is required"),
    ):
        resp = await api_client.post("/api/v1/snippets", json={"title": " ", "code": "x"})

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Title is required"


@pytest.mark.asyncio
async def test_get_snippet_not_found(api_client: AsyncClient):
    with patch.object(snippet_ops, "get_by_user", new_callable=AsyncMock, return_value=None):
        resp = await api_client.get(f"/api/v1/snippets/{uuid.uuid4()}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_update_archived_snippet_is_404(api_client: AsyncClient):
    """Archived snippets must be restored before they can be edited."""
    with patch.object(snippet_ops, "get_active", new_callable=AsyncMock, return_value=None):
        resp = await api_client.patch(f"/api/v1/snippets/{uuid.uuid4()}", json={"title": "x"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_toggle_favorite(api_client: AsyncClient, test_user):
    snippet = make_mock_snippet(user_id=test_user.id)
    favorited = make_mock_snippet(id=snippet.id, user_id=test_user.id, is_favorite=True)
    with (
        patch.object(snippet_ops, "get_active", new_callable=AsyncMock, return_value=snippet),
        patch.object(
            snippet_ops, "toggle_favorite", new_callable=AsyncMock, return_value=favorited
        ),
    ):
        resp = await api_client.post(f"/api/v1/snippets/{snippet.id}/favorite")

    assert resp.status_code == 200
    assert resp.json()["is_favorite"] is True


@pytest.mark.asyncio
async def test_delete_moves_to_archive(api_client: AsyncClient, test_user):
    snippet = make_mock_snippet(user_id=test_user.id)
    with (
        patch.object(snippet_ops, "get_active", new_callable=AsyncMock, return_value=snippet),
        patch.object(snippet_ops, "soft_delete", new_callable=AsyncMock) as mock_soft_delete,
    ):
        resp = await api_client.delete(f"/api/v1/snippets/{snippet.id}")

    assert resp.status_code == 204
    mock_soft_delete.assert_awaited_once()


@pytest.mark.asyncio
async def test_restore(api_client: AsyncClient, test_user):
    archived = make_mock_snippet(user_id=test_user.id, deleted_at=datetime.now(UTC))
    restored = make_mock_snippet(id=archived.id, user_id=test_user.id)
    with (
        patch.object(snippet_ops, "get_by_user", new_callable=AsyncMock, return_value=archived),
        patch.object(snippet_ops, "restore", new_callable=AsyncMock, return_value=restored),
    ):
        resp = await api_client.post(f"/api/v1/snippets/{archived.id}/restore")

    assert resp.status_code == 200
    assert resp.json()["deleted_at"] is None


@pytest.mark.asyncio
async def test_permanent_delete_requires_archive(api_client: AsyncClient, test_user):
    snippet = make_mock_snippet(user_id=test_user.id)
    with (
        patch.object(snippet_ops, "get_by_user", new_callable=AsyncMock, return_value=snippet),
        patch.object(
            snippet_ops,
            "delete_permanently",
            new_callable=AsyncMock,
            side_effect=ValueError("Only archived snippets can be permanently deleted"),
        ),
    ):
        resp = await api_client.delete(f"/api/v1/snippets/{snippet.id}/permanent")

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_list_archive(api_client: AsyncClient, test_user):
    archived = make_mock_snippet(user_id=test_user.id, deleted_at=datetime.now(UTC))
    with patch.object(
        snippet_ops, "list_archived", new_callable=AsyncMock, return_value=[archived]
    ):
        resp = await api_client.get("/api/v1/snippets/archive")

    assert resp.status_code == 200
    assert resp.json()[0]["deleted_at"] is not None
