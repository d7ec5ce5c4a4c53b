"""Folder API endpoint tests."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from codepocket.domain import folder_ops

from tests.helpers.mock_factories import make_mock_folder


@pytest.mark.asyncio
async def test_list_folders_with_counts(api_client: AsyncClient, test_user):
    folder = make_mock_folder(user_id=test_user.id)
    with patch.object(
        folder_ops, "list_with_counts", new_callable=AsyncMock, return_value=[(folder, 3)]
    ):
        resp = await api_client.get("/api/v1/folders")

    assert resp.status_code == 200
    assert resp.json()[0]["snippet_count"] == 3


@pytest.mark.asyncio
async def test_create_folder_rejects_bad_color(api_client: AsyncClient):
    with patch.object(
        folder_ops,
        "create_folder",
        new_callable=AsyncMock,
        side_effect=ValueError("Color must be one of: emerald"),
    ):
        resp = await api_client.post("/api/v1/folders", json={"name": "x", "color": "plaid"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_create_folder(api_client: AsyncClient, test_user):
    folder = make_mock_folder(user_id=test_user.id, name="Scripts")
    with patch.object(folder_ops, "create_folder", new_callable=AsyncMock, return_value=folder):
        resp = await api_client.post("/api/v1/folders", json={"name": "Scripts"})

    assert resp.status_code == 201
    assert resp.json()["name"] == "Scripts"
    assert resp.json()["snippet_count"] == 0


@pytest.mark.asyncio
async def test_delete_unknown_folder(api_client: AsyncClient):
    with patch.object(folder_ops, "delete_folder", new_callable=AsyncMock, return_value=False):
        resp = await api_client.delete(f"/api/v1/folders/{uuid.uuid4()}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_folder(api_client: AsyncClient):
    with patch.object(folder_ops, "delete_folder", new_callable=AsyncMock, return_value=True):
        resp = await api_client.delete(f"/api/v1/folders/{uuid.uuid4()}")
    assert resp.status_code == 204
