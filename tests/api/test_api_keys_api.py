"""API key management endpoint tests."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from codepocket.domain import api_key_ops

from tests.helpers.mock_factories import make_mock_api_key


@pytest.mark.asyncio
async def test_list_masks_keys(api_client: AsyncClient, test_user):
    key = make_mock_api_key(user_id=test_user.id, key_prefix="cpk_abcdef")
    with patch.object(api_key_ops, "list_by_user", new_callable=AsyncMock, return_value=[key]):
        resp = await api_client.get("/api/v1/api-keys")

    assert resp.status_code == 200
    item = resp.json()[0]
    assert item["masked_key"] == "cpk_abcdef••••••••"
    assert "api_key" not in item


@pytest.mark.asyncio
async def test_create_returns_plaintext_once(api_client: AsyncClient, test_user):
    key = make_mock_api_key(user_id=test_user.id)
    with patch.object(
        api_key_ops, "create_key", new_callable=AsyncMock, return_value=(key, "cpk_full_secret")
    ):
        resp = await api_client.post("/api/v1/api-keys", json={"name": "Laptop"})

    assert resp.status_code == 201
    assert resp.json()["api_key"] == "cpk_full_secret"


@pytest.mark.asyncio
async def test_create_requires_name(api_client: AsyncClient):
    resp = await api_client.post("/api/v1/api-keys", json={"name": ""})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_delete_unknown_key(api_client: AsyncClient):
    with patch.object(api_key_ops, "revoke", new_callable=AsyncMock, return_value=False):
        resp = await api_client.delete(f"/api/v1/api-keys/{uuid.uuid4()}")
    assert resp.status_code == 404
