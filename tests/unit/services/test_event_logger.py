"""Unit tests for the persistent event logger."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from codepocket.domain import log_ops
from codepocket.models.log_entry import EventCategory
from codepocket.services.event_logger import EventLogger, get_client_ip, get_user_agent


def _request(headers: dict[str, str]) -> MagicMock:
    request = MagicMock()
    request.headers = headers
    return request


class TestClientIp:
    def test_first_forwarded_hop(self):
        request = _request({"x-forwarded-for": "203.0.113.7, 10.0.0.1", "x-real-ip": "10.0.0.2"})
        assert get_client_ip(request) == "203.0.113.7"

    def test_falls_back_to_real_ip(self):
        assert get_client_ip(_request({"x-real-ip": " 10.0.0.2 "})) == "10.0.0.2"

    def test_unknown_without_headers(self):
        assert get_client_ip(_request({})) == "unknown"

    def test_user_agent_default(self):
        assert get_user_agent(_request({})) == "unknown"


class TestLog:
    def setup_method(self):
        # A fresh instance: the shared one has log() patched out by conftest
        self.events = EventLogger()
        self.db = AsyncMock()
        self.session_maker = MagicMock()
        self.session_maker.return_value.__aenter__.return_value = self.db

    @pytest.mark.asyncio
    async def test_writes_and_commits(self):
        user_id = uuid.uuid4()
        with (
            patch("codepocket.services.event_logger.async_session_maker", self.session_maker),
            patch.object(log_ops, "create", new_callable=AsyncMock) as mock_create,
        ):
            await self.events.snippet_created(user_id, uuid.uuid4(), "Debounce")

        kwargs = mock_create.await_args.kwargs
        assert kwargs["event_type"] == "snippet_created"
        assert kwargs["event_category"] == EventCategory.SNIPPET.value
        assert kwargs["user_id"] == user_id
        assert kwargs["details"]["title"] == "Debounce"
        self.db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failures_are_swallowed(self):
        with (
            patch("codepocket.services.event_logger.async_session_maker", self.session_maker),
            patch.object(log_ops, "create", new_callable=AsyncMock) as mock_create,
        ):
            mock_create.side_effect = RuntimeError("database down")
            await self.events.error("boom", {"path": "/api/v1/snippets"})

        self.db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_accepts_plain_category_strings(self):
        with (
            patch("codepocket.services.event_logger.async_session_maker", self.session_maker),
            patch.object(log_ops, "create", new_callable=AsyncMock) as mock_create,
        ):
            await self.events.log("login", "auth", {"method": "password"})

        assert mock_create.await_args.kwargs["event_category"] == "auth"
