"""Unit tests for the admin password dependency."""

from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from codepocket.api.deps.admin import require_admin
from codepocket.core.exceptions import RateLimitExceededError
from codepocket.core.rate_limit import ADMIN_LOGIN_LIMIT


def _request(peer: str = "198.51.100.4", forwarded_for: str | None = None) -> MagicMock:
    request = MagicMock()
    request.client.host = peer
    request.headers = {"x-forwarded-for": forwarded_for or peer, "user-agent": "pytest"}
    return request


class TestRequireAdmin:
    @pytest.mark.asyncio
    async def test_503_when_not_configured(self, monkeypatch):
        from codepocket.config import settings

        monkeypatch.setattr(settings, "admin_password", "")
        with pytest.raises(HTTPException) as exc_info:
            await require_admin(_request(), x_admin_password="anything")
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_correct_password_passes(self, admin_password):
        assert await require_admin(_request(), x_admin_password=admin_password) is None

    @pytest.mark.asyncio
    async def test_wrong_password_is_logged(self, admin_password, mock_event_log):
        with pytest.raises(HTTPException) as exc_info:
            await require_admin(_request(), x_admin_password="wrong")

        assert exc_info.value.status_code == 401
        mock_event_log.assert_awaited_once()
        assert mock_event_log.await_args.args[0] == "failed_admin_login"
        assert mock_event_log.await_args.kwargs["ip_address"] == "198.51.100.4"

    @pytest.mark.asyncio
    async def test_missing_header_is_a_failed_attempt(self, admin_password):
        with pytest.raises(HTTPException) as exc_info:
            await require_admin(_request(), x_admin_password=None)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_lockout_refuses_even_correct_password(self, admin_password):
        for _ in range(ADMIN_LOGIN_LIMIT.requests):
            with pytest.raises(HTTPException):
                await require_admin(_request(), x_admin_password="wrong")

        with pytest.raises(RateLimitExceededError) as exc_info:
            await require_admin(_request(), x_admin_password=admin_password)
        assert exc_info.value.status_code == 429

        # Other addresses are unaffected
        assert await require_admin(_request("203.0.113.9"), x_admin_password=admin_password) is None

    @pytest.mark.asyncio
    async def test_rotating_forwarded_for_does_not_reset_lockout(self, admin_password):
        for i in range(ADMIN_LOGIN_LIMIT.requests):
            with pytest.raises(HTTPException):
                await require_admin(
                    _request(forwarded_for=f"10.0.0.{i}"), x_admin_password="wrong"
                )

        with pytest.raises(RateLimitExceededError):
            await require_admin(_request(forwarded_for="10.0.0.250"), x_admin_password="wrong")

    @pytest.mark.asyncio
    async def test_event_records_forwarded_address(self, admin_password, mock_event_log):
        with pytest.raises(HTTPException):
            await require_admin(
                _request(forwarded_for="203.0.113.77"), x_admin_password="wrong"
            )
        assert mock_event_log.await_args.kwargs["ip_address"] == "203.0.113.77"
