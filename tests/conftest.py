"""Root conftest: shared fixtures for all backend tests.

Provides:
- A mocked AsyncSession (no test touches a real database)
- A test user and API clients with FastAPI dependency overrides
- Autouse isolation: shared caches and rate-limit windows are reset per test,
  and the event logger never opens a database session
"""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from codepocket.core.cache import clear_all_caches
from codepocket.core.rate_limit import rate_limiter
from codepocket.services.event_logger import event_logger

from tests.helpers.mock_factories import make_mock_db, make_mock_user

ADMIN_PASSWORD = "correct-horse-battery-staple"


# ─────────────────────────────────────────────────────────────────────────────
# Isolation
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def reset_shared_state():
    """Shared caches and rate-limit windows are module singletons."""
    clear_all_caches()
    rate_limiter._windows.clear()
    yield
    clear_all_caches()
    rate_limiter._windows.clear()


@pytest.fixture(autouse=True)
def mock_event_log():
    """SAFETY: event helpers funnel into log(); keep it off the database."""
    with patch.object(event_logger, "log", new_callable=AsyncMock) as mock_log:
        yield mock_log


# ─────────────────────────────────────────────────────────────────────────────
# Session and user fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def db_session():
    return make_mock_db()


@pytest.fixture
def test_user():
    return make_mock_user(email="owner@example.com")


@pytest.fixture
def admin_password(monkeypatch):
    from codepocket.config import settings

    monkeypatch.setattr(settings, "admin_password", ADMIN_PASSWORD)
    return ADMIN_PASSWORD


# ─────────────────────────────────────────────────────────────────────────────
# API clients
# ─────────────────────────────────────────────────────────────────────────────


def _override_db(db_session):
    from codepocket.api.deps.auth import get_db_with_rls
    from codepocket.core.database import get_db
    from codepocket.main import app

    async def override_db():
        yield db_session

    async def override_db_rls():
        yield db_session

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_db_with_rls] = override_db_rls
    return app


@pytest.fixture
async def api_client(db_session, test_user):
    """HTTP client that bypasses JWT auth and uses the mocked session.

    Overrides: get_current_user, get_db, get_db_with_rls
    """
    from codepocket.api.deps.auth import get_current_user

    app = _override_db(db_session)
    app.dependency_overrides[get_current_user] = lambda: test_user

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def anon_client(db_session):
    """HTTP client with no auth override; only the database is mocked."""
    app = _override_db(db_session)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def direct_client(db_session):
    """Like anon_client, but connecting from an address that is not a trusted proxy."""
    app = _override_db(db_session)

    transport = ASGITransport(app=app, client=("203.0.113.50", 50000))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def extension_user_id():
    return uuid.uuid4()


@pytest.fixture
async def extension_client(db_session, extension_user_id):
    """HTTP client authenticated as an API key owner."""
    from codepocket.api.deps.api_key import get_api_key_user

    app = _override_db(db_session)
    app.dependency_overrides[get_api_key_user] = lambda: extension_user_id

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-API-Key": "cpk_test"},
    ) as client:
        yield client

    app.dependency_overrides.clear()
