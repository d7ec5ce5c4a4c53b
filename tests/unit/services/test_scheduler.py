"""Unit tests for scheduled housekeeping jobs."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, patch

import pytest

from codepocket.services import scheduler as scheduler_module
from codepocket.services.scheduler import MaintenanceReport, Scheduler, run_cache_cleanup


def _lock(acquired: bool):
    @asynccontextmanager
    async def fake_lock(_lock_id):
        yield acquired

    return fake_lock


class TestCacheCleanup:
    def test_reports_evicted_count(self):
        with patch.object(scheduler_module, "cleanup_all_caches", return_value=3):
            assert run_cache_cleanup() == 3


class TestRunMaintenance:
    @pytest.mark.asyncio
    async def test_skips_when_lock_is_held(self):
        with (
            patch.object(scheduler_module, "advisory_lock", _lock(False)),
            patch.object(scheduler_module, "purge_expired_data", new_callable=AsyncMock) as purge,
        ):
            assert await scheduler_module.run_maintenance() is None
        purge.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_returns_report(self):
        with (
            patch.object(scheduler_module, "advisory_lock", _lock(True)),
            patch.object(
                scheduler_module,
                "purge_expired_data",
                new_callable=AsyncMock,
                return_value=MaintenanceReport(logs_deleted=4, snippets_purged=2),
            ),
        ):
            result = await scheduler_module.run_maintenance()
        assert result == {"logs_deleted": 4, "snippets_purged": 2}

    @pytest.mark.asyncio
    async def test_failure_returns_none(self):
        with (
            patch.object(scheduler_module, "advisory_lock", _lock(True)),
            patch.object(
                scheduler_module,
                "purge_expired_data",
                new_callable=AsyncMock,
                side_effect=RuntimeError("db down"),
            ),
        ):
            assert await scheduler_module.run_maintenance() is None


class TestScheduler:
    def test_disabled_does_not_start(self, monkeypatch):
        monkeypatch.setattr(scheduler_module.settings, "scheduler_enabled", False)
        sched = Scheduler()
        sched.start()
        assert sched.running is False
        sched.stop()
