"""Unit tests for CacheManager, driven by a fake clock."""

import pytest

from codepocket.core.cache import (
    CacheManager,
    cache_key,
    clear_all_caches,
    get_cache_stats,
    snippet_cache,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return CacheManager(default_ttl=60, maxsize=100, timer=clock)


class TestGetSet:
    def test_returns_value_before_expiry(self, cache, clock):
        cache.set("snippets:u1:list", ["a"])
        clock.advance(59)
        assert cache.get("snippets:u1:list") == ["a"]

    def test_miss_after_expiry(self, cache, clock):
        cache.set("k", "v")
        clock.advance(61)
        assert cache.get("k") is None

    def test_per_entry_ttl_overrides_default(self, cache, clock):
        cache.set("short", "v", ttl=5)
        cache.set("long", "v")
        clock.advance(10)
        assert cache.get("short") is None
        assert cache.get("long") == "v"

    def test_absent_key_is_a_miss(self, cache):
        assert cache.get("missing") is None
        assert cache.get_stats()["misses"] == 1

    def test_full_cache_evicts_least_recently_used(self, clock):
        small = CacheManager(default_ttl=60, maxsize=2, timer=clock)
        small.set("a", 1)
        small.set("b", 2)
        small.get("a")

        small.set("c", 3)

        assert small.get("b") is None
        assert small.get("a") == 1
        assert small.get("c") == 3


class TestInvalidation:
    def test_delete_reports_removal(self, cache):
        cache.set("k", 1)
        assert cache.delete("k") is True
        assert cache.delete("k") is False
        assert cache.get("k") is None

    def test_delete_pattern_removes_prefix_family(self, cache):
        cache.set("snippets:u1:list", 1)
        cache.set("snippets:u1:extension", 2)
        cache.set("snippets:u2:list", 3)

        removed = cache.delete_pattern("snippets:u1")

        assert removed == 2
        assert cache.get("snippets:u2:list") == 3
        assert cache.get("snippets:u1:list") is None

    def test_clear_resets_stats(self, cache):
        cache.set("k", 1)
        cache.get("k")
        cache.clear()

        stats = cache.get_stats()
        assert stats["size"] == 0
        assert stats["hits"] == 0
        assert stats["sets"] == 0

    def test_cleanup_counts_expired_entries(self, cache, clock):
        cache.set("a", 1, ttl=5)
        cache.set("b", 2, ttl=5)
        cache.set("c", 3, ttl=500)
        clock.advance(10)

        assert cache.cleanup() == 2
        assert cache.get("c") == 3


class TestStats:
    def test_hit_rate_formatting(self, cache):
        cache.set("k", 1)
        cache.get("k")
        cache.get("k")
        cache.get("k")
        cache.get("missing")

        stats = cache.get_stats()
        assert stats["hits"] == 3
        assert stats["misses"] == 1
        assert stats["hit_rate"] == "75.00%"

    def test_hit_rate_when_unused(self, cache):
        assert cache.get_stats()["hit_rate"] == "0.00%"


class TestGetOrSet:
    @pytest.mark.asyncio
    async def test_loads_once_then_serves_cached(self, cache):
        calls = []

        async def loader():
            calls.append(1)
            return {"id": 1}

        assert await cache.get_or_set("k", loader) == {"id": 1}
        assert await cache.get_or_set("k", loader) == {"id": 1}
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_none_is_not_cached(self, cache):
        calls = []

        async def loader():
            calls.append(1)
            return None

        assert await cache.get_or_set("k", loader) is None
        assert await cache.get_or_set("k", loader) is None
        assert len(calls) == 2


class TestHelpers:
    def test_cache_key_joins_parts(self):
        assert cache_key("snippets", "u1", "extension") == "snippets:u1:extension"

    def test_clear_all_caches_empties_shared_instances(self):
        snippet_cache.set("snippets:u1", [1])
        clear_all_caches()
        assert snippet_cache.get("snippets:u1") is None

    def test_get_cache_stats_lists_every_cache(self):
        stats = get_cache_stats()
        assert set(stats) == {"api_keys", "snippets", "profiles", "groups", "invitations", "auth"}
