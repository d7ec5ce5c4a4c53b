"""
In-memory TTL caching with prefix invalidation.

Entries follow a simple lifecycle: set -> valid -> expired -> evicted. Expired
entries are invisible to readers immediately and are physically removed on
the next miss, on ``cleanup()`` (run periodically by the scheduler) or when
the cache needs room.

Keys are namespaced strings (``"snippets:<user_id>:list"``) so that a whole
family of entries can be dropped with ``delete_pattern("snippets:<user_id>")``
after a write.

Default lifetimes:
- API keys: 5 minutes (deleted keys stop working within that window)
- Snippets: 5 minutes
- Profiles: 10 minutes
- Groups: 5 minutes
- Invitations: 3 minutes
- Auth lookups: 5 minutes
"""

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, Generic, NamedTuple, TypeVar

from cachetools import TLRUCache  # type: ignore[import-untyped]

from codepocket.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Entry(NamedTuple):
    value: Any
    ttl: float


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class CacheManager(Generic[T]):
    """TTL cache with hit/miss accounting and prefix invalidation.

    Each entry carries its own lifetime; ``default_ttl`` applies when ``set``
    is called without one. Single-threaded: meant for use from the event loop.
    """

    def __init__(
        self,
        default_ttl: float = 300,
        maxsize: int | None = None,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self._entries: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=maxsize or settings.cache_max_entries,
            ttu=_time_to_use,
            timer=timer,
        )
        self._reset_stats()

    def _reset_stats(self) -> None:
        self.hits = 0
        self.misses = 0
        self.sets = 0
        self.deletes = 0

    def get(self, key: str) -> T | None:
        """Return the cached value, or None when absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            # Drop whatever has expired so stale values don't linger
            self._entries.expire()
            self.misses += 1
            return None

        self.hits += 1
        return entry.value

    def set(self, key: str, value: T, ttl: float | None = None) -> None:
        """Store a value, optionally overriding the default lifetime (seconds)."""
        self._entries[key] = _Entry(value, self.default_ttl if ttl is None else ttl)
        self.sets += 1

    def delete(self, key: str) -> bool:
        """Delete a single key. Returns True if a live entry was removed."""
        removed = self._entries.pop(key, None) is not None
        if removed:
            self.deletes += 1
        return removed

    def delete_pattern(self, prefix: str) -> int:
        """Delete every key starting with ``prefix``. Returns the number removed."""
        count = 0
        for key in [k for k in list(self._entries) if k.startswith(prefix)]:
            if self._entries.pop(key, None) is not None:
                count += 1
        self.deletes += count
        return count

    def clear(self) -> None:
        """Drop every entry and reset statistics."""
        self._entries.clear()
        self._reset_stats()

    def cleanup(self) -> int:
        """Evict expired entries. Returns how many were removed."""
        return len(self._entries.expire())

    def get_stats(self) -> dict[str, Any]:
        """Hit/miss counters plus current size and hit rate."""
        total = self.hits + self.misses
        hit_rate = f"{(self.hits / total) * 100:.2f}" if total > 0 else "0.00"
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "deletes": self.deletes,
            "size": len(self._entries),
            "hit_rate": f"{hit_rate}%",
        }

    async def get_or_set(
        self,
        key: str,
        loader: Callable[[], Awaitable[T]],
        ttl: float | None = None,
    ) -> T:
        """Return the cached value or await ``loader`` and cache its result.

        None results are returned but never cached.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"Cache HIT: {key}")
            return cached

        logger.debug(f"Cache MISS: {key}")
        value = await loader()
        if value is not None:
            self.set(key, value, ttl)
        return value


def cache_key(*parts: Any) -> str:
    """
    Build a namespaced cache key.

    Usage:
        key = cache_key("snippets", user_id, "extension")
    """
    return ":".join(str(p) for p in parts)


# Shared cache instances for different data types
api_key_cache: CacheManager[str] = CacheManager(default_ttl=5 * 60)
snippet_cache: CacheManager[Any] = CacheManager(default_ttl=5 * 60)
profile_cache: CacheManager[Any] = CacheManager(default_ttl=10 * 60)
group_cache: CacheManager[Any] = CacheManager(default_ttl=5 * 60)
invitation_cache: CacheManager[Any] = CacheManager(default_ttl=3 * 60)
auth_cache: CacheManager[dict[str, Any]] = CacheManager(default_ttl=5 * 60)

_ALL_CACHES: dict[str, CacheManager[Any]] = {
    "api_keys": api_key_cache,
    "snippets": snippet_cache,
    "profiles": profile_cache,
    "groups": group_cache,
    "invitations": invitation_cache,
    "auth": auth_cache,
}


def cleanup_all_caches() -> int:
    """Evict expired entries from every shared cache. Returns the total removed."""
    removed = sum(cache.cleanup() for cache in _ALL_CACHES.values())
    if removed:
        logger.debug(f"Evicted {removed} expired cache entries")
    return removed


def clear_all_caches() -> None:
    """Clear all shared caches. Useful for testing or after bulk maintenance."""
    for cache in _ALL_CACHES.values():
        cache.clear()
    logger.debug("Cleared all caches")


def get_cache_stats() -> dict[str, dict[str, Any]]:
    """Get current statistics of every shared cache for the admin panel."""
    return {name: cache.get_stats() for name, cache in _ALL_CACHES.items()}
