"""Rate limiting utilities for abuse-prone endpoints.

Provides in-memory fixed-window rate limiting keyed by an arbitrary
identifier (API key, client IP, user id). The first request opens a window;
requests inside it are counted until the limit is reached, after which the
caller is rejected until the window closes.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeAlias

from fastapi import Request

from codepocket.core.exceptions import RateLimitExceededError


@dataclass
class RateLimitConfig:
    """Configuration for rate limiting."""

    requests: int  # Maximum requests allowed per window
    window_seconds: int  # Window length in seconds


@dataclass
class RateLimitResult:
    """Outcome of a single rate limit check."""

    allowed: bool
    remaining: int
    reset_at: float  # Timestamp at which the window closes


# Default configurations for different endpoint types
API_KEY_LIMIT = RateLimitConfig(requests=120, window_seconds=60)
LOG_INGEST_LIMIT = RateLimitConfig(requests=60, window_seconds=60)
ADMIN_LOGIN_LIMIT = RateLimitConfig(requests=5, window_seconds=15 * 60)
INVITE_SEND_LIMIT = RateLimitConfig(requests=20, window_seconds=60 * 60)


def client_address(request: Request) -> str:
    """Peer address for per-IP limits.

    Never read from request headers; ProxyHeadersMiddleware sets the peer
    from X-Forwarded-For only for connections from a trusted proxy.
    """
    return request.client.host if request.client else "unknown"


Identifier: TypeAlias = str
Timestamp: TypeAlias = float


@dataclass
class _Window:
    count: int
    reset_at: Timestamp


class RateLimiter:
    """In-memory fixed-window rate limiter.

    Note: This is an in-memory implementation suitable for single-instance
    deployments. For multi-instance deployments, consider Redis-based limiting.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        # Map of "<scope>:<identifier>" -> current window
        self._windows: dict[str, _Window] = {}
        self._last_cleanup = clock()
        self._cleanup_interval = 300  # Sweep stale windows every 5 minutes

    def _cleanup_expired(self, now: Timestamp) -> None:
        """Remove closed windows to prevent memory growth."""
        if now - self._last_cleanup < self._cleanup_interval:
            return

        expired = [key for key, window in self._windows.items() if window.reset_at <= now]
        for key in expired:
            del self._windows[key]

        self._last_cleanup = now

    def check(
        self,
        identifier: Identifier,
        config: RateLimitConfig,
        scope: str = "default",
    ) -> RateLimitResult:
        """Record an attempt and report whether it is within the limit.

        Args:
            identifier: Who is making the request (key, IP, user id)
            config: Limit to apply
            scope: Separates counters of different endpoints for the same identifier
        """
        now = self._clock()
        self._cleanup_expired(now)

        key = f"{scope}:{identifier}"
        window = self._windows.get(key)

        if window is None or window.reset_at <= now:
            # First attempt or window expired
            window = _Window(count=1, reset_at=now + config.window_seconds)
            self._windows[key] = window
            return RateLimitResult(
                allowed=True,
                remaining=config.requests - 1,
                reset_at=window.reset_at,
            )

        if window.count >= config.requests:
            return RateLimitResult(allowed=False, remaining=0, reset_at=window.reset_at)

        window.count += 1
        return RateLimitResult(
            allowed=True,
            remaining=config.requests - window.count,
            reset_at=window.reset_at,
        )

    def enforce(
        self,
        identifier: Identifier,
        config: RateLimitConfig,
        scope: str = "default",
    ) -> RateLimitResult:
        """Like ``check`` but raises 429 Too Many Requests when over the limit."""
        result = self.check(identifier, config, scope)
        if not result.allowed:
            retry_after = max(1, int(result.reset_at - self._clock()) + 1)
            raise RateLimitExceededError(
                f"Rate limit exceeded. Try again in {retry_after} seconds.",
                retry_after=retry_after,
            )
        return result

    def get_remaining(
        self,
        identifier: Identifier,
        config: RateLimitConfig,
        scope: str = "default",
    ) -> int:
        """Get remaining requests in the current window without consuming one."""
        window = self._windows.get(f"{scope}:{identifier}")
        if window is None or window.reset_at <= self._clock():
            return config.requests
        return max(0, config.requests - window.count)

    def reset(self, identifier: Identifier, scope: str = "default") -> None:
        """Forget the window for an identifier (e.g. after a successful login)."""
        self._windows.pop(f"{scope}:{identifier}", None)


# Singleton instance for application-wide use
rate_limiter = RateLimiter()
