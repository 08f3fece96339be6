"""
Fixed-window rate limiter backed by Redis.

One counter per (integration, organization, window start) lives in Redis, so
every scheduler instance and worker shares the same budget. The read,
compare and increment run as one Lua script, which makes check-and-consume
atomic across concurrent callers.

Windows are fixed, not sliding: a burst straddling a window boundary can
consume up to twice the nominal budget across the two windows.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

import redis
import redis.asyncio as aioredis

from driftwatch.core.config import Settings, get_settings
from driftwatch.core.constants import IntegrationType

logger = logging.getLogger(__name__)

KEY_PREFIX = "ratelimit"

# KEYS[1] = window key; ARGV = cost, max_credits, ttl_seconds
# Returns {allowed (0/1), used after the call}
CHECK_AND_INCREMENT_LUA = """
local used = tonumber(redis.call('GET', KEYS[1]) or '0')
local cost = tonumber(ARGV[1])
local max_credits = tonumber(ARGV[2])
if used + cost > max_credits then
  return {0, used}
end
local new_used = redis.call('INCRBY', KEYS[1], cost)
if new_used == cost then
  redis.call('EXPIRE', KEYS[1], tonumber(ARGV[3]))
end
return {1, new_used}
"""


@dataclass(frozen=True)
class RateLimitConfig:
    """Credit budget for one integration."""

    max_credits: int
    window_seconds: int


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a rate-limit check."""

    allowed: bool
    remaining: int
    reset_at: datetime


DEFAULT_LIMITS: Dict[str, RateLimitConfig] = {
    IntegrationType.FIGMA.value: RateLimitConfig(max_credits=6000, window_seconds=60),
    IntegrationType.LINEAR.value: RateLimitConfig(max_credits=1000, window_seconds=60),
    IntegrationType.GITHUB.value: RateLimitConfig(max_credits=5000, window_seconds=3600),
    IntegrationType.SLACK.value: RateLimitConfig(max_credits=50, window_seconds=60),
    IntegrationType.NOTION.value: RateLimitConfig(max_credits=180, window_seconds=60),
    IntegrationType.ZOOM.value: RateLimitConfig(max_credits=4800, window_seconds=60),
}

FALLBACK_LIMIT = RateLimitConfig(max_credits=1000, window_seconds=60)


def window_start_for(now: float, window_seconds: int) -> int:
    """Start of the fixed window containing `now` (unix seconds)."""
    return int(now // window_seconds) * window_seconds


class RateLimiter:
    """
    Shared token budget per (integration, organization).

    Fails open: when Redis is unreachable, check() allows the call and reports
    the configured fail-open remaining count.
    """

    def __init__(
        self,
        redis_client: Optional[aioredis.Redis] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the rate limiter.

        Args:
            redis_client: Async Redis client (created from settings if omitted)
            settings: Configuration settings (default: get_settings())
            clock: Source of the current unix time
        """
        self.settings = settings or get_settings()
        self.clock = clock

        if redis_client is None:
            redis_client = aioredis.from_url(
                self.settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=self.settings.redis_socket_timeout,
                socket_timeout=self.settings.redis_socket_timeout,
            )
        self.redis_client = redis_client
        self._check_script = self.redis_client.register_script(CHECK_AND_INCREMENT_LUA)

        self.limits = dict(DEFAULT_LIMITS)
        for integration, override in self.settings.rate_limit_overrides.items():
            self.limits[integration] = RateLimitConfig(**override)

    def config_for(self, integration: str) -> RateLimitConfig:
        """Get the budget for an integration, falling back to a conservative default."""
        return self.limits.get(integration, FALLBACK_LIMIT)

    def _window_key(self, integration: str, organization_id: str, window_start: int) -> str:
        return f"{KEY_PREFIX}:{integration}:{organization_id}:{window_start}"

    def _fail_open(self) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            remaining=self.settings.rate_limit_fail_open_remaining,
            reset_at=datetime.fromtimestamp(self.clock(), tz=timezone.utc)
            + timedelta(seconds=60),
        )

    async def check(
        self,
        integration: str,
        organization_id: str,
        cost: int = 1,
    ) -> RateLimitResult:
        """
        Consume `cost` credits if the current window has room.

        A denied check consumes nothing.

        Args:
            integration: Integration name (e.g. "figma")
            organization_id: Tenant whose budget is charged
            cost: Credits this call consumes

        Returns:
            RateLimitResult with the remaining budget and window reset time
        """
        if cost < 1:
            raise ValueError(f"cost must be positive, got {cost}")

        limit = self.config_for(integration)
        window_start = window_start_for(self.clock(), limit.window_seconds)
        reset_at = datetime.fromtimestamp(
            window_start + limit.window_seconds, tz=timezone.utc
        )
        key = self._window_key(integration, organization_id, window_start)

        try:
            allowed, used = await self._check_script(
                keys=[key],
                args=[cost, limit.max_credits, limit.window_seconds * 2],
            )
        except (redis.RedisError, OSError, asyncio.TimeoutError) as e:
            logger.warning(
                f"Rate limit check failed for {integration}/{organization_id}, "
                f"allowing request: {e}"
            )
            return self._fail_open()

        used = int(used)
        if not int(allowed):
            logger.info(
                f"Rate limit exceeded for {integration}/{organization_id} "
                f"({used}/{limit.max_credits}, resets {reset_at.isoformat()})"
            )
            return RateLimitResult(
                allowed=False,
                remaining=max(0, limit.max_credits - used),
                reset_at=reset_at,
            )

        return RateLimitResult(
            allowed=True,
            remaining=limit.max_credits - used,
            reset_at=reset_at,
        )

    async def get_usage(self, integration: str, organization_id: str) -> RateLimitResult:
        """
        Read the current window's budget without consuming anything.

        Returns:
            RateLimitResult where allowed means at least one credit remains
        """
        limit = self.config_for(integration)
        window_start = window_start_for(self.clock(), limit.window_seconds)
        reset_at = datetime.fromtimestamp(
            window_start + limit.window_seconds, tz=timezone.utc
        )
        key = self._window_key(integration, organization_id, window_start)

        try:
            current = await self.redis_client.get(key)
        except (redis.RedisError, OSError, asyncio.TimeoutError) as e:
            logger.warning(f"Rate limit usage lookup failed: {e}")
            return self._fail_open()

        used = int(current) if current else 0
        remaining = max(0, limit.max_credits - used)
        return RateLimitResult(allowed=remaining > 0, remaining=remaining, reset_at=reset_at)

    async def close(self) -> None:
        """Close the Redis connection."""
        try:
            await self.redis_client.aclose()
        except (redis.RedisError, OSError) as e:
            logger.warning(f"Error closing Redis connection: {e}")
