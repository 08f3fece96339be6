"""
Unit tests for the Redis fixed-window rate limiter.

Redis is served by fakeredis, so the check-and-increment Lua script runs as
it would on a server.
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from driftwatch.services.rate_limiter import (
    DEFAULT_LIMITS,
    FALLBACK_LIMIT,
    RateLimitConfig,
    RateLimiter,
    window_start_for,
)


def window_key(clock, integration="figma", organization_id="org_1", window_seconds=60):
    return f"ratelimit:{integration}:{organization_id}:{window_start_for(clock.now, window_seconds)}"


@pytest.fixture
def small_limiter(fake_redis, clock, test_settings) -> RateLimiter:
    """Limiter with a 3-credit, 60s figma budget."""
    test_settings.rate_limit_overrides = {"figma": {"max_credits": 3, "window_seconds": 60}}
    return RateLimiter(redis_client=fake_redis, settings=test_settings, clock=clock)


class TestConfiguration:
    """Budget lookup."""

    def test_default_figma_budget(self, rate_limiter):
        assert rate_limiter.config_for("figma") == RateLimitConfig(6000, 60)

    def test_defaults_cover_known_integrations(self):
        assert DEFAULT_LIMITS["github"] == RateLimitConfig(5000, 3600)
        assert DEFAULT_LIMITS["slack"] == RateLimitConfig(50, 60)
        assert DEFAULT_LIMITS["notion"] == RateLimitConfig(180, 60)

    def test_unknown_integration_uses_fallback(self, rate_limiter):
        assert rate_limiter.config_for("dropbox") == FALLBACK_LIMIT

    def test_override_from_settings(self, small_limiter):
        assert small_limiter.config_for("figma") == RateLimitConfig(3, 60)

    def test_window_start(self):
        assert window_start_for(125.5, 60) == 120
        assert window_start_for(120, 60) == 120


class TestCheck:
    """Check-and-consume behavior within and across windows."""

    @pytest.mark.asyncio
    async def test_allows_up_to_budget(self, small_limiter):
        results = [await small_limiter.check("figma", "org_1") for _ in range(3)]

        assert all(r.allowed for r in results)
        assert [r.remaining for r in results] == [2, 1, 0]

    @pytest.mark.asyncio
    async def test_denies_over_budget_without_consuming(self, small_limiter, fake_redis, clock):
        for _ in range(3):
            await small_limiter.check("figma", "org_1")

        denied = await small_limiter.check("figma", "org_1")

        assert not denied.allowed
        assert denied.remaining == 0
        assert await fake_redis.get(window_key(clock)) == "3"

    @pytest.mark.asyncio
    async def test_reset_at_is_window_end(self, small_limiter, clock):
        clock.now = 1_700_000_075.0

        result = await small_limiter.check("figma", "org_1")

        assert result.reset_at == datetime.fromtimestamp(1_700_000_100, tz=timezone.utc)

    @pytest.mark.asyncio
    async def test_budget_resets_in_next_window(self, small_limiter, clock):
        for _ in range(3):
            await small_limiter.check("figma", "org_1")
        assert not (await small_limiter.check("figma", "org_1")).allowed

        clock.advance(60)

        result = await small_limiter.check("figma", "org_1")
        assert result.allowed
        assert result.remaining == 2

    @pytest.mark.asyncio
    async def test_cost_larger_than_remaining_is_denied(self, small_limiter):
        await small_limiter.check("figma", "org_1", cost=2)

        denied = await small_limiter.check("figma", "org_1", cost=2)
        allowed = await small_limiter.check("figma", "org_1", cost=1)

        assert not denied.allowed
        assert denied.remaining == 1
        assert allowed.allowed

    @pytest.mark.asyncio
    async def test_organizations_have_separate_budgets(self, small_limiter):
        for _ in range(3):
            await small_limiter.check("figma", "org_1")

        assert (await small_limiter.check("figma", "org_2")).allowed

    @pytest.mark.asyncio
    async def test_integrations_have_separate_budgets(self, small_limiter):
        for _ in range(3):
            await small_limiter.check("figma", "org_1")

        assert (await small_limiter.check("slack", "org_1")).allowed

    @pytest.mark.asyncio
    async def test_key_format_and_expiry(self, small_limiter, fake_redis, clock):
        await small_limiter.check("figma", "org_1")

        key = window_key(clock)
        assert await fake_redis.keys("ratelimit:*") == [key]
        assert await fake_redis.get(key) == "1"
        assert 0 < await fake_redis.ttl(key) <= 120

    @pytest.mark.asyncio
    async def test_expiry_set_only_on_first_write(self, small_limiter, fake_redis, clock):
        await small_limiter.check("figma", "org_1")
        key = window_key(clock)
        await fake_redis.expire(key, 30)

        await small_limiter.check("figma", "org_1")

        assert await fake_redis.get(key) == "2"
        assert 0 < await fake_redis.ttl(key) <= 30

    @pytest.mark.asyncio
    async def test_denied_first_call_leaves_no_key(self, fake_redis, clock, test_settings):
        test_settings.rate_limit_overrides = {"figma": {"max_credits": 1, "window_seconds": 60}}
        limiter = RateLimiter(redis_client=fake_redis, settings=test_settings, clock=clock)

        denied = await limiter.check("figma", "org_1", cost=2)

        assert not denied.allowed
        assert denied.remaining == 1
        assert await fake_redis.keys("ratelimit:*") == []

    @pytest.mark.asyncio
    async def test_concurrent_callers_never_exceed_budget(self, small_limiter, fake_redis, clock):
        results = await asyncio.gather(
            *(small_limiter.check("figma", "org_1") for _ in range(10))
        )

        assert sum(r.allowed for r in results) == 3
        assert sorted(r.remaining for r in results if r.allowed) == [0, 1, 2]
        assert await fake_redis.get(window_key(clock)) == "3"

    @pytest.mark.asyncio
    async def test_rejects_non_positive_cost(self, small_limiter):
        with pytest.raises(ValueError):
            await small_limiter.check("figma", "org_1", cost=0)


class TestFailOpen:
    """Behavior when Redis is unreachable."""

    @pytest.mark.asyncio
    async def test_check_allows_when_redis_down(self, unreachable_redis, test_settings, clock):
        limiter = RateLimiter(redis_client=unreachable_redis, settings=test_settings, clock=clock)

        result = await limiter.check("figma", "org_1")

        assert result.allowed
        assert result.remaining == 1000
        assert result.reset_at == datetime.fromtimestamp(clock.now + 60, tz=timezone.utc)

    @pytest.mark.asyncio
    async def test_usage_allows_when_redis_down(self, unreachable_redis, test_settings, clock):
        limiter = RateLimiter(redis_client=unreachable_redis, settings=test_settings, clock=clock)

        result = await limiter.get_usage("figma", "org_1")

        assert result.allowed
        assert result.remaining == 1000


class TestUsage:
    """Read-only usage lookup."""

    @pytest.mark.asyncio
    async def test_usage_does_not_consume(self, small_limiter, fake_redis, clock):
        await small_limiter.check("figma", "org_1")

        first = await small_limiter.get_usage("figma", "org_1")
        second = await small_limiter.get_usage("figma", "org_1")

        assert first.remaining == second.remaining == 2
        assert await fake_redis.get(window_key(clock)) == "1"

    @pytest.mark.asyncio
    async def test_usage_of_untouched_window(self, small_limiter):
        result = await small_limiter.get_usage("figma", "org_9")
        assert result.allowed
        assert result.remaining == 3

    @pytest.mark.asyncio
    async def test_close(self, rate_limiter, fake_redis):
        with patch.object(fake_redis, "aclose", AsyncMock()) as aclose:
            await rate_limiter.close()
        aclose.assert_awaited_once()
