"""Tests for provider rate limiting and retries."""

import asyncio
from unittest.mock import AsyncMock

import aiohttp
import pytest

from family_trip_planner.utils.error_handling import ProviderError
from family_trip_planner.utils.rate_limiting import (
    DEFAULT_RATE_LIMITS,
    RateLimitConfig,
    RateLimitManager,
    ServiceRateLimiter,
    create_rate_limit_manager,
    with_rate_limit,
)


def _fast_limiter(max_retries: int = 3) -> ServiceRateLimiter:
    return ServiceRateLimiter(
        RateLimitConfig(
            service_name="skyscanner",
            requests_per_minute=600,
            max_retries=max_retries,
            min_wait_seconds=0.01,
            max_wait_seconds=0.02,
        )
    )


def test_create_rate_limit_manager_registers_defaults():
    """Every supported provider gets its default allowance."""
    manager = create_rate_limit_manager()

    for default in DEFAULT_RATE_LIMITS:
        limiter = manager.get_limiter(default.service_name)
        assert limiter.config.requests_per_minute == default.requests_per_minute


def test_create_rate_limit_manager_overrides_retries():
    """A retry override applies to every provider."""
    manager = create_rate_limit_manager(max_retries=5)

    assert all(limiter.config.max_retries == 5 for limiter in manager.limiters.values())


def test_unknown_service_gets_default_limiter():
    """An unregistered provider is registered with the default allowance."""
    manager = RateLimitManager()

    limiter = manager.get_limiter("new_provider")

    assert limiter.config.requests_per_minute == 30
    assert "new_provider" in manager.limiters
    assert manager.get_all_stats()[0]["service"] == "new_provider"


def test_should_retry_exception():
    """Transient failures are retried, client errors are not."""
    limiter = _fast_limiter()

    assert limiter.should_retry_exception(aiohttp.ClientConnectionError())
    assert limiter.should_retry_exception(asyncio.TimeoutError())
    assert limiter.should_retry_exception(ProviderError("busy", "skyscanner", status_code=503))
    assert not limiter.should_retry_exception(ProviderError("bad", "skyscanner", status_code=400))
    assert not limiter.should_retry_exception(ValueError("nope"))


@pytest.mark.asyncio
async def test_acquire_records_usage():
    """Each acquired slot shows up in the usage stats."""
    limiter = _fast_limiter()

    await limiter.acquire()
    await limiter.acquire()

    stats = limiter.get_stats()
    assert stats["service"] == "skyscanner"
    assert stats["minute_limit"] == 600
    assert stats["current_minute_usage"] == 2


@pytest.mark.asyncio
async def test_with_rate_limit_retries_transient_errors():
    """A 503 is retried and the next success is returned."""
    limiter = _fast_limiter()
    func = AsyncMock(
        side_effect=[ProviderError("busy", "skyscanner", status_code=503), {"ok": True}]
    )

    result = await with_rate_limit(limiter, func, "arg", key="value")

    assert result == {"ok": True}
    assert func.await_count == 2
    func.assert_awaited_with("arg", key="value")


@pytest.mark.asyncio
async def test_with_rate_limit_gives_up_after_max_retries():
    """The last error is re-raised once attempts run out."""
    limiter = _fast_limiter(max_retries=2)
    func = AsyncMock(side_effect=ProviderError("rate limited", "skyscanner", status_code=429))

    with pytest.raises(ProviderError) as exc_info:
        await with_rate_limit(limiter, func)

    assert exc_info.value.status_code == 429
    assert func.await_count == 2


@pytest.mark.asyncio
async def test_with_rate_limit_does_not_retry_other_errors():
    """Non-transient errors fail on the first attempt."""
    limiter = _fast_limiter()
    func = AsyncMock(side_effect=ValueError("bad payload"))

    with pytest.raises(ValueError):
        await with_rate_limit(limiter, func)

    assert func.await_count == 1
