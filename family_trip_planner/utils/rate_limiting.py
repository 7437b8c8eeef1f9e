"""
Rate limiting and request management for travel-data providers.

This module provides per-provider request throttling, exponential backoff
and a small aiohttp client used by the live provider adapters. Mock
providers never pass through here.
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import aiohttp
from aiolimiter import AsyncLimiter
from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from family_trip_planner.utils.error_handling import ProviderError

# HTTP Status Codes
HTTP_STATUS_OK = 200
HTTP_STATUS_REDIRECT = 300
HTTP_STATUS_TOO_MANY_REQUESTS = 429


@dataclass
class RateLimitConfig:
    """Configuration for a provider's rate limits."""

    service_name: str
    requests_per_minute: int
    max_retries: int = 3
    min_wait_seconds: float = 0.5
    max_wait_seconds: float = 5.0
    retry_status_codes: list[int] = field(
        default_factory=lambda: [429, 500, 502, 503, 504]
    )


class ServiceRateLimiter:
    """
    Rate limiter for a single provider.

    Wraps an aiolimiter leaky bucket sized to the provider's per-minute
    allowance and decides which failures are worth retrying.
    """

    def __init__(self, config: RateLimitConfig):
        """
        Initialize the rate limiter.

        Args:
            config: Rate limit configuration
        """
        self.config = config
        self.limiter = AsyncLimiter(config.requests_per_minute, 60)
        self.request_timestamps: list[float] = []
        self.throttled_count = 0

        logger.debug(
            f"Initialized rate limiter for {config.service_name} "
            f"({config.requests_per_minute}/min)"
        )

    async def acquire(self) -> None:
        """Wait until a request slot is available, then record it."""
        if not self.limiter.has_capacity():
            self.throttled_count += 1
            logger.warning(
                f"Rate limit reached for {self.config.service_name} "
                f"({self.config.requests_per_minute} requests/minute), waiting"
            )

        await self.limiter.acquire()

        current_time = time.time()
        minute_ago = current_time - 60
        self.request_timestamps = [
            ts for ts in self.request_timestamps if ts > minute_ago
        ]
        self.request_timestamps.append(current_time)

    def should_retry_exception(self, exception: BaseException) -> bool:
        """
        Determine if an exception should trigger a retry.

        Args:
            exception: The exception to check

        Returns:
            True if should retry, False otherwise
        """
        if isinstance(
            exception, aiohttp.ClientConnectionError | asyncio.TimeoutError
        ):
            return True

        return (
            isinstance(exception, ProviderError)
            and exception.status_code in self.config.retry_status_codes
        )

    def get_stats(self) -> dict[str, Any]:
        """
        Get usage statistics for the last minute.

        Returns:
            Dictionary with usage statistics
        """
        minute_ago = time.time() - 60
        return {
            "service": self.config.service_name,
            "minute_limit": self.config.requests_per_minute,
            "current_minute_usage": len(
                [ts for ts in self.request_timestamps if ts > minute_ago]
            ),
            "throttled": self.throttled_count,
        }


class RateLimitManager:
    """
    Manager for rate limiters across all providers.

    One manager is shared by the adapters of an ApiServiceManager so every
    request to a provider draws from the same allowance.
    """

    def __init__(self, configs: list[RateLimitConfig] | None = None):
        """
        Initialize the rate limit manager.

        Args:
            configs: Provider limits to register up front (optional)
        """
        self.limiters: dict[str, ServiceRateLimiter] = {}
        self.default_config = RateLimitConfig(
            service_name="default", requests_per_minute=30
        )
        for config in configs or []:
            self.register_service(config)

    def register_service(self, config: RateLimitConfig) -> ServiceRateLimiter:
        """
        Register a provider with the rate limit manager.

        Args:
            config: Rate limit configuration for the provider

        Returns:
            ServiceRateLimiter for the registered provider
        """
        limiter = ServiceRateLimiter(config)
        self.limiters[config.service_name] = limiter
        return limiter

    def get_limiter(self, service_name: str) -> ServiceRateLimiter:
        """
        Get the rate limiter for a provider.

        Args:
            service_name: Name of the provider

        Returns:
            ServiceRateLimiter for the provider, or a default one if not registered
        """
        if service_name not in self.limiters:
            logger.warning(
                f"No rate limiter configured for {service_name}, "
                f"using default configuration."
            )
            self.register_service(
                RateLimitConfig(
                    service_name=service_name,
                    requests_per_minute=self.default_config.requests_per_minute,
                )
            )

        return self.limiters[service_name]

    def get_all_stats(self) -> list[dict[str, Any]]:
        """Usage statistics for every registered provider."""
        return [limiter.get_stats() for limiter in self.limiters.values()]


def before_sleep_callback(retry_state: RetryCallState) -> None:
    """
    Callback executed before sleeping between retries.

    Args:
        retry_state: Current retry state
    """
    exception = retry_state.outcome.exception()
    if exception:
        logger.warning(
            f"Request failed (attempt {retry_state.attempt_number}), "
            f"retrying in {retry_state.next_action.sleep:.2f} seconds: {exception!s}"
        )


async def with_rate_limit(
    limiter: ServiceRateLimiter, func: Callable[..., Any], *args: Any, **kwargs: Any
) -> Any:
    """
    Execute a coroutine function under a provider's rate limit, retrying
    transient failures with exponential backoff.

    Args:
        limiter: Rate limiter of the provider being called
        func: Coroutine function to execute
        *args: Positional arguments to pass to the function
        **kwargs: Keyword arguments to pass to the function

    Returns:
        Result of the function

    Raises:
        Exception: The last error once retries are exhausted
    """
    try:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception(limiter.should_retry_exception),
            stop=stop_after_attempt(limiter.config.max_retries),
            wait=wait_exponential(
                multiplier=1,
                min=limiter.config.min_wait_seconds,
                max=limiter.config.max_wait_seconds,
            ),
            reraise=True,
            before_sleep=before_sleep_callback,
        ):
            with attempt:
                await limiter.acquire()
                return await func(*args, **kwargs)
    except Exception as e:
        logger.error(f"Request to {limiter.config.service_name} failed: {e!s}")
        raise


class APIClient:
    """
    Minimal JSON-over-HTTP client with rate limiting and retries.

    Each live provider adapter owns one client bound to its base URL.
    """

    def __init__(
        self,
        service_name: str,
        base_url: str,
        limiter: ServiceRateLimiter,
        timeout_seconds: float = 10.0,
        default_headers: dict[str, str] | None = None,
    ):
        """
        Initialize the API client.

        Args:
            service_name: Name of the provider
            base_url: Base URL for API requests
            limiter: Rate limiter shared by all requests to this provider
            timeout_seconds: Total timeout for a single request
            default_headers: Headers sent with every request (optional)
        """
        self.service_name = service_name
        self.base_url = base_url.rstrip("/")
        self.limiter = limiter
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.default_headers = default_headers or {}

    async def get_json(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Issue a GET request and decode the JSON body.

        Args:
            endpoint: API endpoint path
            params: Query parameters (optional)
            headers: Additional HTTP headers (optional)

        Returns:
            Parsed JSON response

        Raises:
            ProviderError: If the request fails after retries
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        request_headers = {**self.default_headers, **(headers or {})}
        query = {k: v for k, v in (params or {}).items() if v is not None}

        async def do_request() -> Any:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(
                    url, params=query, headers=request_headers
                ) as response:
                    status_code = response.status

                    if status_code == HTTP_STATUS_TOO_MANY_REQUESTS:
                        raise ProviderError(
                            "rate limited", self.service_name, status_code=status_code
                        )

                    if not (HTTP_STATUS_OK <= status_code < HTTP_STATUS_REDIRECT):
                        response_text = await response.text()
                        raise ProviderError(
                            f"request failed: {response_text[:200]}",
                            self.service_name,
                            status_code=status_code,
                        )

                    try:
                        return await response.json(content_type=None)
                    except ValueError as e:
                        raise ProviderError(
                            "malformed response body",
                            self.service_name,
                            status_code=status_code,
                            original_error=e,
                        ) from e

        try:
            return await with_rate_limit(self.limiter, do_request)
        except ProviderError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderError(
                "network error", self.service_name, original_error=e
            ) from e


# Per-minute allowances for the supported providers
DEFAULT_RATE_LIMITS = [
    RateLimitConfig(service_name="tripadvisor", requests_per_minute=100),
    RateLimitConfig(service_name="google_places", requests_per_minute=100),
    RateLimitConfig(service_name="skyscanner", requests_per_minute=50),
    RateLimitConfig(service_name="booking", requests_per_minute=30),
    RateLimitConfig(service_name="openweather", requests_per_minute=60),
]


def create_rate_limit_manager(max_retries: int | None = None) -> RateLimitManager:
    """
    Build a manager with the default provider limits.

    Args:
        max_retries: Override for every provider's retry attempts (optional)

    Returns:
        RateLimitManager with all supported providers registered
    """
    configs = [
        RateLimitConfig(
            service_name=default.service_name,
            requests_per_minute=default.requests_per_minute,
            max_retries=max_retries or default.max_retries,
            min_wait_seconds=default.min_wait_seconds,
            max_wait_seconds=default.max_wait_seconds,
        )
        for default in DEFAULT_RATE_LIMITS
    ]
    manager = RateLimitManager(configs)
    logger.info(f"Initialized rate limiting for {len(configs)} providers")
    return manager
