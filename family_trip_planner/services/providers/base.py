"""
Base class for travel-data provider adapters.

An adapter normalizes one external capability (attractions, places,
flights, accommodations or weather) into the records defined in
``family_trip_planner.data.models``. Each adapter runs either against the
live HTTP API or against a deterministic mock generator; an adapter with
no usable API key falls back to mock mode unless live mode is forced.
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import ValidationError as PydanticValidationError

from family_trip_planner.config import ProviderConfig, is_usable_key
from family_trip_planner.data.models import Capability
from family_trip_planner.utils.error_handling import ProviderError
from family_trip_planner.utils.logging import get_logger
from family_trip_planner.utils.rate_limiting import (
    APIClient,
    RateLimitManager,
    create_rate_limit_manager,
)

Q = TypeVar("Q")
R = TypeVar("R")

logger = get_logger(__name__)


class ProviderAdapter(ABC, Generic[Q, R]):
    """
    One capability, one external source.

    Subclasses declare ``name``, ``capability`` and ``base_url`` and
    implement the mock generator, the live call and a probe query.
    """

    name: ClassVar[str] = "provider"
    capability: ClassVar[Capability]
    base_url: ClassVar[str] = ""

    def __init__(
        self,
        api_key: str | None = None,
        mock: bool | None = None,
        rate_limits: RateLimitManager | None = None,
        timeout_seconds: float = 10.0,
    ):
        """
        Initialize the adapter.

        Args:
            api_key: Provider API key (optional)
            mock: Force mock (True) or live (False) mode; defaults to mock
                when no usable key is given
            rate_limits: Shared rate limit manager (optional)
            timeout_seconds: Per-request HTTP timeout in live mode
        """
        self.api_key = api_key if is_usable_key(api_key) else None
        self.mock = self.api_key is None if mock is None else mock
        self._rate_limits = rate_limits
        self._timeout_seconds = timeout_seconds
        self._client: APIClient | None = None

        mode = "mock" if self.mock else "live"
        logger.debug(f"Initialized {self.name} adapter for {self.capability.value} ({mode})")

    @classmethod
    def from_config(
        cls, providers: ProviderConfig, rate_limits: RateLimitManager | None = None
    ) -> "ProviderAdapter":
        """
        Create an adapter from provider configuration.

        Args:
            providers: Provider section of the application config
            rate_limits: Shared rate limit manager (optional)

        Returns:
            Configured adapter
        """
        api_key = providers.key_for(cls.name)
        return cls(
            api_key=api_key,
            mock=providers.use_mock_apis or api_key is None,
            rate_limits=rate_limits,
            timeout_seconds=providers.timeout_seconds,
        )

    @property
    def client(self) -> APIClient:
        if self._client is None:
            if self._rate_limits is None:
                self._rate_limits = create_rate_limit_manager()
            self._client = APIClient(
                service_name=self.name,
                base_url=self.base_url,
                limiter=self._rate_limits.get_limiter(self.name),
                timeout_seconds=self._timeout_seconds,
                default_headers=self._auth_headers(),
            )
        return self._client

    def _auth_headers(self) -> dict[str, str]:
        return {}

    def _require_key(self) -> str:
        if not self.api_key:
            raise ProviderError("API key is not configured", self.name)
        return self.api_key

    async def search(self, query: Q) -> R:
        """
        Run a query against the mock generator or the live API.

        Args:
            query: Capability-specific query model

        Returns:
            Normalized records

        Raises:
            ProviderError: If the live call fails or the key is missing
        """
        if self.mock:
            return self._mock(query)
        self._require_key()
        return await self._live(query)

    async def probe(self) -> None:
        """
        Cheap liveness check. Returns quietly when healthy.

        Raises:
            ProviderError: If the adapter cannot serve requests
        """
        if self.mock:
            self._mock(self._probe_query())
            return
        self._require_key()
        await self._live(self._probe_query())

    def _parse(self, builder, raw: Any):
        """Run a record builder, converting shape errors to ProviderError."""
        try:
            return builder(raw)
        except (KeyError, TypeError, ValueError, PydanticValidationError) as e:
            raise ProviderError(
                "malformed response", self.name, original_error=e
            ) from e

    @abstractmethod
    def _mock(self, query: Q) -> R:
        """Deterministic records for a query."""

    @abstractmethod
    async def _live(self, query: Q) -> R:
        """Records from the live API."""

    @abstractmethod
    def _probe_query(self) -> Q:
        """Smallest query that proves the adapter works."""
