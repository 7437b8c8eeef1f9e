"""
Unified facade over the travel-data provider adapters.

The ApiServiceManager routes each typed query to the single adapter
registered for its capability and wraps the outcome in a ProviderResult
envelope. Adapter failures never propagate past this boundary: they come
back as ``success=False`` with the error message. There is deliberately no
fallback chain, retry or caching at this layer.

One manager is built at process start and passed to every orchestration
run; it holds no per-request state.
"""

import asyncio
import time
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from family_trip_planner.config import FamilyPlannerConfig
from family_trip_planner.data.models import (
    Accommodation,
    AccommodationQuery,
    Attraction,
    AttractionQuery,
    Capability,
    Flight,
    FlightQuery,
    HealthReport,
    Place,
    PlaceQuery,
    ProviderHealth,
    ProviderResult,
    WeatherQuery,
    WeatherReport,
)
from family_trip_planner.services.providers import (
    BookingComAdapter,
    GooglePlacesAdapter,
    OpenWeatherAdapter,
    ProviderAdapter,
    SkyscannerAdapter,
    TripAdvisorAdapter,
)
from family_trip_planner.utils.logging import get_logger
from family_trip_planner.utils.rate_limiting import create_rate_limit_manager

logger = get_logger(__name__)

DEFAULT_ADAPTERS: tuple[type[ProviderAdapter], ...] = (
    TripAdvisorAdapter,
    GooglePlacesAdapter,
    SkyscannerAdapter,
    BookingComAdapter,
    OpenWeatherAdapter,
)


class ApiServiceManager:
    """Routes provider queries to one adapter per capability."""

    def __init__(
        self,
        adapters: Mapping[Capability, ProviderAdapter],
        health_check_timeout: float = 5.0,
    ):
        """
        Initialize the manager.

        Args:
            adapters: Adapter to use for each capability
            health_check_timeout: Upper bound on a single adapter probe, in seconds

        Raises:
            ValueError: If an adapter is registered under the wrong capability
        """
        for capability, adapter in adapters.items():
            if adapter.capability != capability:
                raise ValueError(
                    f"{adapter.name} serves {adapter.capability.value}, "
                    f"not {capability.value}"
                )
        self._adapters = dict(adapters)
        self.health_check_timeout = health_check_timeout

        logger.info(
            "ApiServiceManager ready: "
            + ", ".join(
                f"{c.value}={a.name}{' (mock)' if a.mock else ''}"
                for c, a in self._adapters.items()
            )
        )

    @classmethod
    def from_config(cls, config: FamilyPlannerConfig) -> "ApiServiceManager":
        """
        Build a manager with the default adapter for every capability.

        Args:
            config: Application configuration

        Returns:
            ApiServiceManager sharing one rate limit manager across adapters
        """
        rate_limits = create_rate_limit_manager(config.providers.max_retries)
        adapters = {
            adapter_cls.capability: adapter_cls.from_config(config.providers, rate_limits)
            for adapter_cls in DEFAULT_ADAPTERS
        }
        return cls(adapters, health_check_timeout=config.system.health_check_timeout_seconds)

    @property
    def adapters(self) -> Mapping[Capability, ProviderAdapter]:
        return MappingProxyType(self._adapters)

    async def _dispatch(
        self, capability: Capability, query: Any, envelope: type[ProviderResult]
    ) -> ProviderResult:
        adapter = self._adapters.get(capability)
        if adapter is None:
            logger.error(f"No provider configured for {capability.value}")
            return envelope.fail(f"No provider configured for {capability.value}")

        logger.info(f"Searching {capability.value} via {adapter.name}")
        try:
            data = await adapter.search(query)
        except Exception as e:
            logger.error(f"{adapter.name} {capability.value} search failed: {e!s}")
            return envelope.fail(str(e), source=adapter.name)

        count = len(data) if isinstance(data, list) else 1
        logger.debug(f"{adapter.name} returned {count} {capability.value} result(s)")
        return envelope.ok(data, source=adapter.name)

    async def search_attractions(
        self, query: AttractionQuery
    ) -> ProviderResult[list[Attraction]]:
        """Search attractions around a location."""
        return await self._dispatch(
            Capability.ATTRACTIONS, query, ProviderResult[list[Attraction]]
        )

    async def search_places(self, query: PlaceQuery) -> ProviderResult[list[Place]]:
        """Search places by text and/or location."""
        return await self._dispatch(Capability.PLACES, query, ProviderResult[list[Place]])

    async def search_flights(self, query: FlightQuery) -> ProviderResult[list[Flight]]:
        """Search flights between two locations."""
        return await self._dispatch(Capability.FLIGHTS, query, ProviderResult[list[Flight]])

    async def search_accommodations(
        self, query: AccommodationQuery
    ) -> ProviderResult[list[Accommodation]]:
        """Search stays for a date range."""
        return await self._dispatch(
            Capability.ACCOMMODATIONS, query, ProviderResult[list[Accommodation]]
        )

    async def get_current_weather(
        self, query: WeatherQuery
    ) -> ProviderResult[WeatherReport]:
        """Current conditions at a location."""
        return await self._dispatch(Capability.WEATHER, query, ProviderResult[WeatherReport])

    async def _probe(self, capability: Capability, adapter: ProviderAdapter) -> ProviderHealth:
        started = time.perf_counter()
        error = None
        try:
            await asyncio.wait_for(adapter.probe(), timeout=self.health_check_timeout)
        except TimeoutError:
            error = f"probe timed out after {self.health_check_timeout}s"
        except Exception as e:
            error = str(e)

        if error:
            logger.warning(f"Health probe failed for {adapter.name}: {error}")

        return ProviderHealth(
            provider=adapter.name,
            capability=capability,
            healthy=error is None,
            mock=adapter.mock,
            latency_ms=round((time.perf_counter() - started) * 1000, 2),
            error=error,
        )

    async def health_check(self) -> HealthReport:
        """
        Probe every registered adapter concurrently.

        Returns:
            One entry per adapter keyed by capability, plus a timestamp.
            A failing probe is reported, never raised.
        """
        entries = await asyncio.gather(
            *(self._probe(capability, adapter) for capability, adapter in self._adapters.items())
        )
        report = HealthReport(providers={entry.capability.value: entry for entry in entries})
        logger.info(
            f"Health check: {sum(e.healthy for e in entries)}/{len(entries)} providers healthy"
        )
        return report
