"""
OpenWeatherMap adapter for current conditions.
"""

from datetime import UTC, datetime
from typing import Any

from family_trip_planner.data.models import Capability, WeatherQuery, WeatherReport
from family_trip_planner.services.providers.base import ProviderAdapter
from family_trip_planner.services.providers.mock_data import mock_weather


class OpenWeatherAdapter(ProviderAdapter[WeatherQuery, WeatherReport]):
    """Current weather from OpenWeatherMap."""

    name = "openweather"
    capability = Capability.WEATHER
    base_url = "https://api.openweathermap.org/data/2.5"

    def _mock(self, query: WeatherQuery) -> WeatherReport:
        return mock_weather(query)

    async def _live(self, query: WeatherQuery) -> WeatherReport:
        payload = await self.client.get_json(
            "/weather",
            params={
                "q": query.location,
                "appid": self._require_key(),
                "units": query.units,
                "lang": "en",
            },
        )
        return self._parse(lambda raw: self._to_report(raw, query), payload)

    def _probe_query(self) -> WeatherQuery:
        return WeatherQuery(location="London")

    def _to_report(self, payload: Any, query: WeatherQuery) -> WeatherReport:
        main = payload["main"]
        conditions = payload.get("weather") or [{}]
        observed = payload.get("dt")
        return WeatherReport(
            location=payload.get("name", query.location),
            temperature=float(main["temp"]),
            feels_like=float(main.get("feels_like", main["temp"])),
            condition=conditions[0].get("main", "Unknown"),
            description=conditions[0].get("description", ""),
            humidity=int(main.get("humidity", 0)),
            wind_speed=float(payload.get("wind", {}).get("speed", 0)),
            units=query.units,
            observed_at=(
                datetime.fromtimestamp(observed, UTC) if observed else datetime.now(UTC)
            ),
            source=self.name,
        )
