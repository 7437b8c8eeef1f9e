"""Tests for the provider adapters and their mock generators."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from family_trip_planner.config import ProviderConfig
from family_trip_planner.data.models import (
    AccommodationQuery,
    AccommodationType,
    AttractionQuery,
    FlightQuery,
    PlaceQuery,
    WeatherQuery,
)
from family_trip_planner.services.providers import (
    BookingComAdapter,
    GooglePlacesAdapter,
    OpenWeatherAdapter,
    SkyscannerAdapter,
    TripAdvisorAdapter,
)
from family_trip_planner.services.providers.mock_data import (
    airport_code,
    catalog_key,
    mock_accommodations,
    mock_attractions,
    mock_flights,
    mock_places,
    mock_weather,
)
from family_trip_planner.utils.error_handling import ProviderError


def _orlando_flights(**overrides) -> FlightQuery:
    params = {
        "origin": "JFK",
        "destination": "Orlando",
        "departure_date": date(2024, 6, 15),
        "return_date": date(2024, 6, 22),
        "adults": 2,
        "children": 2,
    }
    params.update(overrides)
    return FlightQuery(**params)


def _orlando_stays(**overrides) -> AccommodationQuery:
    params = {
        "location": "Orlando",
        "check_in": date(2024, 6, 15),
        "check_out": date(2024, 6, 22),
        "adults": 2,
        "children": 2,
    }
    params.update(overrides)
    return AccommodationQuery(**params)


def test_catalog_key_aliases():
    """Common spellings of a destination map to one catalog."""
    assert catalog_key("Orlando") == "orlando"
    assert catalog_key("Orlando, FL") == "orlando"
    assert catalog_key("Walt Disney World") == "orlando"
    assert catalog_key("Reykjavik") is None


def test_airport_code():
    """Curated destinations use their real airport."""
    assert airport_code("Orlando") == "MCO"
    assert airport_code("jfk") == "JFK"
    assert len(airport_code("Reykjavik")) == 3


def test_mock_attractions_are_deterministic():
    """The same query returns the same records."""
    query = AttractionQuery(location="Reykjavik", limit=5)

    first = mock_attractions(query)
    second = mock_attractions(query)

    assert [a.id for a in first] == [a.id for a in second]
    assert [a.rating for a in first] == [a.rating for a in second]
    assert len(first) == 5


def test_mock_attractions_sorted_by_rating():
    """Default sort is highest rated first."""
    results = mock_attractions(AttractionQuery(location="Orlando"))

    assert results[0].name == "Magic Kingdom Park"
    ratings = [a.rating for a in results]
    assert ratings == sorted(ratings, reverse=True)


def test_mock_attractions_filters():
    """Category and rating filters narrow the results."""
    museums = mock_attractions(AttractionQuery(location="Paris", category="museum"))
    assert museums
    assert all(a.category == "museum" for a in museums)

    top = mock_attractions(AttractionQuery(location="Orlando", min_rating=4.7))
    assert all(a.rating >= 4.7 for a in top)


def test_mock_places_type_filter():
    """A type filter keeps only matching places."""
    parks = mock_places(PlaceQuery(location="Orlando", type="park"))

    assert [p.name for p in parks] == ["Lake Eola Park"]


def test_mock_flights_priced_for_party():
    """Fares are sorted and multiplied by the number of passengers."""
    flights = mock_flights(_orlando_flights())

    assert len(flights) == 5
    totals = [f.total_price for f in flights]
    assert totals == sorted(totals)
    for flight in flights:
        assert flight.origin == "JFK"
        assert flight.destination == "MCO"
        assert flight.total_price == pytest.approx(flight.price_per_person * 4, abs=0.01)


def test_mock_accommodations_priced_for_stay():
    """Totals cover every night, cheapest first."""
    stays = mock_accommodations(_orlando_stays())

    assert stays[0].name == "Lake Buena Vista Family Condos"
    assert stays[0].nights == 7
    assert stays[0].total_price == 165 * 7


def test_mock_accommodations_filters():
    """Price cap and type filters apply."""
    capped = mock_accommodations(_orlando_stays(max_price=200))
    assert {s.name for s in capped} == {
        "Lake Buena Vista Family Condos",
        "Holiday Inn Orlando - Disney Springs",
    }

    resorts = mock_accommodations(_orlando_stays(accommodation_type=AccommodationType.RESORT))
    assert len(resorts) == 1
    assert resorts[0].total_price == 450 * 7


def test_mock_weather_units():
    """Imperial units convert the curated climate."""
    metric = mock_weather(WeatherQuery(location="Orlando"))
    imperial = mock_weather(WeatherQuery(location="Orlando", units="imperial"))

    assert metric.temperature == 29.0
    assert imperial.temperature == pytest.approx(84.2)
    assert imperial.units == "imperial"


def test_adapter_without_key_defaults_to_mock():
    """No usable key means mock mode."""
    assert TripAdvisorAdapter().mock is True
    assert TripAdvisorAdapter(api_key="your_tripadvisor_api_key_here").mock is True
    assert TripAdvisorAdapter(api_key="real-key").mock is False


def test_adapter_from_config_respects_mock_flag():
    """use_mock_apis forces mock mode even with a key."""
    providers = ProviderConfig(skyscanner_api_key="real-key", use_mock_apis=True)

    adapter = SkyscannerAdapter.from_config(providers)

    assert adapter.mock is True
    assert adapter.api_key == "real-key"


@pytest.mark.asyncio
async def test_mock_adapters_search():
    """Each adapter serves its capability from the mock generator."""
    attractions = await TripAdvisorAdapter().search(AttractionQuery(location="Tokyo"))
    places = await GooglePlacesAdapter().search(PlaceQuery(query="park", location="Tokyo"))
    flights = await SkyscannerAdapter().search(_orlando_flights())
    stays = await BookingComAdapter().search(_orlando_stays())
    weather = await OpenWeatherAdapter().search(WeatherQuery(location="Tokyo"))

    assert attractions and all(a.source == "mock" for a in attractions)
    assert places[0].name == "Shinjuku Gyoen National Garden"
    assert flights and stays
    assert weather.condition == "Clouds"


@pytest.mark.asyncio
async def test_live_adapter_without_key_raises():
    """Forcing live mode without a key fails with a provider error."""
    adapter = OpenWeatherAdapter(api_key=None, mock=False)

    with pytest.raises(ProviderError) as exc_info:
        await adapter.search(WeatherQuery(location="Paris"))

    assert str(exc_info.value) == "Error in openweather provider: API key is not configured"


@pytest.mark.asyncio
async def test_live_flights_are_normalized():
    """Live payloads become Flight records priced for the party."""
    adapter = SkyscannerAdapter(api_key="real-key", mock=False)
    adapter._client = MagicMock()
    adapter._client.get_json = AsyncMock(
        return_value={
            "itineraries": [
                {
                    "id": "it-1",
                    "price": {"amount": "200", "currency": "USD"},
                    "departure": "2024-06-15T08:00:00",
                    "arrival": "2024-06-15T10:45:00",
                    "carrier": {"name": "Delta"},
                    "flightNumber": "DL123",
                    "stopCount": 0,
                }
            ]
        }
    )

    flights = await adapter.search(_orlando_flights())

    assert len(flights) == 1
    assert flights[0].airline == "Delta"
    assert flights[0].duration_minutes == 165
    assert flights[0].total_price == 800
    assert flights[0].source == "skyscanner"


@pytest.mark.asyncio
async def test_live_malformed_payload_raises():
    """Payloads missing required fields raise a provider error."""
    adapter = SkyscannerAdapter(api_key="real-key", mock=False)
    adapter._client = MagicMock()
    adapter._client.get_json = AsyncMock(return_value={"itineraries": [{"id": "it-1"}]})

    with pytest.raises(ProviderError, match="malformed response"):
        await adapter.search(_orlando_flights())
