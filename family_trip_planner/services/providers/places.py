"""
Google Places adapter for text and nearby place search.
"""

from typing import Any

from family_trip_planner.data.models import Capability, Place, PlaceQuery
from family_trip_planner.services.providers.base import ProviderAdapter
from family_trip_planner.services.providers.mock_data import mock_places
from family_trip_planner.utils.error_handling import ProviderError

OK_STATUSES = ("OK", "ZERO_RESULTS")


class GooglePlacesAdapter(ProviderAdapter[PlaceQuery, list[Place]]):
    """Places from the Google Places text search API."""

    name = "google_places"
    capability = Capability.PLACES
    base_url = "https://maps.googleapis.com/maps/api/place"

    def _mock(self, query: PlaceQuery) -> list[Place]:
        return mock_places(query)

    async def _live(self, query: PlaceQuery) -> list[Place]:
        text = " ".join(part for part in (query.query, query.location) if part)
        payload = await self.client.get_json(
            "/textsearch/json",
            params={
                "key": self._require_key(),
                "query": text,
                "radius": query.radius,
                "type": query.type,
            },
        )
        status = payload.get("status", "OK") if isinstance(payload, dict) else "OK"
        if status not in OK_STATUSES:
            raise ProviderError(payload.get("error_message", status), self.name)
        return self._parse(lambda raw: self._to_places(raw, query.limit), payload)

    def _probe_query(self) -> PlaceQuery:
        return PlaceQuery(query="park", location="Orlando", limit=1)

    def _to_places(self, payload: Any, limit: int) -> list[Place]:
        places = []
        for row in payload.get("results", []):
            location = row.get("geometry", {}).get("location", {})
            places.append(
                Place(
                    id=row["place_id"],
                    name=row["name"],
                    address=row.get("formatted_address", ""),
                    types=row.get("types", []),
                    rating=float(row.get("rating", 0)),
                    user_ratings_total=int(row.get("user_ratings_total", 0)),
                    price_level=row.get("price_level"),
                    latitude=location.get("lat"),
                    longitude=location.get("lng"),
                    open_now=row.get("opening_hours", {}).get("open_now"),
                    source=self.name,
                )
            )
        return places[:limit]
