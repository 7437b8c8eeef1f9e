"""
TripAdvisor adapter for attraction search.
"""

from typing import Any

from family_trip_planner.data.models import Attraction, AttractionQuery, Capability
from family_trip_planner.services.providers.base import ProviderAdapter
from family_trip_planner.services.providers.mock_data import mock_attractions


class TripAdvisorAdapter(ProviderAdapter[AttractionQuery, list[Attraction]]):
    """Attractions from the TripAdvisor content API."""

    name = "tripadvisor"
    capability = Capability.ATTRACTIONS
    base_url = "https://api.content.tripadvisor.com/api/v1"

    def _mock(self, query: AttractionQuery) -> list[Attraction]:
        return mock_attractions(query)

    async def _live(self, query: AttractionQuery) -> list[Attraction]:
        payload = await self.client.get_json(
            "/locations/search",
            params={
                "key": self._require_key(),
                "location": query.location,
                "category": "attractions",
                "limit": query.limit,
                "sort": query.sort,
                "rating": query.min_rating,
            },
        )
        return self._parse(lambda raw: self._to_attractions(raw, query), payload)

    def _probe_query(self) -> AttractionQuery:
        return AttractionQuery(location="Orlando", limit=1)

    def _to_attractions(self, payload: Any, query: AttractionQuery) -> list[Attraction]:
        rows = payload.get("data", []) if isinstance(payload, dict) else payload
        attractions = []
        for row in rows:
            price = row.get("price") or {}
            attractions.append(
                Attraction(
                    id=str(row["location_id"]),
                    name=row["name"],
                    location=query.location,
                    category=row.get("category", {}).get("name", "sightseeing"),
                    description=row.get("description", ""),
                    rating=float(row.get("rating", 0)),
                    review_count=int(row.get("num_reviews", 0)),
                    price_min=float(price.get("min", 0)),
                    price_max=float(price.get("max", price.get("min", 0))),
                    duration_minutes=int(row.get("duration_minutes", 120)),
                    tags=[t.get("name", "") for t in row.get("subcategory", [])],
                    latitude=row.get("latitude"),
                    longitude=row.get("longitude"),
                    source=self.name,
                )
            )
        return attractions[: query.limit]
