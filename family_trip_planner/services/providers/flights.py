"""
Skyscanner adapter for flight search.
"""

from datetime import datetime
from typing import Any

from family_trip_planner.data.models import Capability, Flight, FlightQuery
from family_trip_planner.services.providers.base import ProviderAdapter
from family_trip_planner.services.providers.mock_data import (
    airport_code,
    mock_flights,
)
from family_trip_planner.utils.helpers import round_money


class SkyscannerAdapter(ProviderAdapter[FlightQuery, list[Flight]]):
    """Flights from the Skyscanner partners API."""

    name = "skyscanner"
    capability = Capability.FLIGHTS
    base_url = "https://partners.api.skyscanner.net/apiservices/v3"

    def _auth_headers(self) -> dict[str, str]:
        return {"x-api-key": self.api_key} if self.api_key else {}

    def _mock(self, query: FlightQuery) -> list[Flight]:
        return mock_flights(query)

    async def _live(self, query: FlightQuery) -> list[Flight]:
        payload = await self.client.get_json(
            "/flights/live/search/create",
            params={
                "originSkyId": airport_code(query.origin),
                "destinationSkyId": airport_code(query.destination),
                "date": query.departure_date.isoformat(),
                "returnDate": query.return_date.isoformat() if query.return_date else None,
                "adults": query.adults,
                "children": query.children or None,
                "cabinClass": query.cabin_class,
                "currency": query.currency,
                "locale": "en-US",
            },
        )
        return self._parse(lambda raw: self._to_flights(raw, query), payload)

    def _probe_query(self) -> FlightQuery:
        return FlightQuery(
            origin="JFK", destination="MCO", departure_date=datetime.now().date(), limit=1
        )

    def _to_flights(self, payload: Any, query: FlightQuery) -> list[Flight]:
        rows = payload.get("itineraries", []) if isinstance(payload, dict) else payload
        flights = []
        for row in rows:
            per_person = float(row["price"]["amount"])
            departs = datetime.fromisoformat(row["departure"])
            arrives = datetime.fromisoformat(row["arrival"])
            flights.append(
                Flight(
                    id=str(row["id"]),
                    airline=row["carrier"]["name"],
                    flight_number=row.get("flightNumber", ""),
                    origin=row.get("origin", airport_code(query.origin)),
                    destination=row.get("destination", airport_code(query.destination)),
                    departure_time=departs,
                    arrival_time=arrives,
                    duration_minutes=int(
                        row.get("durationInMinutes", (arrives - departs).seconds // 60)
                    ),
                    stops=int(row.get("stopCount", 0)),
                    cabin_class=query.cabin_class,
                    price_per_person=per_person,
                    total_price=round_money(per_person * query.passengers),
                    currency=row["price"].get("currency", query.currency),
                    source=self.name,
                )
            )
        flights.sort(key=lambda f: f.total_price)
        return flights[: query.limit]
