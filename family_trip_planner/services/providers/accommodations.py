"""
Booking.com adapter for accommodation search.
"""

from datetime import date, timedelta
from typing import Any

from family_trip_planner.data.models import (
    Accommodation,
    AccommodationQuery,
    AccommodationType,
    Capability,
)
from family_trip_planner.services.providers.base import ProviderAdapter
from family_trip_planner.services.providers.mock_data import mock_accommodations
from family_trip_planner.utils.helpers import round_money

RAPIDAPI_HOST = "booking-com.p.rapidapi.com"


def _accommodation_type(label: str | None) -> AccommodationType:
    text = (label or "").lower()
    for kind in AccommodationType:
        if kind.value in text:
            return kind
    return AccommodationType.HOTEL


class BookingComAdapter(ProviderAdapter[AccommodationQuery, list[Accommodation]]):
    """Stays from the Booking.com API on RapidAPI."""

    name = "booking"
    capability = Capability.ACCOMMODATIONS
    base_url = f"https://{RAPIDAPI_HOST}/v1"

    def _auth_headers(self) -> dict[str, str]:
        if not self.api_key:
            return {}
        return {"X-RapidAPI-Key": self.api_key, "X-RapidAPI-Host": RAPIDAPI_HOST}

    def _mock(self, query: AccommodationQuery) -> list[Accommodation]:
        return mock_accommodations(query)

    async def _live(self, query: AccommodationQuery) -> list[Accommodation]:
        payload = await self.client.get_json(
            "/hotels/search",
            params={
                "dest_id": query.location,
                "checkin_date": query.check_in.isoformat(),
                "checkout_date": query.check_out.isoformat(),
                "adults_number": query.adults,
                "children_number": query.children or None,
                "room_number": query.rooms,
                "currency": "USD",
                "units": "metric",
                "locale": "en-us",
                "max_price": query.max_price,
            },
        )
        return self._parse(lambda raw: self._to_stays(raw, query), payload)

    def _probe_query(self) -> AccommodationQuery:
        today = date.today()
        return AccommodationQuery(
            location="Orlando", check_in=today, check_out=today + timedelta(days=1), limit=1
        )

    def _to_stays(self, payload: Any, query: AccommodationQuery) -> list[Accommodation]:
        rows = payload.get("result", []) if isinstance(payload, dict) else payload
        nights = query.nights
        stays = []
        for row in rows:
            total = float(row["min_total_price"])
            stays.append(
                Accommodation(
                    id=str(row["hotel_id"]),
                    name=row["hotel_name"],
                    type=_accommodation_type(row.get("accommodation_type_name")),
                    location=query.location,
                    address=row.get("address", ""),
                    rating=float(row.get("review_score", 0)) / 2,
                    review_count=int(row.get("review_nr", 0)),
                    price_per_night=round_money(total / nights),
                    nights=nights,
                    total_price=round_money(total),
                    currency=row.get("currencycode", "USD"),
                    family_friendly=bool(row.get("is_family_friendly", True)),
                    distance_to_center_km=row.get("distance_to_cc"),
                    source=self.name,
                )
            )
        if query.accommodation_type is not None:
            stays = [s for s in stays if s.type == query.accommodation_type]
        stays.sort(key=lambda s: (s.total_price, -s.rating))
        return stays[: query.limit]
