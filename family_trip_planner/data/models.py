"""
Data models for the family trip planner.

This module defines the inbound planning request, the immutable planning
context built from it, the provider query shapes consumed by the
ApiServiceManager and the normalized records every provider returns.
"""

from datetime import UTC, date, datetime
from enum import Enum
from typing import Annotated, Any, Generic, TypeVar

from pydantic import (
    BeforeValidator,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from family_trip_planner.utils.helpers import parse_iso_date, trip_duration_days

T = TypeVar("T")

ADULT_AGE = 18


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenCamelModel(BaseModel):
    """Immutable variant of CamelModel."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


def _coerce_date(value: Any) -> Any:
    if isinstance(value, str | datetime):
        return parse_iso_date(value)
    return value


IsoDate = Annotated[date, BeforeValidator(_coerce_date)]


class TripType(str, Enum):
    """Kinds of trip a family can ask for."""

    RELAXATION = "relaxation"
    ADVENTURE = "adventure"
    CULTURE = "culture"
    FAMILY = "family"
    MIXED = "mixed"


class AccommodationType(str, Enum):
    """Types of accommodation."""

    HOTEL = "hotel"
    RESORT = "resort"
    APARTMENT = "apartment"
    VILLA = "villa"


class TransportationMode(str, Enum):
    """How the family gets to the destination."""

    FLIGHT = "flight"
    CAR = "car"
    TRAIN = "train"
    BUS = "bus"


class Capability(str, Enum):
    """External travel-data capabilities, one adapter each."""

    ATTRACTIONS = "attractions"
    PLACES = "places"
    FLIGHTS = "flights"
    ACCOMMODATIONS = "accommodations"
    WEATHER = "weather"


class FamilyProfile(FrozenCamelModel):
    """Who is travelling."""

    adults: int = Field(default=2, ge=1, description="Number of adults")
    children: int = Field(default=0, ge=0, description="Number of children")
    ages: tuple[int, ...] = Field(default=(), description="Ages of family members")
    interests: tuple[str, ...] = Field(default=(), description="Shared interests")
    dietary_restrictions: tuple[str, ...] = Field(
        default=(), description="Dietary restrictions"
    )

    @field_validator("ages")
    @classmethod
    def validate_ages(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        """Validate ages are plausible."""
        for age in value:
            if not 0 <= age <= 120:
                raise ValueError(f"Age must be between 0 and 120, got {age}")
        return value

    @field_validator("interests", "dietary_restrictions")
    @classmethod
    def normalize_labels(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        """Strip blanks from free-text labels."""
        return tuple(label.strip() for label in value if label and label.strip())

    @property
    def travelers(self) -> int:
        return self.adults + self.children

    @property
    def child_ages(self) -> list[int]:
        return sorted(age for age in self.ages if age < ADULT_AGE)

    @property
    def youngest_age(self) -> int | None:
        return min(self.ages) if self.ages else None


class TripConstraints(FrozenCamelModel):
    """Hard requirements on the trip."""

    accessibility: bool = False
    pet_friendly: bool = False
    all_inclusive: bool = False


class TripPreferences(FrozenCamelModel):
    """What kind of trip the family wants."""

    destination: str | None = None
    origin: str | None = None
    budget: float = Field(..., gt=0, description="Total trip budget")
    start_date: IsoDate
    end_date: IsoDate
    trip_type: TripType = TripType.FAMILY
    accommodation_type: AccommodationType = AccommodationType.HOTEL
    transportation: TransportationMode = TransportationMode.FLIGHT
    currency: str = "USD"

    @field_validator("destination", "origin")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        """Treat empty strings as not provided."""
        if value is None or not value.strip():
            return None
        return value.strip()

    @model_validator(mode="after")
    def validate_date_range(self) -> "TripPreferences":
        """Validate the trip does not end before it starts."""
        if self.end_date < self.start_date:
            raise ValueError(
                f"endDate {self.end_date} is before startDate {self.start_date}"
            )
        return self

    @property
    def duration_days(self) -> int:
        return trip_duration_days(self.start_date, self.end_date)


class PlanningContext(FrozenCamelModel):
    """
    Immutable input bundle for one orchestration run.

    Created once per planning request and shared read-only by every stage.
    """

    user_id: str = Field(..., min_length=1)
    family_profile: FamilyProfile
    preferences: TripPreferences
    constraints: TripConstraints = Field(default_factory=TripConstraints)


class TripPlanningRequest(CamelModel):
    """Inbound JSON body of a plan-trip call."""

    family_profile: FamilyProfile
    destination: str | None = None
    origin: str | None = None
    budget: float = Field(default=5000, gt=0)
    start_date: IsoDate
    end_date: IsoDate
    trip_type: TripType = TripType.FAMILY
    accommodation_type: AccommodationType = AccommodationType.HOTEL
    transportation: TransportationMode = TransportationMode.FLIGHT
    constraints: TripConstraints = Field(default_factory=TripConstraints)
    user_id: str | None = None

    def to_context(
        self, default_user_id: str, currency: str = "USD"
    ) -> PlanningContext:
        """
        Build the immutable planning context for this request.

        Args:
            default_user_id: User id used when the request carries none
            currency: Currency the budget is expressed in

        Returns:
            PlanningContext for one orchestration run
        """
        return PlanningContext(
            user_id=self.user_id or default_user_id,
            family_profile=self.family_profile,
            preferences=TripPreferences(
                destination=self.destination,
                origin=self.origin,
                budget=self.budget,
                start_date=self.start_date,
                end_date=self.end_date,
                trip_type=self.trip_type,
                accommodation_type=self.accommodation_type,
                transportation=self.transportation,
                currency=currency,
            ),
            constraints=self.constraints,
        )


# Provider queries


class AttractionQuery(CamelModel):
    """Search for attractions around a location."""

    location: str = Field(..., min_length=1)
    limit: int = Field(default=20, ge=1, le=100)
    sort: str = "rating"
    min_rating: float | None = None
    category: str | None = None


class PlaceQuery(CamelModel):
    """Free-text or nearby place search."""

    query: str | None = None
    location: str | None = None
    radius: int | None = Field(default=None, gt=0, description="Radius in meters")
    type: str | None = None
    limit: int = Field(default=20, ge=1, le=100)

    @model_validator(mode="after")
    def require_query_or_location(self) -> "PlaceQuery":
        """A place search needs something to search for."""
        if not self.query and not self.location:
            raise ValueError("Place search needs a query or a location")
        return self


class FlightQuery(CamelModel):
    """Round-trip or one-way flight search."""

    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    departure_date: IsoDate
    return_date: IsoDate | None = None
    adults: int = Field(default=1, ge=1)
    children: int = Field(default=0, ge=0)
    cabin_class: str = "economy"
    currency: str = "USD"
    limit: int = Field(default=20, ge=1, le=100)

    @property
    def passengers(self) -> int:
        return self.adults + self.children


class AccommodationQuery(CamelModel):
    """Stay search for a date range."""

    location: str = Field(..., min_length=1)
    check_in: IsoDate
    check_out: IsoDate
    adults: int = Field(default=2, ge=1)
    children: int = Field(default=0, ge=0)
    rooms: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    max_price: float | None = Field(default=None, gt=0)
    accommodation_type: AccommodationType | None = None

    @model_validator(mode="after")
    def validate_stay(self) -> "AccommodationQuery":
        """Check-out cannot precede check-in."""
        if self.check_out < self.check_in:
            raise ValueError("checkOut must not be before checkIn")
        return self

    @property
    def nights(self) -> int:
        return trip_duration_days(self.check_in, self.check_out)


class WeatherQuery(CamelModel):
    """Current conditions for a location."""

    location: str = Field(..., min_length=1)
    units: str = "metric"


# Provider records


class Attraction(CamelModel):
    """A bookable or visitable attraction."""

    id: str
    name: str
    location: str
    category: str = "sightseeing"
    description: str = ""
    rating: float = 0.0
    review_count: int = 0
    price_min: float = 0.0
    price_max: float = 0.0
    duration_minutes: int = 120
    min_age: int = 0
    max_age: int = 99
    tags: list[str] = Field(default_factory=list)
    latitude: float | None = None
    longitude: float | None = None
    source: str = "mock"

    @property
    def average_price(self) -> float:
        return (self.price_min + self.price_max) / 2


class Place(CamelModel):
    """A point of interest such as a park, restaurant or playground."""

    id: str
    name: str
    address: str = ""
    types: list[str] = Field(default_factory=list)
    rating: float = 0.0
    user_ratings_total: int = 0
    price_level: int | None = None
    latitude: float | None = None
    longitude: float | None = None
    open_now: bool | None = None
    source: str = "mock"


class Flight(CamelModel):
    """A priced flight itinerary for the whole party."""

    id: str
    airline: str
    flight_number: str
    origin: str
    destination: str
    departure_time: datetime
    arrival_time: datetime
    return_departure_time: datetime | None = None
    duration_minutes: int
    stops: int = 0
    cabin_class: str = "economy"
    price_per_person: float
    total_price: float
    currency: str = "USD"
    source: str = "mock"


class Accommodation(CamelModel):
    """A priced stay for the whole trip."""

    id: str
    name: str
    type: AccommodationType = AccommodationType.HOTEL
    location: str
    address: str = ""
    rating: float = 0.0
    review_count: int = 0
    price_per_night: float
    nights: int = 1
    total_price: float
    currency: str = "USD"
    amenities: list[str] = Field(default_factory=list)
    family_friendly: bool = True
    max_occupancy: int = 4
    distance_to_center_km: float | None = None
    source: str = "mock"


class WeatherReport(CamelModel):
    """Current weather at a location."""

    location: str
    temperature: float
    feels_like: float
    condition: str
    description: str = ""
    humidity: int = 0
    wind_speed: float = 0.0
    units: str = "metric"
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    source: str = "mock"


class ProviderResult(CamelModel, Generic[T]):
    """
    Uniform envelope returned for every provider call.

    ``data`` holds a list of records for searches and a single record for
    weather. It is None only when ``success`` is False.
    """

    data: T | None = None
    success: bool = True
    error: str | None = None
    source: str | None = None

    @classmethod
    def ok(cls, data: T, source: str | None = None) -> "ProviderResult[T]":
        return cls(data=data, success=True, source=source)

    @classmethod
    def fail(cls, error: str, source: str | None = None) -> "ProviderResult[T]":
        return cls(data=None, success=False, error=error, source=source)


class ProviderHealth(CamelModel):
    """Outcome of one adapter's health probe."""

    provider: str
    capability: Capability
    healthy: bool
    mock: bool
    latency_ms: float = 0.0
    error: str | None = None


class HealthReport(CamelModel):
    """Health of every registered adapter."""

    providers: dict[str, ProviderHealth]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @computed_field
    @property
    def healthy(self) -> bool:
        return all(entry.healthy for entry in self.providers.values())
