"""
Planner stage for the family trip planner.

This module implements the PlannerAgent, which picks the destination,
gathers candidate activities from the attraction and place providers,
filters them by the children's ages, ranks them against the family's
interests and splits the budget across spending categories.
"""

from dataclasses import dataclass, field

from family_trip_planner.agents.base import StageAgent
from family_trip_planner.data.models import (
    Attraction,
    AttractionQuery,
    Capability,
    FamilyProfile,
    Place,
    PlaceQuery,
    TripPreferences,
)
from family_trip_planner.data.results import (
    Activity,
    BudgetBreakdown,
    DestinationSuggestion,
    PipelineContext,
    PlanningRecommendations,
    PlanningResult,
    StageName,
)
from family_trip_planner.utils.error_handling import StageError
from family_trip_planner.utils.helpers import get_country_code, round_money

# Share of the total budget per category
ACCOMMODATION_SHARE = 0.40
FOOD_SHARE = 0.25
TRANSPORTATION_SHARE = 0.15
ACTIVITIES_CAP_SHARE = 0.20

# Destinations whose minimum budget is within this factor of the family's stay in
BUDGET_BUFFER = 1.5

TOP_ACTIVITY_COUNT = 5
ATTRACTION_LIMIT = 20
PLACE_LIMIT = 10

# Per-person spend by Google price level
PRICE_LEVEL_COST = {0: 0.0, 1: 15.0, 2: 30.0, 3: 50.0, 4: 80.0}


@dataclass(frozen=True)
class CuratedDestination:
    """A well-known family destination the planner can suggest."""

    name: str
    city: str
    country: str
    description: str
    family_score: float
    budget_min: float
    budget_max: float
    best_time_to_visit: str
    highlights: list[str]
    tags: list[str]
    aliases: list[str] = field(default_factory=list)


CURATED_DESTINATIONS = [
    CuratedDestination(
        name="Walt Disney World Resort",
        city="Orlando",
        country="United States",
        description="The most magical place on earth with attractions for all ages",
        family_score=9.5,
        budget_min=3000,
        budget_max=8000,
        best_time_to_visit="March, April, September, October",
        highlights=["Theme Parks", "Character Meet & Greets", "Water Parks", "Shopping"],
        tags=["theme parks", "water parks", "rides", "characters", "animals", "shopping"],
        aliases=["orlando", "disney world", "walt disney world"],
    ),
    CuratedDestination(
        name="Maui",
        city="Maui",
        country="United States",
        description="Beaches, snorkeling and volcanic landscapes on a laid-back island",
        family_score=8.5,
        budget_min=4500,
        budget_max=11000,
        best_time_to_visit="April, May, September, October",
        highlights=["Ka'anapali Beach", "Maui Ocean Center", "Haleakala", "Luau"],
        tags=["beaches", "nature", "outdoors", "adventure", "animals"],
        aliases=["maui", "hawaii"],
    ),
    CuratedDestination(
        name="Paris",
        city="Paris",
        country="France",
        description="The City of Light with iconic landmarks and rich culture",
        family_score=8.0,
        budget_min=4000,
        budget_max=10000,
        best_time_to_visit="April, May, September, October",
        highlights=["Eiffel Tower", "Louvre Museum", "Disneyland Paris", "Seine River Cruise"],
        tags=["museums", "history", "art", "food", "theme parks", "parks"],
        aliases=["paris"],
    ),
    CuratedDestination(
        name="Tokyo",
        city="Tokyo",
        country="Japan",
        description="A fascinating blend of traditional culture and modern technology",
        family_score=7.5,
        budget_min=5000,
        budget_max=12000,
        best_time_to_visit="March, April, October, November",
        highlights=["Tokyo Disneyland", "Senso-ji Temple", "Tokyo Skytree", "Ueno Zoo"],
        tags=["culture", "food", "theme parks", "art", "shopping", "animals"],
        aliases=["tokyo"],
    ),
]


def _normalize(label: str) -> str:
    return label.strip().lower().replace("_", " ").rstrip("s")


def interest_overlap(interests: list[str] | tuple[str, ...], labels: list[str]) -> float:
    """
    Fraction of the family's interests that match any label.

    Matching is case-insensitive, ignores plural "s" and accepts a label
    containing the interest (or the reverse).

    Args:
        interests: The family's interests
        labels: Tags, categories or names describing a destination or activity

    Returns:
        Value between 0 and 1; 0 when the family lists no interests
    """
    if not interests:
        return 0.0
    normalized = [_normalize(label) for label in labels if label]
    matched = 0
    for interest in interests:
        wanted = _normalize(interest)
        if any(wanted in label or label in wanted for label in normalized if label):
            matched += 1
    return matched / len(interests)


class PlannerAgent(StageAgent[PlanningResult]):
    """Chooses the destination and the candidate activities."""

    stage = StageName.PLANNER
    description = "Destination suggestions, candidate activities and budget split"

    async def process(self, context: PipelineContext) -> PlanningResult:
        """
        Plan destination and activities for the family.

        Args:
            context: Pipeline context; only the planning context is read

        Returns:
            PlanningResult with destinations, ranked activities and recommendations

        Raises:
            StageError: If no destination fits or a provider search fails
        """
        planning = context.planning
        family = planning.family_profile
        preferences = planning.preferences
        manager = self._require_manager()

        destinations = self.suggest_destinations(family, preferences)
        if not destinations:
            raise StageError(
                f"No destinations found for a budget of {preferences.budget:g}",
                self.name,
            )
        best = destinations[0]
        search_location = preferences.destination or self._city_for(best)
        self.logger.info(
            f"Best destination: {best.name} ({len(destinations)} suggestion(s))"
        )
        self._report_progress(15)

        attractions = await self._search(
            Capability.ATTRACTIONS,
            manager.search_attractions,
            AttractionQuery(location=search_location, limit=ATTRACTION_LIMIT),
        )
        self._report_progress(40)

        interests_text = " ".join(family.interests) or "activities"
        places = await self._search(
            Capability.PLACES,
            manager.search_places,
            PlaceQuery(
                query=f"family friendly {interests_text}",
                location=search_location,
                limit=PLACE_LIMIT,
            ),
        )
        self._report_progress(65)

        activities = self.rank_activities(
            [self._from_attraction(a, family) for a in attractions or []]
            + [self._from_place(p, family, search_location) for p in places or []],
            family,
        )
        self._report_progress(85)

        top_activities = activities[:TOP_ACTIVITY_COUNT]
        result = PlanningResult(
            location=search_location,
            destinations=destinations,
            activities=activities,
            recommendations=PlanningRecommendations(
                best_destination=best,
                top_activities=top_activities,
                budget_breakdown=self.budget_breakdown(preferences.budget, top_activities),
            ),
        )
        self.logger.info(
            f"Planned {len(activities)} candidate activities for {best.name}"
        )
        return result

    def suggest_destinations(
        self, family: FamilyProfile, preferences: TripPreferences
    ) -> list[DestinationSuggestion]:
        """
        Destination suggestions, best first.

        A requested destination always comes first and keeps the requested
        name. Curated destinations follow when their minimum budget is
        within reach, ordered by interest match and family score.

        Args:
            family: Family profile
            preferences: Trip preferences

        Returns:
            List of suggestions, possibly empty
        """
        requested = preferences.destination
        matched = self._curated_for(requested) if requested else None

        scored = []
        for curated in CURATED_DESTINATIONS:
            if curated is matched:
                continue
            if curated.budget_min > preferences.budget * BUDGET_BUFFER:
                continue
            scored.append(self._to_suggestion(curated, family))
        scored.sort(key=lambda s: (-s.match_score, -s.family_friendly_score, s.name))

        if not requested:
            return scored

        if matched:
            head = self._to_suggestion(matched, family).model_copy(
                update={"name": requested, "requested": True, "match_score": 1.0}
            )
        else:
            head = self._synthesize(requested)
        return [head, *scored]

    def _to_suggestion(
        self, curated: CuratedDestination, family: FamilyProfile
    ) -> DestinationSuggestion:
        overlap = interest_overlap(family.interests, curated.tags + curated.highlights)
        return DestinationSuggestion(
            name=curated.name,
            country=curated.country,
            country_code=get_country_code(curated.country),
            description=curated.description,
            highlights=list(curated.highlights),
            best_time_to_visit=curated.best_time_to_visit,
            budget_min=curated.budget_min,
            budget_max=curated.budget_max,
            family_friendly_score=curated.family_score,
            match_score=round(0.5 * overlap + 0.5 * curated.family_score / 10, 3),
        )

    def _synthesize(self, requested: str) -> DestinationSuggestion:
        parts = [part.strip() for part in requested.split(",")]
        country = parts[-1] if len(parts) > 1 else ""
        return DestinationSuggestion(
            name=requested,
            country=country,
            country_code=get_country_code(country) if country else None,
            description=f"Family trip to {requested}",
            match_score=1.0,
            requested=True,
        )

    @staticmethod
    def _curated_for(destination: str) -> CuratedDestination | None:
        text = destination.strip().lower()
        for curated in CURATED_DESTINATIONS:
            if any(alias in text for alias in curated.aliases):
                return curated
        return None

    def _city_for(self, suggestion: DestinationSuggestion) -> str:
        for curated in CURATED_DESTINATIONS:
            if curated.name == suggestion.name:
                return curated.city
        return suggestion.name

    def _from_attraction(self, attraction: Attraction, family: FamilyProfile) -> Activity:
        per_person = round_money(attraction.average_price)
        return Activity(
            id=attraction.id,
            name=attraction.name,
            category=attraction.category,
            description=attraction.description,
            location=attraction.location,
            rating=attraction.rating,
            duration_minutes=attraction.duration_minutes,
            cost_per_person=per_person,
            estimated_cost=round_money(per_person * family.travelers),
            min_age=attraction.min_age,
            max_age=attraction.max_age,
            interest_score=interest_overlap(
                family.interests, [*attraction.tags, attraction.category, attraction.name]
            ),
            source="attraction",
            latitude=attraction.latitude,
            longitude=attraction.longitude,
        )

    def _from_place(self, place: Place, family: FamilyProfile, location: str) -> Activity:
        per_person = PRICE_LEVEL_COST.get(place.price_level or 0, 0.0)
        is_dining = any(t in ("restaurant", "cafe", "family_dining") for t in place.types)
        return Activity(
            id=place.id,
            name=place.name,
            category="dining" if is_dining else (place.types[0] if place.types else "place"),
            description=place.address,
            location=location,
            rating=place.rating,
            duration_minutes=90 if is_dining else 120,
            cost_per_person=per_person,
            estimated_cost=round_money(per_person * family.travelers),
            interest_score=interest_overlap(family.interests, [*place.types, place.name]),
            source="place",
            latitude=place.latitude,
            longitude=place.longitude,
        )

    def rank_activities(
        self, activities: list[Activity], family: FamilyProfile
    ) -> list[Activity]:
        """
        Drop unsuitable or duplicate activities and order the rest.

        An activity is suitable when the youngest traveller meets its minimum
        age and the oldest child does not exceed its maximum age.

        Args:
            activities: Candidate activities from all providers
            family: Family profile

        Returns:
            Activities ordered by interest match, then rating, then name
        """
        youngest = family.youngest_age
        children = family.child_ages
        oldest_child = children[-1] if children else None

        seen: set[str] = set()
        suitable = []
        for activity in activities:
            key = activity.name.strip().lower()
            if key in seen:
                continue
            if youngest is not None and activity.min_age > youngest:
                continue
            if oldest_child is not None and activity.max_age < oldest_child:
                continue
            seen.add(key)
            suitable.append(activity)

        suitable.sort(key=lambda a: (-a.interest_score, -a.rating, a.name))
        return suitable

    def budget_breakdown(
        self, budget: float, activities: list[Activity]
    ) -> BudgetBreakdown:
        """
        Split the budget across categories, capping activities at 20%.

        Args:
            budget: Total trip budget
            activities: Activities the budget should cover

        Returns:
            BudgetBreakdown with whole-dollar amounts
        """
        activity_cost = sum(a.estimated_cost for a in activities)
        accommodation = round(budget * ACCOMMODATION_SHARE)
        food = round(budget * FOOD_SHARE)
        transportation = round(budget * TRANSPORTATION_SHARE)
        activities_share = round(min(activity_cost, budget * ACTIVITIES_CAP_SHARE))
        return BudgetBreakdown(
            total=accommodation + food + transportation + activities_share,
            accommodation=accommodation,
            food=food,
            transportation=transportation,
            activities=activities_share,
        )
