"""
Booking stage for the family trip planner.

This module implements the BookingAgent, which searches flights and stays
for the planner's destination, pairs them into booking options and picks
the cheapest option that fits the travel part of the budget.
"""

import math
from datetime import timedelta

from family_trip_planner.agents.base import StageAgent
from family_trip_planner.data.models import (
    Accommodation,
    AccommodationQuery,
    Capability,
    Flight,
    FlightQuery,
    PlanningContext,
)
from family_trip_planner.data.results import (
    BookingOption,
    BookingResult,
    PipelineContext,
    PlanningResult,
    PriceComparison,
    StageName,
)
from family_trip_planner.utils.error_handling import StageError
from family_trip_planner.utils.helpers import round_money

# Candidates of each kind paired into options
MAX_FLIGHT_CANDIDATES = 5
MAX_STAY_CANDIDATES = 5

ALTERNATIVE_COUNT = 3
GUESTS_PER_ROOM = 4


class BookingAgent(StageAgent[BookingResult]):
    """Finds flights and stays and the best combination of the two."""

    stage = StageName.BOOKING
    description = "Flight and accommodation options within budget"

    async def process(self, context: PipelineContext) -> BookingResult:
        """
        Search flights and stays for the planned destination.

        Args:
            context: Pipeline context with the planner output

        Returns:
            BookingResult with every option and the recommended one

        Raises:
            StageError: If a search fails or returns nothing
        """
        planning = context.planning
        planner: PlanningResult = context.require(StageName.PLANNER)
        manager = self._require_manager()
        location = planner.location

        flights = await self._search(
            Capability.FLIGHTS,
            manager.search_flights,
            self.flight_query(planning, location),
        )
        if not flights:
            raise StageError(f"No flights found to {location}", self.name)
        self._report_progress(35)

        stays = await self._search(
            Capability.ACCOMMODATIONS,
            manager.search_accommodations,
            self.stay_query(planning, location),
        )
        if not stays:
            raise StageError(f"No accommodations found in {location}", self.name)
        self._report_progress(70)

        stays = self.prefer_type(stays, planning)
        budget = self.travel_budget(planner, planning.preferences.budget)
        options = self.combine(flights, stays, budget)
        recommended = [o for o in options if o.within_budget] or options

        if not any(o.within_budget for o in options):
            self.logger.warning(
                f"No option fits the travel budget of {budget:g}, "
                f"recommending the cheapest ({options[0].total_cost:g})"
            )

        comparison = self.compare_prices(options)
        best = recommended[0]
        result = BookingResult(
            flights=flights,
            accommodations=stays,
            recommendations=recommended,
            best_option=best,
            alternatives=recommended[1 : 1 + ALTERNATIVE_COUNT],
            price_comparison=comparison,
            savings=round_money(max(comparison.average - best.total_cost, 0.0)),
            budget=budget,
            within_budget=best.within_budget,
        )
        self.logger.info(
            f"Best option {best.id}: {best.flight.airline} + "
            f"{best.accommodation.name} for {best.total_cost:g}"
        )
        return result

    def flight_query(self, planning: PlanningContext, location: str) -> FlightQuery:
        family = planning.family_profile
        preferences = planning.preferences
        return FlightQuery(
            origin=preferences.origin or self.config.default_origin,
            destination=location,
            departure_date=preferences.start_date,
            return_date=preferences.end_date,
            adults=family.adults,
            children=family.children,
            currency=preferences.currency,
        )

    def stay_query(self, planning: PlanningContext, location: str) -> AccommodationQuery:
        family = planning.family_profile
        preferences = planning.preferences
        check_out = preferences.end_date
        if check_out <= preferences.start_date:
            check_out = preferences.start_date + timedelta(days=1)
        return AccommodationQuery(
            location=location,
            check_in=preferences.start_date,
            check_out=check_out,
            adults=family.adults,
            children=family.children,
            rooms=max(1, math.ceil(family.travelers / GUESTS_PER_ROOM)),
        )

    def prefer_type(
        self, stays: list[Accommodation], planning: PlanningContext
    ) -> list[Accommodation]:
        """Keep only the requested accommodation type when any is available."""
        wanted = planning.preferences.accommodation_type
        preferred = [s for s in stays if s.type == wanted]
        if not preferred:
            self.logger.info(f"No {wanted.value} available, keeping all stay types")
            return stays
        return preferred

    @staticmethod
    def travel_budget(planner: PlanningResult, total_budget: float) -> float:
        """Part of the budget set aside for getting there and staying there."""
        breakdown = planner.recommendations.budget_breakdown
        share = breakdown.accommodation + breakdown.transportation
        return share if share > 0 else total_budget

    @staticmethod
    def combine(
        flights: list[Flight], stays: list[Accommodation], budget: float
    ) -> list[BookingOption]:
        """
        Pair the cheapest flights with the cheapest stays.

        Args:
            flights: Flight candidates
            stays: Accommodation candidates
            budget: Upper bound for flight plus stay

        Returns:
            Options ordered by total cost, each flagged with whether it fits
        """
        cheapest_flights = sorted(flights, key=lambda f: f.total_price)[
            :MAX_FLIGHT_CANDIDATES
        ]
        cheapest_stays = sorted(stays, key=lambda s: (s.total_price, -s.rating))[
            :MAX_STAY_CANDIDATES
        ]

        options = []
        for flight in cheapest_flights:
            for stay in cheapest_stays:
                total = round_money(flight.total_price + stay.total_price)
                options.append(
                    BookingOption(
                        id=f"{flight.id}+{stay.id}",
                        flight=flight,
                        accommodation=stay,
                        total_cost=total,
                        within_budget=total <= budget,
                    )
                )
        options.sort(key=lambda o: (o.total_cost, -o.accommodation.rating, o.id))
        return options

    @staticmethod
    def compare_prices(options: list[BookingOption]) -> PriceComparison:
        if not options:
            return PriceComparison()
        totals = [o.total_cost for o in options]
        return PriceComparison(
            average=round_money(sum(totals) / len(totals)),
            lowest=min(totals),
            highest=max(totals),
            option_count=len(totals),
        )
