"""
Scheduler stage for the family trip planner.

This module implements the SchedulerAgent, which lays the planner's ranked
activities out over the days of the trip with start times, meal breaks and
travel time between activities.
"""

from collections import Counter
from datetime import date
from typing import Literal

from family_trip_planner.agents.base import StageAgent
from family_trip_planner.data.results import (
    Activity,
    DaySchedule,
    ItineraryRecommendations,
    ItineraryResult,
    ItinerarySummary,
    PipelineContext,
    PlanningResult,
    ScheduleBreak,
    ScheduledActivity,
    StageName,
    TravelOptimization,
)
from family_trip_planner.utils.helpers import date_range, minutes_to_clock, round_money

Flexibility = Literal["high", "medium", "low"]

DAY_START = 9 * 60
DAY_END = 22 * 60
TRAVEL_MINUTES = 30
LUNCH_START = 12 * 60
LUNCH_END = 14 * 60

BREAKS = (
    ScheduleBreak(label="lunch", start_time="12:00", end_time="13:00"),
    ScheduleBreak(label="dinner", start_time="18:00", end_time="19:00"),
)

CATEGORY_NOTES = {
    "theme_park": ["Arrive early to avoid long lines", "Check ride height requirements"],
    "water_park": ["Bring swimwear and towels", "Weather dependent"],
    "beach": ["Bring swimwear and towels", "Weather dependent"],
    "dining": ["Reservation recommended"],
    "park": ["Weather dependent"],
    "tour": ["Book tickets in advance"],
    "museum": ["Check for family or children's tickets"],
    "zoo": ["Check feeding and show times"],
}


def flexibility_for(total_minutes: int) -> Flexibility:
    """Under 6 hours of activities is high, under 8 medium, otherwise low."""
    if total_minutes < 6 * 60:
        return "high"
    if total_minutes < 8 * 60:
        return "medium"
    return "low"


class _DaySlots:
    """Running state of one day while activities are placed."""

    def __init__(self, day: int):
        self.day = day
        self.clock = DAY_START
        self.placed: list[tuple[Activity, int]] = []

    def fits(self, activity: Activity, max_activities: int) -> bool:
        if len(self.placed) >= max_activities:
            return False
        return self.clock + activity.duration_minutes <= DAY_END

    def place(self, activity: Activity) -> None:
        self.placed.append((activity, self.clock))
        self.clock += activity.duration_minutes + TRAVEL_MINUTES
        if LUNCH_START <= self.clock < LUNCH_END:
            self.clock = LUNCH_END


class SchedulerAgent(StageAgent[ItineraryResult]):
    """Builds the day-by-day itinerary."""

    stage = StageName.SCHEDULER
    description = "Day-by-day itinerary with times, breaks and notes"

    async def process(self, context: PipelineContext) -> ItineraryResult:
        """
        Schedule the planner's activities over the trip.

        Args:
            context: Pipeline context with the planner output and, when
                available, the booking output

        Returns:
            ItineraryResult with one DaySchedule per trip day
        """
        preferences = context.planning.preferences
        planner: PlanningResult = context.require(StageName.PLANNER)
        days = preferences.duration_days

        slots, unscheduled = self.assign(
            planner.activities, days, self.config.max_activities_per_day
        )
        if unscheduled:
            self.logger.info(
                f"{len(unscheduled)} activity(ies) did not fit into {days} day(s)"
            )
        self._report_progress(40)

        schedules = [
            self._build_day(day_slots, day_date)
            for day_slots, day_date in zip(
                slots, date_range(preferences.start_date, days), strict=True
            )
        ]
        self._report_progress(75)

        accommodation = None
        if context.booking is not None:
            accommodation = context.booking.best_option.accommodation

        result = ItineraryResult(
            accommodation=accommodation,
            daily_schedules=schedules,
            summary=self.summarize(schedules),
            recommendations=self.recommend_days(schedules),
            travel_optimization=self.optimize_travel(schedules, planner.location),
            unscheduled=unscheduled,
        )
        self.logger.info(
            f"Scheduled {len(result.scheduled_activities)} activities over {days} day(s)"
        )
        return result

    @staticmethod
    def assign(
        activities: list[Activity], days: int, max_per_day: int
    ) -> tuple[list[_DaySlots], list[Activity]]:
        """
        Distribute activities round-robin across days.

        Activity ``i`` starts looking at day ``i % days`` and takes the first
        day, cycling forward, that still has room for it. Room means fewer
        than ``max_per_day`` activities and an end time before 22:00.

        Args:
            activities: Activities in ranked order
            days: Number of trip days
            max_per_day: Upper bound of activities on one day

        Returns:
            Per-day slots and the activities that fit nowhere
        """
        slots = [_DaySlots(day) for day in range(1, days + 1)]
        unscheduled = []
        for index, activity in enumerate(activities):
            for offset in range(days):
                day_slots = slots[(index + offset) % days]
                if day_slots.fits(activity, max_per_day):
                    day_slots.place(activity)
                    break
            else:
                unscheduled.append(activity)
        return slots, unscheduled

    def _build_day(self, day_slots: _DaySlots, day_date: date) -> DaySchedule:
        scheduled = [
            ScheduledActivity(
                activity_id=activity.id,
                name=activity.name,
                category=activity.category,
                start_time=minutes_to_clock(start),
                end_time=minutes_to_clock(start + activity.duration_minutes),
                duration_minutes=activity.duration_minutes,
                estimated_cost=activity.estimated_cost,
                location=activity.location,
                notes=self.notes_for(activity, day_slots.day, position),
            )
            for position, (activity, start) in enumerate(day_slots.placed)
        ]
        total_minutes = sum(a.duration_minutes for a in scheduled)
        return DaySchedule(
            day=day_slots.day,
            date=day_date,
            activities=scheduled,
            breaks=[b.model_copy() for b in BREAKS],
            total_duration_minutes=total_minutes,
            total_cost=round_money(sum(a.estimated_cost for a in scheduled)),
            flexibility=flexibility_for(total_minutes),
        )

    @staticmethod
    def notes_for(activity: Activity, day: int, position: int) -> list[str]:
        notes = list(CATEGORY_NOTES.get(activity.category, []))
        if day == 1 and position == 0:
            notes.append("First day: allow extra time for orientation")
        return notes

    @staticmethod
    def summarize(schedules: list[DaySchedule]) -> ItinerarySummary:
        total_days = len(schedules)
        total_minutes = sum(s.total_duration_minutes for s in schedules)
        average = round(total_minutes / total_days, 1) if total_days else 0.0
        counts = Counter(s.flexibility for s in schedules)
        # Ties resolve towards the more relaxed level
        overall = max(("high", "medium", "low"), key=lambda level: counts[level])
        return ItinerarySummary(
            total_days=total_days,
            total_activities=sum(len(s.activities) for s in schedules),
            total_cost=round_money(sum(s.total_cost for s in schedules)),
            average_daily_duration_minutes=average,
            flexibility=overall,
        )

    @staticmethod
    def recommend_days(schedules: list[DaySchedule]) -> ItineraryRecommendations:
        """
        Busiest days and days suited to resting.

        Returns:
            Up to two best days (most activities) and every day without
            activities as rest days, or the single quietest day if none is empty
        """
        if not schedules:
            return ItineraryRecommendations()
        busiest = sorted(schedules, key=lambda s: (-len(s.activities), s.day))
        best_days = [s.day for s in busiest[:2] if s.activities]
        rest_days = [s.day for s in schedules if not s.activities]
        if not rest_days:
            rest_days = [min(schedules, key=lambda s: (len(s.activities), s.day)).day]
        return ItineraryRecommendations(best_days=best_days, rest_days=rest_days)

    @staticmethod
    def optimize_travel(schedules: list[DaySchedule], location: str) -> TravelOptimization:
        travel_minutes = sum(
            TRAVEL_MINUTES * max(len(s.activities) - 1, 0) for s in schedules
        )
        suggestions = []
        if travel_minutes:
            suggestions.append(
                f"Plan {travel_minutes} minutes of transfers between activities in {location}"
            )
            suggestions.append("Group nearby activities on the same day")
        busy = [s.day for s in schedules if s.flexibility == "low"]
        if busy:
            suggestions.append(
                "Consider a rental car or ride-sharing on busy days: "
                + ", ".join(str(day) for day in busy)
            )
        return TravelOptimization(total_travel_minutes=travel_minutes, suggestions=suggestions)
