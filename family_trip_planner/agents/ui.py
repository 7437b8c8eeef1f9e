"""
UI stage for the family trip planner.

This module implements the UIAgent, which reshapes the outputs of the
earlier stages into display-ready data: a dashboard, export documents,
sharing links and chart/map/timeline data. It makes no external calls.
"""

from datetime import date
from typing import Any
from urllib.parse import quote

from family_trip_planner.agents.base import StageAgent
from family_trip_planner.data.results import (
    BookingResult,
    Dashboard,
    DashboardInsights,
    ItineraryDayView,
    ItineraryResult,
    PipelineContext,
    PlanningResult,
    SharingLinks,
    StageName,
    UIResult,
)
from family_trip_planner.utils.helpers import (
    clock_to_minutes,
    format_price,
    generate_id,
    safe_serialize,
    truncate_text,
)

QR_CODE_URL = "https://api.qrserver.com/v1/create-qr-code/?size=200x200&data={data}"
TITLE_LENGTH = 60
ICAL_PRODUCT_ID = "-//Family Trip Planner//Itinerary//EN"


def _ical_escape(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def _ical_stamp(day: date, clock: str) -> str:
    return f"{day.strftime('%Y%m%d')}T{clock.replace(':', '')}00"


class UIAgent(StageAgent[UIResult]):
    """Turns the finished plan into dashboard, export and sharing data."""

    stage = StageName.UI
    description = "Dashboard, exports, sharing links and visualizations"

    async def process(self, context: PipelineContext) -> UIResult:
        """
        Build the display-ready view of the plan.

        Args:
            context: Pipeline context with planner, booking and scheduler outputs

        Returns:
            UIResult in which every scheduled activity appears exactly once
            in the itinerary and the timeline
        """
        planner: PlanningResult = context.require(StageName.PLANNER)
        booking: BookingResult = context.require(StageName.BOOKING)
        itinerary: ItineraryResult = context.require(StageName.SCHEDULER)

        dashboard = self.build_dashboard(context, planner, booking, itinerary)
        self._report_progress(40)

        share_id = generate_id("trip")
        exports = self.build_exports(dashboard, itinerary, share_id)
        self._report_progress(70)

        result = UIResult(
            dashboard=dashboard,
            exports=exports,
            sharing=self.build_sharing(dashboard, share_id),
            visualizations=self.build_visualizations(planner, itinerary),
        )
        self.logger.info(
            f"Prepared dashboard with {len(result.itinerary_activities)} itinerary entries"
        )
        return result

    def build_dashboard(
        self,
        context: PipelineContext,
        planner: PlanningResult,
        booking: BookingResult,
        itinerary: ItineraryResult,
    ) -> Dashboard:
        preferences = context.planning.preferences
        family = context.planning.family_profile
        currency = preferences.currency
        best = booking.best_option
        breakdown = planner.recommendations.budget_breakdown

        overview = {
            "destination": planner.destination_name,
            "startDate": preferences.start_date.isoformat(),
            "endDate": preferences.end_date.isoformat(),
            "tripDuration": len(itinerary.daily_schedules),
            "travelers": family.travelers,
            "budget": preferences.budget,
            "totalCost": best.total_cost,
            "formattedTotalCost": format_price(best.total_cost, currency),
            "savings": booking.savings,
            "formattedSavings": format_price(booking.savings, currency),
            "currency": currency,
        }
        planning = {
            "destinations": [d.name for d in planner.destinations],
            "topActivities": [a.name for a in planner.recommendations.top_activities],
            "budgetBreakdown": breakdown.model_dump(mode="json", by_alias=True),
        }
        booking_view = {
            "flight": {
                "airline": best.flight.airline,
                "flightNumber": best.flight.flight_number,
                "route": f"{best.flight.origin} -> {best.flight.destination}",
                "price": format_price(best.flight.total_price, currency),
            },
            "accommodation": {
                "name": best.accommodation.name,
                "type": best.accommodation.type.value,
                "rating": best.accommodation.rating,
                "price": format_price(best.accommodation.total_price, currency),
            },
            "alternatives": len(booking.alternatives),
            "withinBudget": booking.within_budget,
        }

        return Dashboard(
            overview=overview,
            planning=planning,
            booking=booking_view,
            itinerary=self.day_views(itinerary, currency),
            insights=self.build_insights(context, booking, itinerary),
        )

    @staticmethod
    def day_views(itinerary: ItineraryResult, currency: str) -> list[ItineraryDayView]:
        views = []
        for schedule in itinerary.daily_schedules:
            names = [a.name for a in schedule.activities]
            title = f"Day {schedule.day}: " + (" & ".join(names) if names else "Free day")
            views.append(
                ItineraryDayView(
                    day=schedule.day,
                    date=schedule.date,
                    title=truncate_text(title, TITLE_LENGTH),
                    activities=names,
                    time_slots=[f"{a.start_time} - {a.end_time}" for a in schedule.activities],
                    total_cost=schedule.total_cost,
                    formatted_cost=format_price(schedule.total_cost, currency),
                )
            )
        return views

    @staticmethod
    def build_insights(
        context: PipelineContext, booking: BookingResult, itinerary: ItineraryResult
    ) -> DashboardInsights:
        family = context.planning.family_profile
        currency = context.planning.preferences.currency
        insights = DashboardInsights()

        if booking.savings > 0:
            insights.recommendations.append(
                f"The recommended option saves {format_price(booking.savings, currency)} "
                "compared to the average option"
            )
        if itinerary.recommendations.rest_days:
            days = ", ".join(str(d) for d in itinerary.recommendations.rest_days)
            insights.recommendations.append(f"Keep day(s) {days} light for resting")
        insights.recommendations.extend(itinerary.travel_optimization.suggestions)

        youngest = family.youngest_age
        if youngest is not None and youngest < 6:
            insights.tips.append("Plan an afternoon nap break for the youngest travellers")
        if any(s.flexibility == "low" for s in itinerary.daily_schedules):
            insights.tips.append("Pack snacks and water for the longer days")
        insights.tips.append("Arrive at popular attractions before opening time")

        if not booking.within_budget:
            insights.alerts.append(
                f"The cheapest option ({format_price(booking.best_option.total_cost, currency)}) "
                f"exceeds the travel budget of {format_price(booking.budget, currency)}"
            )
        if itinerary.unscheduled:
            insights.alerts.append(
                f"{len(itinerary.unscheduled)} activity(ies) did not fit into the schedule"
            )
        return insights

    def build_exports(
        self, dashboard: Dashboard, itinerary: ItineraryResult, share_id: str
    ) -> dict[str, Any]:
        """
        Export documents for download.

        Returns:
            Mapping of format to ``{"filename", "data"}``; ``ical`` data is
            iCalendar text, ``printable`` is a document structure of sections
        """
        return {
            "json": {
                "filename": f"{share_id}.json",
                "data": safe_serialize(dashboard),
            },
            "ical": {
                "filename": f"{share_id}.ics",
                "data": self.to_ical(itinerary, dashboard.overview["destination"], share_id),
            },
            "printable": {
                "filename": f"{share_id}.pdf",
                "data": self.to_printable(dashboard),
            },
        }

    @staticmethod
    def to_ical(itinerary: ItineraryResult, destination: str, share_id: str) -> str:
        lines = [
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            f"PRODID:{ICAL_PRODUCT_ID}",
            f"X-WR-CALNAME:{_ical_escape(f'Family trip to {destination}')}",
        ]
        for schedule in itinerary.daily_schedules:
            for index, activity in enumerate(schedule.activities, start=1):
                lines.extend(
                    [
                        "BEGIN:VEVENT",
                        f"UID:{share_id}-day{schedule.day}-{index}",
                        f"DTSTART:{_ical_stamp(schedule.date, activity.start_time)}",
                        f"DTEND:{_ical_stamp(schedule.date, activity.end_time)}",
                        f"SUMMARY:{_ical_escape(activity.name)}",
                        f"LOCATION:{_ical_escape(activity.location or destination)}",
                        f"DESCRIPTION:{_ical_escape('. '.join(activity.notes))}",
                        f"CATEGORIES:{_ical_escape(activity.category)}",
                        "END:VEVENT",
                    ]
                )
        lines.append("END:VCALENDAR")
        return "\r\n".join(lines) + "\r\n"

    @staticmethod
    def to_printable(dashboard: Dashboard) -> dict[str, Any]:
        overview = dashboard.overview
        return {
            "title": "Family Trip Itinerary",
            "subtitle": overview["destination"],
            "dates": f"{overview['startDate']} - {overview['endDate']}",
            "sections": [
                {
                    "title": "Overview",
                    "content": {
                        "totalCost": overview["formattedTotalCost"],
                        "savings": overview["formattedSavings"],
                        "duration": f"{overview['tripDuration']} days",
                    },
                },
                {
                    "title": "Daily Itinerary",
                    "content": [
                        {
                            "day": view.day,
                            "date": view.date.isoformat(),
                            "activities": [
                                f"{slot} {name}"
                                for slot, name in zip(view.time_slots, view.activities, strict=True)
                            ],
                        }
                        for view in dashboard.itinerary
                    ],
                },
                {
                    "title": "Budget Breakdown",
                    "content": dashboard.planning["budgetBreakdown"],
                },
            ],
        }

    def build_sharing(self, dashboard: Dashboard, share_id: str) -> SharingLinks:
        public_url = f"{self.config.frontend_url.rstrip('/')}/trip/{share_id}"
        encoded = quote(public_url, safe="")
        destination = dashboard.overview["destination"]
        subject = f"Our family trip to {destination}"
        return SharingLinks(
            share_id=share_id,
            public_url=public_url,
            email_subject=subject,
            email_body=f"Check out our trip plan: {public_url}",
            qr_code_url=QR_CODE_URL.format(data=encoded),
            social={
                "facebook": f"https://www.facebook.com/sharer/sharer.php?u={encoded}",
                "twitter": (
                    "https://twitter.com/intent/tweet?text="
                    f"{quote('Check out our family trip plan!')}&url={encoded}"
                ),
                "email": f"mailto:?subject={quote(subject)}&body={quote(public_url)}",
            },
        )

    @staticmethod
    def build_visualizations(
        planner: PlanningResult, itinerary: ItineraryResult
    ) -> dict[str, Any]:
        breakdown = planner.recommendations.budget_breakdown
        coordinates = {a.id: (a.latitude, a.longitude) for a in planner.activities}

        budget_pie = {
            "type": "pie",
            "title": "Budget Breakdown",
            "data": [
                {"label": "Accommodation", "value": breakdown.accommodation},
                {"label": "Food", "value": breakdown.food},
                {"label": "Transportation", "value": breakdown.transportation},
                {"label": "Activities", "value": breakdown.activities},
            ],
        }
        daily_duration = {
            "type": "bar",
            "title": "Daily Activity Duration",
            "data": [
                {
                    "label": f"Day {s.day}",
                    "value": round(s.total_duration_minutes / 60, 2),
                }
                for s in itinerary.daily_schedules
            ],
        }

        markers = []
        events = []
        for schedule in itinerary.daily_schedules:
            for activity in schedule.activities:
                lat, lng = coordinates.get(activity.activity_id, (None, None))
                markers.append(
                    {
                        "title": activity.name,
                        "category": activity.category,
                        "day": schedule.day,
                        "position": {"lat": lat, "lng": lng},
                    }
                )
                events.append(
                    {
                        "date": schedule.date.isoformat(),
                        "time": activity.start_time,
                        "minutes": clock_to_minutes(activity.start_time),
                        "title": activity.name,
                        "description": f"{activity.start_time} - {activity.end_time}",
                        "category": activity.category,
                    }
                )
        events.sort(key=lambda e: (e["date"], e["minutes"]))

        return {
            "charts": [budget_pie, daily_duration],
            "maps": [
                {
                    "type": "destination",
                    "title": planner.destination_name,
                    "markers": markers,
                }
            ],
            "timelines": [{"type": "itinerary", "title": "Trip Timeline", "events": events}],
        }
