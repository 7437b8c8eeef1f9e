"""
Stage outputs, stage status and the orchestration result.

Every stage of the pipeline produces one of the output models below. The
orchestrator combines them into an OrchestrationResult, a tagged union on
``success`` that is immutable once built.
"""

from datetime import UTC, date, datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import Field

from family_trip_planner.data.models import (
    Accommodation,
    CamelModel,
    Flight,
    FrozenCamelModel,
    PlanningContext,
)


class StageName(str, Enum):
    """Pipeline stages in execution order."""

    PLANNER = "planner"
    BOOKING = "booking"
    SCHEDULER = "scheduler"
    UI = "ui"


STAGE_ORDER: tuple[StageName, ...] = (
    StageName.PLANNER,
    StageName.BOOKING,
    StageName.SCHEDULER,
    StageName.UI,
)


class StageState(str, Enum):
    """Lifecycle of a single stage."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (StageState.COMPLETED, StageState.FAILED)


class RunState(str, Enum):
    """Lifecycle of an orchestration run."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class StageStatus(CamelModel):
    """Snapshot of one stage's state, progress and error."""

    name: StageName
    state: StageState = StageState.PENDING
    progress: int = Field(default=0, ge=0, le=100)
    error: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None


class ProgressReport(CamelModel):
    """Aggregate progress of a run plus a per-stage breakdown."""

    overall: float
    state: RunState
    stages: dict[StageName, StageStatus]


# Planner output


class DestinationSuggestion(CamelModel):
    """A candidate destination with its fit for the family."""

    name: str
    country: str = ""
    country_code: str | None = None
    description: str = ""
    highlights: list[str] = Field(default_factory=list)
    best_time_to_visit: str = ""
    budget_min: float = 0.0
    budget_max: float = 0.0
    family_friendly_score: float = 0.0
    match_score: float = 0.0
    requested: bool = False


class Activity(CamelModel):
    """A candidate activity at the chosen destination."""

    id: str
    name: str
    category: str
    description: str = ""
    location: str = ""
    rating: float = 0.0
    duration_minutes: int = 120
    cost_per_person: float = 0.0
    estimated_cost: float = 0.0
    min_age: int = 0
    max_age: int = 99
    interest_score: float = 0.0
    source: Literal["attraction", "place"] = "attraction"
    latitude: float | None = None
    longitude: float | None = None


class BudgetBreakdown(CamelModel):
    """How the total budget is split across spending categories."""

    total: float
    accommodation: float
    food: float
    transportation: float
    activities: float


class PlanningRecommendations(CamelModel):
    best_destination: DestinationSuggestion
    top_activities: list[Activity] = Field(default_factory=list)
    budget_breakdown: BudgetBreakdown


class PlanningResult(CamelModel):
    """Output of the planner stage."""

    location: str
    destinations: list[DestinationSuggestion]
    activities: list[Activity]
    recommendations: PlanningRecommendations

    @property
    def destination_name(self) -> str:
        return self.recommendations.best_destination.name


# Booking output


class BookingOption(CamelModel):
    """One flight paired with one stay."""

    id: str
    flight: Flight
    accommodation: Accommodation
    total_cost: float
    within_budget: bool = True


class PriceComparison(CamelModel):
    average: float = 0.0
    lowest: float = 0.0
    highest: float = 0.0
    option_count: int = 0


class BookingResult(CamelModel):
    """Output of the booking stage."""

    flights: list[Flight]
    accommodations: list[Accommodation]
    recommendations: list[BookingOption]
    best_option: BookingOption
    alternatives: list[BookingOption] = Field(default_factory=list)
    price_comparison: PriceComparison
    savings: float = 0.0
    budget: float = 0.0
    within_budget: bool = True


# Scheduler output


class ScheduledActivity(CamelModel):
    """An activity placed on a specific day and time."""

    activity_id: str
    name: str
    category: str
    start_time: str
    end_time: str
    duration_minutes: int
    estimated_cost: float = 0.0
    location: str = ""
    notes: list[str] = Field(default_factory=list)


class ScheduleBreak(CamelModel):
    label: str
    start_time: str
    end_time: str


class DaySchedule(CamelModel):
    """Everything planned for one day of the trip."""

    day: int
    date: date
    activities: list[ScheduledActivity] = Field(default_factory=list)
    breaks: list[ScheduleBreak] = Field(default_factory=list)
    total_duration_minutes: int = 0
    total_cost: float = 0.0
    flexibility: Literal["high", "medium", "low"] = "high"


class ItinerarySummary(CamelModel):
    total_days: int
    total_activities: int
    total_cost: float
    average_daily_duration_minutes: float
    flexibility: Literal["high", "medium", "low"]


class ItineraryRecommendations(CamelModel):
    best_days: list[int] = Field(default_factory=list)
    rest_days: list[int] = Field(default_factory=list)


class TravelOptimization(CamelModel):
    total_travel_minutes: int = 0
    suggestions: list[str] = Field(default_factory=list)


class ItineraryResult(CamelModel):
    """Output of the scheduler stage."""

    accommodation: Accommodation | None = None
    daily_schedules: list[DaySchedule]
    summary: ItinerarySummary
    recommendations: ItineraryRecommendations
    travel_optimization: TravelOptimization
    unscheduled: list[Activity] = Field(default_factory=list)

    @property
    def scheduled_activities(self) -> list[ScheduledActivity]:
        return [a for day in self.daily_schedules for a in day.activities]


# UI output


class ItineraryDayView(CamelModel):
    day: int
    date: date
    title: str
    activities: list[str]
    time_slots: list[str]
    total_cost: float
    formatted_cost: str


class DashboardInsights(CamelModel):
    recommendations: list[str] = Field(default_factory=list)
    tips: list[str] = Field(default_factory=list)
    alerts: list[str] = Field(default_factory=list)


class Dashboard(CamelModel):
    """Display-ready view of the whole plan."""

    overview: dict[str, Any]
    planning: dict[str, Any]
    booking: dict[str, Any]
    itinerary: list[ItineraryDayView]
    insights: DashboardInsights


class SharingLinks(CamelModel):
    share_id: str
    public_url: str
    email_subject: str
    email_body: str
    qr_code_url: str
    social: dict[str, str] = Field(default_factory=dict)


class UIResult(CamelModel):
    """Output of the UI stage."""

    dashboard: Dashboard
    exports: dict[str, Any]
    sharing: SharingLinks
    visualizations: dict[str, Any]

    @property
    def itinerary_activities(self) -> list[str]:
        return [name for day in self.dashboard.itinerary for name in day.activities]


StageOutput = PlanningResult | BookingResult | ItineraryResult | UIResult


class PipelineContext(FrozenCamelModel):
    """
    What a stage sees: the planning context plus the outputs of every
    earlier stage that completed.
    """

    planning: PlanningContext
    planner: PlanningResult | None = None
    booking: BookingResult | None = None
    scheduler: ItineraryResult | None = None
    ui: UIResult | None = None

    def with_output(self, stage: StageName, output: StageOutput) -> "PipelineContext":
        return self.model_copy(update={stage.value: output})

    def require(self, stage: StageName) -> StageOutput:
        """
        Return an earlier stage's output.

        Raises:
            LookupError: If that stage has not produced an output
        """
        output = getattr(self, stage.value)
        if output is None:
            raise LookupError(f"{stage.value} output is not available")
        return output


# Orchestration result


class TripSummary(FrozenCamelModel):
    """Headline numbers of a finished plan. Every field has an empty default."""

    destination: str = ""
    total_cost: float = 0.0
    savings: float = 0.0
    duration: int = 0
    activities: tuple[str, ...] = ()
    activity_count: int = 0
    flight_count: int = 0
    accommodation_count: int = 0
    currency: str = "USD"
    status: str = "planned"


class TripPlanData(FrozenCamelModel):
    summary: TripSummary
    planner: PlanningResult
    booking: BookingResult
    scheduler: ItineraryResult
    ui: UIResult


class ResultMetadata(FrozenCamelModel):
    run_id: str
    user_id: str
    stages_run: list[StageName]
    duration_ms: float = 0.0
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class OrchestrationSuccess(FrozenCamelModel):
    success: Literal[True] = True
    data: TripPlanData
    metadata: ResultMetadata

    def to_response(self) -> dict[str, Any]:
        return {
            "success": True,
            "data": self.data.model_dump(mode="json", by_alias=True),
        }


class OrchestrationFailure(FrozenCamelModel):
    success: Literal[False] = False
    error: str
    failed_stage: StageName | None = None
    metadata: ResultMetadata | None = None

    def to_response(self) -> dict[str, Any]:
        return {"success": False, "error": self.error}


OrchestrationResult = Annotated[
    OrchestrationSuccess | OrchestrationFailure, Field(discriminator="success")
]
