"""Tests for the pipeline stage agents."""

import asyncio
from datetime import date
from unittest.mock import AsyncMock

import pytest

from family_trip_planner.agents import (
    BookingAgent,
    PlannerAgent,
    SchedulerAgent,
    StageAgent,
    StageConfig,
    UIAgent,
)
from family_trip_planner.data.models import FamilyProfile, ProviderResult
from family_trip_planner.data.results import (
    Activity,
    PipelineContext,
    StageName,
    StageState,
)
from family_trip_planner.utils.error_handling import StageError


class _ScriptedStage(StageAgent[str]):
    """Stage whose process step is supplied by the test."""

    stage = StageName.PLANNER

    def __init__(self, step, config=None):
        super().__init__(config=config)
        self.step = step
        self.calls = 0

    async def process(self, context):
        self.calls += 1
        return await self.step(self)


def _activity(name: str, minutes: int, **overrides) -> Activity:
    return Activity(id=name.lower(), name=name, category="museum", duration_minutes=minutes, **overrides)


# Base stage lifecycle


@pytest.mark.asyncio
async def test_stage_completes_with_full_progress(planning_context):
    """A successful stage ends completed at 100%."""

    async def step(agent):
        return "done"

    agent = _ScriptedStage(step)
    assert agent.get_status().state is StageState.PENDING

    output = await agent.execute(PipelineContext(planning=planning_context))

    status = agent.get_status()
    assert output == "done"
    assert agent.output == "done"
    assert status.state is StageState.COMPLETED
    assert status.progress == 100
    assert status.error is None
    assert status.started_at is not None and status.finished_at is not None


@pytest.mark.asyncio
async def test_stage_runs_at_most_once(planning_context):
    """A second execute returns the recorded output without re-running."""

    async def step(agent):
        return f"run {agent.calls}"

    agent = _ScriptedStage(step)
    pipeline = PipelineContext(planning=planning_context)

    first = await agent.execute(pipeline)
    second = await agent.execute(pipeline)

    assert first == second == "run 1"
    assert agent.calls == 1


@pytest.mark.asyncio
async def test_stage_error_message_is_kept(planning_context):
    """StageError text becomes the recorded error verbatim."""

    async def step(agent):
        raise StageError("No flights found to Atlantis", agent.name)

    agent = _ScriptedStage(step)
    output = await agent.execute(PipelineContext(planning=planning_context))

    status = agent.get_status()
    assert output is None
    assert status.state is StageState.FAILED
    assert status.error == "No flights found to Atlantis"


@pytest.mark.asyncio
async def test_unexpected_exception_fails_stage(planning_context):
    """Any exception inside a stage is recorded, not raised."""

    async def step(agent):
        raise RuntimeError("boom")

    agent = _ScriptedStage(step)
    output = await agent.execute(PipelineContext(planning=planning_context))

    assert output is None
    assert agent.get_status().error == "boom"


@pytest.mark.asyncio
async def test_stage_timeout(planning_context):
    """A stage slower than its timeout fails with a timeout error."""

    async def step(agent):
        await asyncio.sleep(1)
        return "late"

    agent = _ScriptedStage(step, StageConfig(timeout_seconds=0.05))
    output = await agent.execute(PipelineContext(planning=planning_context))

    status = agent.get_status()
    assert output is None
    assert status.state is StageState.FAILED
    assert status.error == "planner stage timed out after 0.05s"


@pytest.mark.asyncio
async def test_progress_is_monotonic(planning_context):
    """Progress never drops and stays below 100 while running."""
    seen = []

    async def step(agent):
        agent._report_progress(50)
        seen.append(agent.get_status().progress)
        agent._report_progress(30)
        seen.append(agent.get_status().progress)
        agent._report_progress(150)
        seen.append(agent.get_status().progress)
        return "ok"

    agent = _ScriptedStage(step)
    await agent.execute(PipelineContext(planning=planning_context))

    assert seen == [50, 50, 99]
    assert agent.get_status().progress == 100


def test_status_snapshot_is_a_copy():
    """Mutating a returned status does not touch the stage."""

    async def step(agent):
        return "ok"

    agent = _ScriptedStage(step)
    snapshot = agent.get_status()
    snapshot.progress = 80

    assert agent.get_status().progress == 0


# Planner


@pytest.mark.asyncio
async def test_planner_puts_requested_destination_first(planning_context, api_manager, stage_config):
    """The requested destination leads the suggestions under its own name."""
    agent = PlannerAgent(api_manager, stage_config)

    result = await agent.execute(PipelineContext(planning=planning_context))

    assert result is not None
    assert result.destinations[0].name == "Orlando"
    assert result.destinations[0].requested is True
    assert result.destination_name == "Orlando"
    assert result.location == "Orlando"
    assert result.activities
    assert len(result.recommendations.top_activities) <= 5


@pytest.mark.asyncio
async def test_planner_ranks_matching_interests_first(planning_context, api_manager, stage_config):
    """Theme parks come first for a family interested in theme parks."""
    result = await PlannerAgent(api_manager, stage_config).execute(
        PipelineContext(planning=planning_context)
    )

    assert result.activities[0].interest_score == 1.0
    scores = [a.interest_score for a in result.activities]
    assert scores == sorted(scores, reverse=True)


@pytest.mark.asyncio
async def test_planner_filters_by_age(orlando_request, api_manager, stage_config):
    """Activities with a minimum age above the youngest child are dropped."""
    request = orlando_request.model_copy(
        update={"family_profile": FamilyProfile(adults=2, children=1, ages=(2,))}
    )
    context = request.to_context("test-user")

    result = await PlannerAgent(api_manager, stage_config).execute(
        PipelineContext(planning=context)
    )

    names = {a.name for a in result.activities}
    assert all(a.min_age <= 2 for a in result.activities)
    assert "Universal Islands of Adventure" not in names
    assert "Magic Kingdom Park" in names


def test_planner_suggests_curated_destinations_without_request(orlando_request):
    """Without a destination, curated ones within budget are suggested."""
    request = orlando_request.model_copy(update={"destination": None, "budget": 3000})
    context = request.to_context("test-user")

    suggestions = PlannerAgent().suggest_destinations(
        context.family_profile, context.preferences
    )

    assert suggestions[0].name == "Walt Disney World Resort"
    assert all(s.budget_min <= 3000 * 1.5 for s in suggestions)
    assert all(not s.requested for s in suggestions)


def test_budget_breakdown_caps_activities():
    """Activities take at most a fifth of the budget."""
    expensive = [_activity("Big Park", 240, estimated_cost=4000)]

    breakdown = PlannerAgent().budget_breakdown(5000, expensive)

    assert breakdown.accommodation == 2000
    assert breakdown.food == 1250
    assert breakdown.transportation == 750
    assert breakdown.activities == 1000
    assert breakdown.total == 5000


@pytest.mark.asyncio
async def test_planner_fails_with_provider_error(planning_context, api_manager, stage_config):
    """A failed attraction search fails the planner with the provider's error."""
    api_manager.search_attractions = AsyncMock(
        return_value=ProviderResult.fail("attractions down")
    )

    agent = PlannerAgent(api_manager, stage_config)
    result = await agent.execute(PipelineContext(planning=planning_context))

    assert result is None
    assert agent.get_status().error == "attractions down"


# Booking


@pytest.mark.asyncio
async def test_booking_picks_cheapest_option_within_budget(planning_context, api_manager, stage_config, run_until):
    """The best option is the cheapest one that fits the travel budget."""
    pipeline = await run_until(StageName.BOOKING, planning_context, api_manager, stage_config)

    result = await BookingAgent(api_manager, stage_config).execute(pipeline)

    assert result is not None
    assert result.budget == 2750
    assert result.within_budget is True
    assert result.best_option.total_cost == min(o.total_cost for o in result.recommendations)
    assert all(o.within_budget for o in result.recommendations)
    assert all(s.type.value == "hotel" for s in result.accommodations)
    assert len(result.alternatives) <= 3
    assert result.savings >= 0
    assert result.price_comparison.lowest <= result.price_comparison.average


@pytest.mark.asyncio
async def test_booking_failure_keeps_provider_error(planning_context, api_manager, stage_config, run_until):
    """A failed flight search fails the stage with the error verbatim."""
    pipeline = await run_until(StageName.BOOKING, planning_context, api_manager, stage_config)
    api_manager.search_flights = AsyncMock(return_value=ProviderResult.fail("rate limited"))

    agent = BookingAgent(api_manager, stage_config)
    result = await agent.execute(pipeline)

    assert result is None
    assert agent.get_status().state is StageState.FAILED
    assert agent.get_status().error == "rate limited"


@pytest.mark.asyncio
async def test_booking_fails_when_no_stays(planning_context, api_manager, stage_config, run_until):
    """An empty stay search is a stage failure."""
    pipeline = await run_until(StageName.BOOKING, planning_context, api_manager, stage_config)
    api_manager.search_accommodations = AsyncMock(return_value=ProviderResult.ok([]))

    agent = BookingAgent(api_manager, stage_config)
    await agent.execute(pipeline)

    assert agent.get_status().error == "No accommodations found in Orlando"


def test_stay_query_for_same_day_trip(planning_context):
    """A same-day trip still books one night."""
    same_day = planning_context.model_copy(
        update={
            "preferences": planning_context.preferences.model_copy(
                update={"end_date": date(2024, 6, 15)}
            )
        }
    )

    query = BookingAgent().stay_query(same_day, "Orlando")

    assert query.check_in == date(2024, 6, 15)
    assert query.check_out == date(2024, 6, 16)
    assert query.rooms == 1


# Scheduler


def test_assign_respects_daily_bound():
    """No day gets more activities than the bound."""
    activities = [_activity(f"Stop {i}", 60) for i in range(10)]

    slots, unscheduled = SchedulerAgent.assign(activities, 3, 3)

    assert [len(day.placed) for day in slots] == [3, 3, 3]
    assert [a.name for a in unscheduled] == ["Stop 9"]


def test_assign_respects_day_end():
    """Activities that would run past 22:00 are left unscheduled."""
    activities = [_activity("Park A", 480), _activity("Park B", 480)]

    slots, unscheduled = SchedulerAgent.assign(activities, 1, 3)

    assert len(slots[0].placed) == 1
    assert [a.name for a in unscheduled] == ["Park B"]


def test_assign_round_robin():
    """Activity i starts on day i modulo the trip length."""
    activities = [_activity(f"Stop {i}", 60) for i in range(4)]

    slots, _ = SchedulerAgent.assign(activities, 3, 3)

    assert [[a.name for a, _ in day.placed] for day in slots] == [
        ["Stop 0", "Stop 3"],
        ["Stop 1"],
        ["Stop 2"],
    ]


def test_lunch_pushes_next_activity():
    """An activity ending into the lunch window moves the next one to 14:00."""
    slots, _ = SchedulerAgent.assign(
        [_activity("Morning", 150), _activity("Afternoon", 60)], 1, 3
    )

    starts = [start for _, start in slots[0].placed]
    assert starts == [540, 840]


@pytest.mark.asyncio
async def test_scheduler_covers_every_trip_day(planning_context, api_manager, stage_config, run_until):
    """One schedule per day, none above the bound, nothing lost."""
    pipeline = await run_until(StageName.SCHEDULER, planning_context, api_manager, stage_config)

    result = await SchedulerAgent(api_manager, stage_config).execute(pipeline)

    assert result is not None
    assert len(result.daily_schedules) == 7
    assert [s.date for s in result.daily_schedules][0] == date(2024, 6, 15)
    assert all(len(s.activities) <= 3 for s in result.daily_schedules)
    assert len(result.scheduled_activities) + len(result.unscheduled) == len(
        pipeline.planner.activities
    )
    assert result.accommodation == pipeline.booking.best_option.accommodation
    assert result.summary.total_days == 7
    assert all(len(s.breaks) == 2 for s in result.daily_schedules)


@pytest.mark.asyncio
async def test_scheduler_first_day_note(planning_context, api_manager, stage_config, run_until):
    """The first activity of the trip carries an orientation note."""
    pipeline = await run_until(StageName.SCHEDULER, planning_context, api_manager, stage_config)

    result = await SchedulerAgent(api_manager, stage_config).execute(pipeline)

    first = result.daily_schedules[0].activities[0]
    assert "First day: allow extra time for orientation" in first.notes


def test_recommend_days():
    """Busiest days are best days, empty days are rest days."""
    activities = [_activity(f"Stop {i}", 60) for i in range(3)]
    slots, _ = SchedulerAgent.assign(activities, 4, 2)
    agent = SchedulerAgent()
    schedules = [agent._build_day(day, date(2024, 6, 15 + i)) for i, day in enumerate(slots)]

    recommendations = SchedulerAgent.recommend_days(schedules)

    assert recommendations.best_days == [1, 2]
    assert recommendations.rest_days == [4]


# UI


@pytest.mark.asyncio
async def test_ui_lists_each_activity_once(planning_context, api_manager, stage_config, run_until):
    """Every scheduled activity appears once in the itinerary and the timeline."""
    pipeline = await run_until(StageName.UI, planning_context, api_manager, stage_config)
    scheduled = sorted(a.name for a in pipeline.scheduler.scheduled_activities)

    result = await UIAgent(api_manager, stage_config).execute(pipeline)

    assert result is not None
    assert sorted(result.itinerary_activities) == scheduled
    events = result.visualizations["timelines"][0]["events"]
    assert sorted(e["title"] for e in events) == scheduled
    assert len(result.dashboard.itinerary) == 7
    assert result.dashboard.overview["destination"] == "Orlando"
    assert result.dashboard.overview["tripDuration"] == 7


@pytest.mark.asyncio
async def test_ui_exports_and_sharing(planning_context, api_manager, stage_config, run_until):
    """Exports include iCalendar text and sharing links use the frontend URL."""
    pipeline = await run_until(StageName.UI, planning_context, api_manager, stage_config)

    result = await UIAgent(api_manager, stage_config).execute(pipeline)

    ical = result.exports["ical"]["data"]
    assert ical.startswith("BEGIN:VCALENDAR\r\n")
    assert ical.endswith("END:VCALENDAR\r\n")
    assert ical.count("BEGIN:VEVENT") == len(pipeline.scheduler.scheduled_activities)
    assert "DTSTART:20240615T090000" in ical
    assert result.exports["json"]["filename"].endswith(".json")
    assert result.exports["printable"]["data"]["subtitle"] == "Orlando"

    share_id = result.sharing.share_id
    assert result.sharing.public_url == f"https://trips.example.com/trip/{share_id}"
    assert set(result.sharing.social) == {"facebook", "twitter", "email"}


@pytest.mark.asyncio
async def test_ui_requires_earlier_outputs(planning_context, stage_config):
    """Without scheduler output the UI stage fails."""
    agent = UIAgent(config=stage_config)

    result = await agent.execute(PipelineContext(planning=planning_context))

    assert result is None
    assert agent.get_status().error == "planner output is not available"


def test_family_profile_travelers():
    """Travellers count adults and children."""
    assert FamilyProfile(adults=2, children=2, ages=(8, 5)).travelers == 4
