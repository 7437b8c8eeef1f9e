"""Tests for the SmolAgent orchestrator."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError as PydanticValidationError

from family_trip_planner.data.models import ProviderResult
from family_trip_planner.data.results import (
    OrchestrationFailure,
    OrchestrationSuccess,
    RunState,
    StageName,
    StageState,
)
from family_trip_planner.orchestration import SmolAgent, stage_config_from


def test_stage_config_from(test_config):
    """Stage settings come from the system configuration."""
    stage_config = stage_config_from(test_config)

    assert stage_config.timeout_seconds == 5
    assert stage_config.max_activities_per_day == 3
    assert stage_config.frontend_url == "https://trips.example.com"


def test_new_run_is_not_started(planning_context, api_manager, test_config):
    """Before execute every stage is pending and progress is zero."""
    orchestrator = SmolAgent(planning_context, api_manager, test_config)

    progress = orchestrator.get_progress()

    assert orchestrator.state is RunState.NOT_STARTED
    assert progress.overall == 0.0
    assert all(s.state is StageState.PENDING for s in progress.stages.values())


@pytest.mark.asyncio
async def test_orlando_trip_succeeds(planning_context, api_manager, test_config):
    """The Orlando family request produces a complete plan."""
    orchestrator = SmolAgent(planning_context, api_manager, test_config, run_id="run-1")

    result = await orchestrator.execute()

    assert isinstance(result, OrchestrationSuccess)
    assert result.success is True
    summary = result.data.summary
    assert summary.destination == "Orlando"
    assert summary.duration == 7
    assert summary.total_cost == result.data.booking.best_option.total_cost
    assert summary.flight_count == len(result.data.booking.flights)
    assert summary.accommodation_count == len(result.data.booking.accommodations)
    assert result.metadata.run_id == "run-1"
    assert result.metadata.user_id == "test-user"
    assert result.metadata.stages_run == [
        StageName.PLANNER,
        StageName.BOOKING,
        StageName.SCHEDULER,
        StageName.UI,
    ]
    assert orchestrator.state is RunState.SUCCEEDED


@pytest.mark.asyncio
async def test_summary_counts_scheduled_activities(planning_context, api_manager, test_config):
    """The summary lists exactly the activities on the schedule."""
    result = await SmolAgent(planning_context, api_manager, test_config).execute()

    scheduled = [a.name for a in result.data.scheduler.scheduled_activities]
    assert result.data.summary.activity_count == len(scheduled)
    assert sorted(result.data.summary.activities) == sorted(scheduled)


@pytest.mark.asyncio
async def test_summary_is_immutable(planning_context, api_manager, test_config):
    """The summary and its activity names cannot be changed after the run."""
    result = await SmolAgent(planning_context, api_manager, test_config).execute()
    summary = result.data.summary

    assert isinstance(summary.activities, tuple)
    with pytest.raises(PydanticValidationError):
        summary.activity_count = 0
    assert result.to_response()["data"]["summary"]["activities"] == list(summary.activities)


@pytest.mark.asyncio
async def test_progress_after_success(planning_context, api_manager, test_config):
    """Every stage completes and overall progress reaches 100."""
    orchestrator = SmolAgent(planning_context, api_manager, test_config)

    await orchestrator.execute()
    progress = orchestrator.get_progress()

    assert progress.overall == 100.0
    assert progress.state is RunState.SUCCEEDED
    assert all(s.state is StageState.COMPLETED for s in progress.stages.values())


@pytest.mark.asyncio
async def test_booking_failure_stops_the_run(planning_context, api_manager, test_config):
    """A failed flight search fails the run at booking with the error verbatim."""
    api_manager.search_flights = AsyncMock(return_value=ProviderResult.fail("rate limited"))
    orchestrator = SmolAgent(planning_context, api_manager, test_config)

    result = await orchestrator.execute()

    assert isinstance(result, OrchestrationFailure)
    assert result.success is False
    assert result.error == "rate limited"
    assert result.failed_stage is StageName.BOOKING
    assert result.to_response() == {"success": False, "error": "rate limited"}

    progress = orchestrator.get_progress()
    assert progress.stages[StageName.PLANNER].state is StageState.COMPLETED
    assert progress.stages[StageName.BOOKING].state is StageState.FAILED
    assert progress.stages[StageName.SCHEDULER].state is StageState.PENDING
    assert progress.stages[StageName.UI].state is StageState.PENDING
    assert orchestrator.state is RunState.FAILED
    assert 0 < progress.overall < 100
    assert progress.state is RunState.FAILED


@pytest.mark.asyncio
async def test_planner_failure_stops_the_run(planning_context, api_manager, test_config):
    """A failed place search fails the run at the planner and leaves later stages pending."""
    api_manager.search_places = AsyncMock(return_value=ProviderResult.fail("places unavailable"))
    orchestrator = SmolAgent(planning_context, api_manager, test_config)

    result = await orchestrator.execute()

    assert result.success is False
    assert result.error == "places unavailable"
    assert result.failed_stage is StageName.PLANNER
    assert result.metadata.stages_run == [StageName.PLANNER]

    progress = orchestrator.get_progress()
    assert progress.stages[StageName.PLANNER].state is StageState.FAILED
    for stage in (StageName.BOOKING, StageName.SCHEDULER, StageName.UI):
        assert progress.stages[stage].state is StageState.PENDING
    assert progress.overall < 100


@pytest.mark.asyncio
async def test_overall_progress_never_decreases(planning_context, api_manager, test_config):
    """Overall progress rises through the run and only reaches 100 at the end."""
    orchestrator = SmolAgent(planning_context, api_manager, test_config)
    seen: list[float] = []

    def recording(search):
        async def _search(query):
            seen.append(orchestrator.get_progress().overall)
            return await search(query)

        return _search

    for name in ("search_attractions", "search_places", "search_flights", "search_accommodations"):
        setattr(api_manager, name, recording(getattr(api_manager, name)))

    result = await orchestrator.execute()
    seen.append(orchestrator.get_progress().overall)

    assert result.success is True
    assert len(seen) >= 5
    assert seen == sorted(seen)
    assert all(value < 100 for value in seen[:-1])
    assert seen[-1] == 100.0


@pytest.mark.asyncio
async def test_execute_runs_once(planning_context, api_manager, test_config):
    """Repeated and concurrent execute calls share one run."""
    orchestrator = SmolAgent(planning_context, api_manager, test_config)

    with patch.object(
        api_manager, "search_attractions", wraps=api_manager.search_attractions
    ) as search:
        first, second = await asyncio.gather(orchestrator.execute(), orchestrator.execute())
        third = await orchestrator.execute()

    assert first is second is third
    assert search.await_count == 1


@pytest.mark.asyncio
async def test_invalid_context_mapping(api_manager, test_config):
    """A context that fails validation produces a failure, not an exception."""
    orchestrator = SmolAgent({"userId": "u-1"}, api_manager, test_config)

    result = await orchestrator.execute()

    assert result.success is False
    assert result.error.startswith("Invalid planning context")
    assert result.failed_stage is None


@pytest.mark.asyncio
async def test_plan_trip_uses_default_user(orlando_request, api_manager, test_config):
    """A request without a user id runs as the configured default user."""
    result = await SmolAgent.plan_trip(orlando_request, api_manager, test_config)

    assert result.success is True
    assert result.metadata.user_id == "test-user"
    response = result.to_response()
    assert response["success"] is True
    assert response["data"]["summary"]["destination"] == "Orlando"
