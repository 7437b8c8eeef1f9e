"""
Orchestration of the family trip planning pipeline.

This module implements SmolAgent, which runs the planner, booking,
scheduler and UI stages strictly in order for one planning request, stops
at the first failing stage and combines the stage outputs into a typed
OrchestrationResult.
"""

import asyncio
import time
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from family_trip_planner.agents import STAGE_AGENTS, StageAgent, StageConfig
from family_trip_planner.config import FamilyPlannerConfig
from family_trip_planner.config import config as default_config
from family_trip_planner.data.models import PlanningContext, TripPlanningRequest
from family_trip_planner.data.results import (
    STAGE_ORDER,
    OrchestrationFailure,
    OrchestrationResult,
    OrchestrationSuccess,
    PipelineContext,
    ProgressReport,
    ResultMetadata,
    RunState,
    StageName,
    StageState,
    TripPlanData,
    TripSummary,
)
from family_trip_planner.services.api_manager import ApiServiceManager
from family_trip_planner.utils.error_handling import OrchestrationError, ValidationError
from family_trip_planner.utils.helpers import generate_run_id
from family_trip_planner.utils.logging import get_logger

logger = get_logger(__name__)


def stage_config_from(config: FamilyPlannerConfig) -> StageConfig:
    """Stage settings taken from the system configuration."""
    system = config.system
    return StageConfig(
        timeout_seconds=system.stage_timeout_seconds,
        max_activities_per_day=system.max_activities_per_day,
        frontend_url=system.frontend_url,
        default_origin=system.default_origin,
    )


class SmolAgent:
    """
    Runs the four planning stages for one request.

    One instance serves one request and runs its pipeline at most once;
    calling ``execute`` again returns the stored result. The
    ApiServiceManager is shared between instances and only read.
    """

    def __init__(
        self,
        context: PlanningContext | Mapping[str, Any],
        api_manager: ApiServiceManager,
        config: FamilyPlannerConfig | None = None,
        run_id: str | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            context: Planning context, or its JSON form, validated on execute
            api_manager: Provider facade shared by all runs
            config: Application configuration (defaults to the global one)
            run_id: Identifier of this run (generated when omitted)
        """
        self.context = context
        self.api_manager = api_manager
        self.config = config or default_config
        self.run_id = run_id or generate_run_id()
        self.state = RunState.NOT_STARTED

        stage_config = stage_config_from(self.config)
        self.agents: dict[StageName, StageAgent] = {
            stage: STAGE_AGENTS[stage](api_manager, stage_config, self.run_id)
            for stage in STAGE_ORDER
        }
        self._task: asyncio.Task | None = None

    @classmethod
    async def plan_trip(
        cls,
        request: TripPlanningRequest,
        api_manager: ApiServiceManager,
        config: FamilyPlannerConfig | None = None,
    ) -> OrchestrationResult:
        """
        Build an orchestrator for a request and run it.

        Args:
            request: Incoming trip planning request
            api_manager: Provider facade shared by all runs
            config: Application configuration (defaults to the global one)

        Returns:
            The orchestration result
        """
        config = config or default_config
        context = request.to_context(
            config.system.default_user_id, currency=config.system.default_currency
        )
        return await cls(context, api_manager, config).execute()

    async def execute(self) -> OrchestrationResult:
        """
        Run the pipeline, or return the result of the run already made.

        Returns:
            OrchestrationSuccess with every stage output and the summary, or
            OrchestrationFailure carrying the failing stage's error verbatim
        """
        if self._task is None:
            self._task = asyncio.ensure_future(self._run())
        return await self._task

    def get_progress(self) -> ProgressReport:
        """
        Progress of the run; safe to call at any time.

        Returns:
            ProgressReport whose overall value is the mean of the four stage
            progress values
        """
        statuses = {stage: agent.get_status() for stage, agent in self.agents.items()}
        overall = sum(status.progress for status in statuses.values()) / len(statuses)
        return ProgressReport(overall=overall, state=self.state, stages=statuses)

    def _validated_context(self) -> PlanningContext:
        if isinstance(self.context, PlanningContext):
            return self.context
        try:
            return PlanningContext.model_validate(self.context)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid planning context: {e.error_count()} error(s)", e) from e

    def _ensure_no_failures(self, before: StageName) -> None:
        for stage in STAGE_ORDER:
            if stage is before:
                return
            status = self.agents[stage].get_status()
            if status.state is StageState.FAILED:
                raise OrchestrationError(status.error or f"{stage.value} stage failed", stage.value)

    async def _run(self) -> OrchestrationResult:
        started = time.perf_counter()
        self.state = RunState.RUNNING
        logger.info(f"Run {self.run_id} started")

        try:
            planning = self._validated_context()
        except ValidationError as e:
            self.state = RunState.FAILED
            logger.error(f"Run {self.run_id} rejected: {e!s}")
            return OrchestrationFailure(error=str(e))

        pipeline = PipelineContext(planning=planning)
        stages_run: list[StageName] = []

        try:
            for stage in STAGE_ORDER:
                self._ensure_no_failures(stage)
                agent = self.agents[stage]
                output = await agent.execute(pipeline)
                stages_run.append(stage)
                if output is None:
                    status = agent.get_status()
                    raise OrchestrationError(
                        status.error or f"{stage.value} stage failed", stage.value
                    )
                pipeline = pipeline.with_output(stage, output)
                logger.debug(
                    f"Run {self.run_id} progress {self.get_progress().overall:.1f}%"
                )
        except OrchestrationError as e:
            self.state = RunState.FAILED
            logger.error(f"Run {self.run_id} failed in {e.stage}: {e!s}")
            return OrchestrationFailure(
                error=str(e),
                failed_stage=StageName(e.stage) if e.stage else None,
                metadata=self._metadata(planning, stages_run, started),
            )

        self.state = RunState.SUCCEEDED
        summary = self._build_summary(pipeline)
        logger.info(
            f"Run {self.run_id} succeeded: {summary.destination}, "
            f"{summary.duration} day(s), {summary.activity_count} activities"
        )
        return OrchestrationSuccess(
            data=TripPlanData(
                summary=summary,
                planner=pipeline.planner,
                booking=pipeline.booking,
                scheduler=pipeline.scheduler,
                ui=pipeline.ui,
            ),
            metadata=self._metadata(planning, stages_run, started),
        )

    def _metadata(
        self, planning: PlanningContext, stages_run: list[StageName], started: float
    ) -> ResultMetadata:
        return ResultMetadata(
            run_id=self.run_id,
            user_id=planning.user_id,
            stages_run=stages_run,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )

    @staticmethod
    def _build_summary(pipeline: PipelineContext) -> TripSummary:
        """
        Headline numbers of the plan. Missing stage outputs leave the
        corresponding fields at their empty defaults.
        """
        fields: dict[str, Any] = {"currency": pipeline.planning.preferences.currency}
        if pipeline.planner is not None:
            fields["destination"] = pipeline.planner.destination_name
        if pipeline.booking is not None:
            fields["total_cost"] = pipeline.booking.best_option.total_cost
            fields["savings"] = pipeline.booking.savings
            fields["flight_count"] = len(pipeline.booking.flights)
            fields["accommodation_count"] = len(pipeline.booking.accommodations)
        if pipeline.scheduler is not None:
            fields["duration"] = len(pipeline.scheduler.daily_schedules)
        if pipeline.ui is not None:
            activities = pipeline.ui.itinerary_activities
            fields["activities"] = tuple(activities)
            fields["activity_count"] = len(activities)
        return TripSummary(**fields)
