"""
Base stage agent for the family trip planner pipeline.

This module implements the StageAgent class that the planner, booking,
scheduler and UI stages inherit from. It owns the stage's status record,
enforces the pending -> running -> completed | failed lifecycle, keeps
progress monotonic and converts every failure inside a stage into a
recorded error instead of an exception.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, ClassVar, Generic, TypeVar

from pydantic import BaseModel

from family_trip_planner.data.models import Capability, ProviderResult
from family_trip_planner.data.results import (
    PipelineContext,
    StageName,
    StageState,
    StageStatus,
)
from family_trip_planner.utils.error_handling import StageError
from family_trip_planner.utils.logging import AgentLogger

if TYPE_CHECKING:
    from family_trip_planner.services.api_manager import ApiServiceManager

O = TypeVar("O")
T = TypeVar("T")
Q = TypeVar("Q", bound=BaseModel)

# Progress stays below this until the stage completes
MAX_RUNNING_PROGRESS = 99


@dataclass
class StageConfig:
    """Configuration for a stage agent."""

    timeout_seconds: float = 30.0
    max_activities_per_day: int = 3
    frontend_url: str = "http://localhost:5173"
    default_origin: str = "JFK"


class StageAgent(ABC, Generic[O]):
    """
    Base class for all pipeline stages.

    Subclasses implement ``process``; callers use ``execute`` and
    ``get_status``. A stage runs at most once: after it reaches a terminal
    state, further ``execute`` calls return the recorded output.
    """

    stage: ClassVar[StageName]
    description: ClassVar[str] = ""

    def __init__(
        self,
        api_manager: "ApiServiceManager | None" = None,
        config: StageConfig | None = None,
        run_id: str | None = None,
    ):
        """
        Initialize a stage agent.

        Args:
            api_manager: Provider facade used by stages that search (optional)
            config: Stage configuration (optional)
            run_id: Identifier of the orchestration run, for log context (optional)
        """
        self.api_manager = api_manager
        self.config = config or StageConfig()
        self.logger = AgentLogger(self.stage.value, run_id)
        self._status = StageStatus(name=self.stage)
        self._output: O | None = None

    @property
    def name(self) -> str:
        """Get the name of the stage."""
        return self.stage.value

    @property
    def output(self) -> O | None:
        """Output of a completed stage, otherwise None."""
        return self._output

    def get_status(self) -> StageStatus:
        """
        Snapshot of the stage's status.

        Returns:
            A copy; mutating it does not affect the stage
        """
        return self._status.model_copy()

    async def execute(self, context: PipelineContext) -> O | None:
        """
        Run the stage once.

        Args:
            context: Planning context plus outputs of earlier stages

        Returns:
            The stage output on success, None on failure
        """
        if self._status.state is not StageState.PENDING:
            self.logger.warning(
                f"Stage {self.name} already {self._status.state.value}, not re-running"
            )
            return self._output

        self._transition(StageState.RUNNING)
        self._status.started_at = datetime.now(UTC)

        try:
            output = await asyncio.wait_for(
                self.process(context), timeout=self.config.timeout_seconds
            )
        except TimeoutError:
            self._fail(
                f"{self.name} stage timed out after {self.config.timeout_seconds:g}s"
            )
            return None
        except StageError as e:
            self._fail(str(e))
            return None
        except Exception as e:
            self.logger.logger.opt(exception=e).error(
                f"Unexpected error in {self.name} stage: {e!s}"
            )
            self._fail(str(e) or e.__class__.__name__)
            return None

        self._output = output
        self._status.finished_at = datetime.now(UTC)
        self._transition(StageState.COMPLETED, progress=100)
        return output

    @abstractmethod
    async def process(self, context: PipelineContext) -> O:
        """
        Produce the stage output.

        Raise StageError to fail the stage with a specific message.
        """

    def _transition(self, state: StageState, progress: int | None = None) -> None:
        old_state = self._status.state
        self._status.state = state
        if progress is not None:
            self._status.progress = max(self._status.progress, progress)
        self.logger.log_stage_transition(
            old_state.value, state.value, self._status.progress
        )

    def _fail(self, message: str) -> None:
        self._status.error = message
        self._status.finished_at = datetime.now(UTC)
        self._transition(StageState.FAILED)
        self.logger.error(f"Stage {self.name} failed: {message}")

    def _report_progress(self, value: int) -> None:
        """Raise progress while running. Never lowers it and never reaches 100."""
        if self._status.state is not StageState.RUNNING:
            return
        self._status.progress = max(
            self._status.progress, min(value, MAX_RUNNING_PROGRESS)
        )
        self.logger.debug(f"Stage {self.name} progress {self._status.progress}%")

    def _require_manager(self) -> "ApiServiceManager":
        if self.api_manager is None:
            raise StageError(f"{self.name} stage needs an ApiServiceManager", self.name)
        return self.api_manager

    async def _search(
        self,
        capability: Capability,
        search: Callable[[Q], Awaitable[ProviderResult[T]]],
        query: Q,
    ) -> T:
        """
        Run one provider search and return its data.

        Args:
            capability: Capability being queried, for logging
            search: ApiServiceManager method to call
            query: Typed query for that method

        Returns:
            The envelope's data

        Raises:
            StageError: If the envelope reports failure, with its error verbatim
        """
        self.logger.log_provider_request(
            capability.value, query.model_dump(mode="json", by_alias=True)
        )
        result = await search(query)
        count = len(result.data) if isinstance(result.data, list) else int(result.success)
        self.logger.log_provider_response(
            capability.value, result.success, count, result.error
        )
        if not result.success:
            raise StageError(result.error or f"{capability.value} search failed", self.name)
        return result.data
