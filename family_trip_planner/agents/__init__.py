"""
Stage agents for the Family Trip Planner system.

This package contains the four pipeline stages and the base class they
share. Stages run in the order planner, booking, scheduler, ui.
"""

from family_trip_planner.agents.base import StageAgent, StageConfig
from family_trip_planner.agents.booking import BookingAgent
from family_trip_planner.agents.planner import PlannerAgent
from family_trip_planner.agents.scheduler import SchedulerAgent
from family_trip_planner.agents.ui import UIAgent
from family_trip_planner.data.results import StageName

STAGE_AGENTS: dict[StageName, type[StageAgent]] = {
    StageName.PLANNER: PlannerAgent,
    StageName.BOOKING: BookingAgent,
    StageName.SCHEDULER: SchedulerAgent,
    StageName.UI: UIAgent,
}

__all__ = [
    "STAGE_AGENTS",
    "BookingAgent",
    "PlannerAgent",
    "SchedulerAgent",
    "StageAgent",
    "StageConfig",
    "UIAgent",
]
