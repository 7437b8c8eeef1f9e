"""
Orchestration package for the family trip planner system.

This package runs the stage agents for a planning request and produces the
typed orchestration result.
"""

from family_trip_planner.orchestration.orchestrator import SmolAgent, stage_config_from

__all__ = [
    "SmolAgent",
    "stage_config_from",
]
