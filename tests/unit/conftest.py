"""
Test configuration for unit tests.
"""

import pytest

from family_trip_planner.agents import STAGE_AGENTS
from family_trip_planner.data.results import STAGE_ORDER, PipelineContext


@pytest.fixture
def run_until():
    """Run every stage before the given one and return the pipeline context."""

    async def _run(stage, context, api_manager, stage_config=None) -> PipelineContext:
        pipeline = PipelineContext(planning=context)
        for earlier in STAGE_ORDER:
            if earlier is stage:
                break
            agent = STAGE_AGENTS[earlier](api_manager, stage_config)
            output = await agent.execute(pipeline)
            assert output is not None, agent.get_status().error
            pipeline = pipeline.with_output(earlier, output)
        return pipeline

    return _run
