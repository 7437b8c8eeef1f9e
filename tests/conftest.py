"""
Pytest configuration for the Family Trip Planner system tests.
"""

import pytest

# Register asyncio marker
pytest.importorskip("pytest_asyncio")

# Import project modules after configuring pytest
from family_trip_planner.agents import StageConfig  # noqa: E402
from family_trip_planner.config import (  # noqa: E402
    FamilyPlannerConfig,
    ProviderConfig,
    SystemConfig,
)
from family_trip_planner.data.models import PlanningContext, TripPlanningRequest  # noqa: E402
from family_trip_planner.services.api_manager import ApiServiceManager  # noqa: E402
from family_trip_planner.utils import LogLevel, setup_logging  # noqa: E402

ORLANDO_REQUEST = {
    "familyProfile": {
        "adults": 2,
        "children": 2,
        "ages": [8, 5],
        "interests": ["theme parks"],
    },
    "destination": "Orlando",
    "budget": 5000,
    "startDate": "2024-06-15",
    "endDate": "2024-06-22",
}


@pytest.fixture(scope="session", autouse=True)
def setup_test_logging():
    """Set up logging for tests."""
    setup_logging(LogLevel.DEBUG)


@pytest.fixture
def test_config():
    """Test application configuration with every provider in mock mode."""
    return FamilyPlannerConfig(
        providers=ProviderConfig(use_mock_apis=True),
        system=SystemConfig(
            log_level=LogLevel.DEBUG,
            environment="test",
            stage_timeout_seconds=5,
            health_check_timeout_seconds=2,
            max_activities_per_day=3,
            default_user_id="test-user",
            frontend_url="https://trips.example.com",
        ),
    )


@pytest.fixture
def stage_config():
    """Stage configuration matching test_config."""
    return StageConfig(
        timeout_seconds=5,
        max_activities_per_day=3,
        frontend_url="https://trips.example.com",
    )


@pytest.fixture
def orlando_request():
    """The Orlando family trip request."""
    return TripPlanningRequest.model_validate(ORLANDO_REQUEST)


@pytest.fixture
def planning_context(orlando_request) -> PlanningContext:
    """Planning context for the Orlando family trip."""
    return orlando_request.to_context("test-user")


@pytest.fixture
def api_manager(test_config):
    """Provider facade with mock adapters for every capability."""
    return ApiServiceManager.from_config(test_config)
