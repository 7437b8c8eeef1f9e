"""
Request handler for the family trip planner.

Entry point for the web backend's calls. Routes events by their "action"
field to the orchestrator, a single stage agent, the provider health check
or a provider search. Authentication happens upstream: the event carries an
opaque userId and never credentials.
"""

import asyncio
from typing import Any, TypeVar

from pydantic import BaseModel

from family_trip_planner.agents import STAGE_AGENTS
from family_trip_planner.config import config
from family_trip_planner.data.models import (
    AccommodationQuery,
    AttractionQuery,
    FlightQuery,
    PlaceQuery,
    PlanningContext,
    ProviderResult,
    TripPlanningRequest,
    WeatherQuery,
)
from family_trip_planner.data.results import STAGE_ORDER, PipelineContext, StageName
from family_trip_planner.orchestration import SmolAgent, stage_config_from
from family_trip_planner.services.api_manager import ApiServiceManager
from family_trip_planner.utils.error_handling import ValidationError, handle_errors
from family_trip_planner.utils.helpers import generate_run_id
from family_trip_planner.utils.logging import get_logger

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

# Request used by test_agent when the event carries none
SAMPLE_REQUEST: dict[str, Any] = {
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

_manager: ApiServiceManager | None = None


def get_api_manager() -> ApiServiceManager:
    """Provider facade shared by every request in this process."""
    global _manager
    if _manager is None:
        _manager = ApiServiceManager.from_config(config)
    return _manager


def _extract_user_id(user_id_raw: str) -> str:
    """Extract user ID from USER#123 format."""
    if user_id_raw.startswith("USER#"):
        return user_id_raw[5:]
    return user_id_raw


def route_event(event: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    """Parse event and extract action + parameters."""
    action = event.get("action", "unknown")
    params: dict[str, Any] = {}

    user_id_raw = event.get("userId", "")
    if user_id_raw:
        params["user_id"] = _extract_user_id(user_id_raw)

    params["request"] = event.get("request")
    params["agent"] = event.get("agent", "")
    params["query"] = event.get("query") or {}

    return action, params


@handle_errors(error_cls=ValidationError)
def parse_model(model_cls: type[M], data: Any) -> M:
    """Validate event data into a model, raising ValidationError."""
    return model_cls.model_validate(data)


@handle_errors(error_cls=ValidationError)
def parse_trip_request(data: Any, user_id: str | None) -> PlanningContext:
    """Validate a trip planning request into a planning context."""
    request = TripPlanningRequest.model_validate(data)
    if user_id:
        request.user_id = user_id
    return request.to_context(
        config.system.default_user_id, currency=config.system.default_currency
    )


async def _handle_plan_trip(params: dict[str, Any]) -> dict[str, Any]:
    if not params.get("request"):
        return {"success": False, "error": "No trip request provided"}

    context = parse_trip_request(params["request"], params.get("user_id"))
    orchestrator = SmolAgent(context, get_api_manager(), config)
    result = await orchestrator.execute()

    response = result.to_response()
    response["progress"] = orchestrator.get_progress().model_dump(mode="json", by_alias=True)
    return response


async def _handle_test_agent(params: dict[str, Any]) -> dict[str, Any]:
    """Run one stage, after the stages whose outputs it needs."""
    try:
        target = StageName(params["agent"])
    except ValueError:
        return {"success": False, "error": f"Unknown agent: {params['agent']}"}

    context = parse_trip_request(params.get("request") or SAMPLE_REQUEST, params.get("user_id"))
    run_id = generate_run_id()
    stage_config = stage_config_from(config)
    pipeline = PipelineContext(planning=context)

    for stage in STAGE_ORDER:
        agent = STAGE_AGENTS[stage](get_api_manager(), stage_config, run_id)
        output = await agent.execute(pipeline)
        status = agent.get_status()
        if output is None or stage is target:
            return {
                "success": output is not None,
                "agent": stage.value,
                "status": status.model_dump(mode="json", by_alias=True),
                "data": output.model_dump(mode="json", by_alias=True) if output else None,
                "error": status.error,
            }
        pipeline = pipeline.with_output(stage, output)

    return {"success": False, "error": f"Stage {target.value} did not run"}


async def _handle_api_health(params: dict[str, Any]) -> dict[str, Any]:
    report = await get_api_manager().health_check()
    return {"success": True, "data": report.model_dump(mode="json", by_alias=True)}


def _envelope(result: ProviderResult) -> dict[str, Any]:
    return result.model_dump(mode="json", by_alias=True)


async def _handle_search_attractions(params: dict[str, Any]) -> dict[str, Any]:
    query = parse_model(AttractionQuery, params["query"])
    return _envelope(await get_api_manager().search_attractions(query))


async def _handle_search_places(params: dict[str, Any]) -> dict[str, Any]:
    query = parse_model(PlaceQuery, params["query"])
    return _envelope(await get_api_manager().search_places(query))


async def _handle_search_flights(params: dict[str, Any]) -> dict[str, Any]:
    query = parse_model(FlightQuery, params["query"])
    return _envelope(await get_api_manager().search_flights(query))


async def _handle_search_accommodations(params: dict[str, Any]) -> dict[str, Any]:
    query = parse_model(AccommodationQuery, params["query"])
    return _envelope(await get_api_manager().search_accommodations(query))


async def _handle_get_weather(params: dict[str, Any]) -> dict[str, Any]:
    query = parse_model(WeatherQuery, params["query"])
    return _envelope(await get_api_manager().get_current_weather(query))


# Action handlers map
_HANDLERS = {
    "plan_trip": _handle_plan_trip,
    "test_agent": _handle_test_agent,
    "api_health": _handle_api_health,
    "search_attractions": _handle_search_attractions,
    "search_places": _handle_search_places,
    "search_flights": _handle_search_flights,
    "search_accommodations": _handle_search_accommodations,
    "get_weather": _handle_get_weather,
}


async def async_handler(event: dict[str, Any]) -> dict[str, Any]:
    """Main async handler."""
    action, params = route_event(event)

    handler_fn = _HANDLERS.get(action)
    if not handler_fn:
        return {"success": False, "error": f"Unknown action: {action}"}

    try:
        return await handler_fn(params)
    except ValidationError as e:
        logger.warning(f"Invalid {action} request: {e}")
        return {"success": False, "error": str(e)}
    except Exception as e:
        logger.error(f"Error handling {action}: {e}")
        return {"success": False, "error": str(e)}


def handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Synchronous entry point."""
    return asyncio.run(async_handler(event))
