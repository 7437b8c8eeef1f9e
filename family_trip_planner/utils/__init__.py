"""
Utility modules for the Family Trip Planner system.
"""

from family_trip_planner.config import LogLevel
from family_trip_planner.utils.error_handling import (
    FamilyPlannerError,
    OrchestrationError,
    ProviderError,
    StageError,
    ValidationError,
    handle_errors,
)
from family_trip_planner.utils.helpers import (
    clock_to_minutes,
    date_range,
    format_price,
    generate_id,
    generate_run_id,
    get_country_code,
    get_country_name,
    get_currency_symbol,
    minutes_to_clock,
    parse_iso_date,
    round_money,
    safe_serialize,
    stable_seed,
    trip_duration_days,
    truncate_text,
)
from family_trip_planner.utils.logging import AgentLogger, get_logger, setup_logging

__all__ = [
    "AgentLogger",
    "FamilyPlannerError",
    "LogLevel",
    "OrchestrationError",
    "ProviderError",
    "StageError",
    "ValidationError",
    "clock_to_minutes",
    "date_range",
    "format_price",
    "generate_id",
    "generate_run_id",
    "get_country_code",
    "get_country_name",
    "get_currency_symbol",
    "get_logger",
    "handle_errors",
    "minutes_to_clock",
    "parse_iso_date",
    "round_money",
    "safe_serialize",
    "setup_logging",
    "stable_seed",
    "trip_duration_days",
    "truncate_text",
]
