"""
Command-line entry point for the Family Trip Planner.

Runs a planning request through the orchestrator or probes the providers,
printing the result as JSON:

    python -m family_trip_planner.main plan --destination Orlando \\
        --start 2024-06-15 --end 2024-06-22 --ages 8 5 --interests "theme parks"
    python -m family_trip_planner.main health
"""

import argparse
import asyncio
import json
import sys
import traceback
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from family_trip_planner.config import FamilyPlannerConfig, initialize_config
from family_trip_planner.data.models import (
    AccommodationType,
    FamilyProfile,
    TripPlanningRequest,
)
from family_trip_planner.orchestration import SmolAgent
from family_trip_planner.services.api_manager import ApiServiceManager
from family_trip_planner.utils.helpers import parse_iso_date, safe_serialize
from family_trip_planner.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def setup_argparse() -> argparse.ArgumentParser:
    """
    Set up the argument parser for the CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(description="Family trip planning pipeline")

    system_group = parser.add_argument_group("System Configuration")
    system_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set the logging level",
    )
    system_group.add_argument("--log-file", type=str, help="Path to write log file (optional)")
    system_group.add_argument("--config", type=str, help="Path to custom .env file")

    commands = parser.add_subparsers(dest="command", required=True)

    plan = commands.add_parser("plan", help="Plan a family trip")
    plan.add_argument("--destination", type=str, help="Where to go (suggested if omitted)")
    plan.add_argument("--origin", type=str, help="Departure airport or city")
    plan.add_argument("--budget", type=float, default=5000, help="Total trip budget")
    plan.add_argument("--start", type=parse_iso_date, required=True, help="Start date (YYYY-MM-DD)")
    plan.add_argument("--end", type=parse_iso_date, required=True, help="End date (YYYY-MM-DD)")
    plan.add_argument("--adults", type=int, default=2, help="Number of adults")
    plan.add_argument("--ages", type=int, nargs="*", default=[], help="Ages of the children")
    plan.add_argument("--interests", type=str, nargs="*", default=[], help="Shared interests")
    plan.add_argument(
        "--accommodation-type",
        choices=[t.value for t in AccommodationType],
        default=AccommodationType.HOTEL.value,
    )
    plan.add_argument("--summary-only", action="store_true", help="Print only the summary")

    commands.add_parser("health", help="Probe every travel-data provider")
    return parser


def build_request(args: argparse.Namespace) -> TripPlanningRequest:
    """Trip planning request from parsed CLI arguments."""
    return TripPlanningRequest(
        family_profile=FamilyProfile(
            adults=args.adults,
            children=len(args.ages),
            ages=tuple(args.ages),
            interests=tuple(args.interests),
        ),
        destination=args.destination,
        origin=args.origin,
        budget=args.budget,
        start_date=args.start,
        end_date=args.end,
        accommodation_type=AccommodationType(args.accommodation_type),
    )


def _print_json(payload: Any) -> None:
    print(json.dumps(safe_serialize(payload), indent=2, ensure_ascii=False))


async def run_plan(
    args: argparse.Namespace, api_manager: ApiServiceManager, config: FamilyPlannerConfig
) -> int:
    result = await SmolAgent.plan_trip(build_request(args), api_manager, config)
    if not result.success:
        _print_json(result.to_response())
        return 1
    if args.summary_only:
        _print_json(result.data.summary)
    else:
        _print_json(result.to_response())
    return 0


async def run_health(api_manager: ApiServiceManager) -> int:
    report = await api_manager.health_check()
    _print_json(report)
    return 0 if report.healthy else 1


async def main(argv: list[str] | None = None) -> int:
    """
    Main entry point function.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    try:
        args = setup_argparse().parse_args(argv)
        setup_logging(log_level=args.log_level or "INFO", log_file=args.log_file)

        config = initialize_config(
            custom_config_path=args.config, validate=True, raise_on_error=True
        )
        setup_logging(
            log_level=args.log_level or config.system.log_level, log_file=args.log_file
        )
        api_manager = ApiServiceManager.from_config(config)

        if args.command == "health":
            return await run_health(api_manager)
        return await run_plan(args, api_manager, config)

    except FamilyPlannerConfig.ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(f"\nConfiguration Error: {e}", file=sys.stderr)
        return 1
    except PydanticValidationError as e:
        logger.error(f"Invalid trip request: {e}")
        print(f"\nInvalid trip request: {e}", file=sys.stderr)
        return 2
    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        print(f"\nError: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Planning interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Error in main function: {e!s}\n{traceback.format_exc()}")
        print(f"\nError: {e!s}", file=sys.stderr)
        return 1


def cli() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
