"""
Logging framework for the Family Trip Planner system.

This module configures loguru for the planner and provides a stage-aware
logger used by the pipeline agents and provider adapters.
"""

import json
import os
import sys
from datetime import datetime
from typing import Any

from loguru import logger

from family_trip_planner.config import LogLevel


def get_logger(name: str):
    """
    Get a logger instance for the specified module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Configured logger instance with the module name attached
    """
    return logger.bind(name=name)


def setup_logging(
    log_level: LogLevel | str = LogLevel.INFO, log_file: str | None = None
):
    """
    Set up the logging configuration for the application.

    Args:
        log_level: The logging level to use (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path to write logs to
    """
    if isinstance(log_level, str):
        log_level = LogLevel(log_level.upper())

    logger.remove()

    logger.add(
        sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        level=log_level.value,
        colorize=True,
    )

    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        logger.add(
            log_file,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
                "{extra[stage]} | {name}:{function}:{line} - {message}"
            ),
            level=log_level.value,
            rotation="10 MB",
            compression="zip",
        )
        logger.configure(extra={"stage": "-"})

    logger.info(f"Logging initialized with level {log_level.value}")


class AgentLogger:
    """
    Logger for pipeline stages, binding the stage name and run id to every
    record so interleaved runs can be told apart.
    """

    def __init__(self, stage_name: str, run_id: str | None = None):
        """
        Initialize the stage logger.

        Args:
            stage_name: Name of the pipeline stage
            run_id: Identifier of the orchestration run (optional)
        """
        self.stage_name = stage_name
        self.run_id = run_id or f"{stage_name}-{datetime.now().strftime('%Y%m%d%H%M%S')}"
        self.logger = logger.bind(stage=stage_name, run_id=self.run_id)

    def debug(self, message: str, **kwargs):
        """Log a debug message with stage context."""
        self.logger.bind(**kwargs).debug(message)

    def info(self, message: str, **kwargs):
        """Log an info message with stage context."""
        self.logger.bind(**kwargs).info(message)

    def warning(self, message: str, **kwargs):
        """Log a warning message with stage context."""
        self.logger.bind(**kwargs).warning(message)

    def error(self, message: str, **kwargs):
        """Log an error message with stage context."""
        self.logger.bind(**kwargs).error(message)

    def log_provider_request(
        self, capability: str, query: dict[str, Any] | None = None
    ):
        """
        Log an outgoing provider search.

        Args:
            capability: Provider capability being queried
            query: Query fields (optional)
        """
        self.debug(
            f"Provider request: {capability}",
            capability=capability,
            query=self._safe_json(query),
        )

    def log_provider_response(
        self, capability: str, success: bool, count: int, error: str | None = None
    ):
        """
        Log the envelope returned for a provider search.

        Args:
            capability: Provider capability that was queried
            success: Envelope success flag
            count: Number of records returned
            error: Envelope error message (optional)
        """
        if success:
            self.debug(
                f"Provider response: {capability} - {count} result(s)",
                capability=capability,
                count=count,
            )
        else:
            self.warning(
                f"Provider response: {capability} failed - {error}",
                capability=capability,
                error=error,
            )

    def log_stage_transition(self, old_state: str, new_state: str, progress: int):
        """
        Log a stage state change.

        Args:
            old_state: Previous stage state
            new_state: New stage state
            progress: Progress value after the change
        """
        self.info(
            f"Stage {self.stage_name}: {old_state} -> {new_state} ({progress}%)",
            old_state=old_state,
            new_state=new_state,
            progress=progress,
        )

    def _safe_json(self, obj: Any) -> str | None:
        """
        Safely convert an object to JSON, handling conversion errors.

        Args:
            obj: Object to convert to JSON

        Returns:
            JSON string or None if conversion fails
        """
        if obj is None:
            return None

        try:
            return json.dumps(obj, default=str)
        except (TypeError, ValueError) as e:
            self.warning(f"Failed to serialize object to JSON: {e!s}")
            return str(obj)
