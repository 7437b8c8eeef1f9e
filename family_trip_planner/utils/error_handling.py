"""
Error handling utilities for the Family Trip Planner system.

This module provides the exception taxonomy used across the pipeline
(provider, stage and orchestration failures) together with decorators
and helpers that handle errors consistently.
"""

import asyncio
import functools
import traceback
from collections.abc import Callable
from typing import Any, TypeVar, cast

from loguru import logger

F = TypeVar("F", bound=Callable[..., Any])
T = TypeVar("T")


class FamilyPlannerError(Exception):
    """Base exception class for all Family Trip Planner errors."""

    def __init__(self, message: str, original_error: Exception | None = None):
        """
        Initialize a FamilyPlannerError.

        Args:
            message: Error message
            original_error: The original exception that caused this error (optional)
        """
        self.original_error = original_error
        if original_error:
            message = f"{message} - Original error: {original_error!s}"
        super().__init__(message)


class ProviderError(FamilyPlannerError):
    """Error raised when a travel-data provider call fails."""

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ):
        """
        Initialize a ProviderError.

        Args:
            message: Error message
            provider: Name of the provider adapter
            status_code: HTTP status code (optional)
            original_error: The original exception that caused this error (optional)
        """
        self.provider = provider
        self.status_code = status_code
        status_str = f" (status: {status_code})" if status_code else ""
        full_message = f"Error in {provider} provider{status_str}: {message}"
        super().__init__(full_message, original_error)


class StageError(FamilyPlannerError):
    """
    Error raised when a pipeline stage cannot complete.

    The message is kept verbatim so a provider's error text reaches the
    caller unchanged.
    """

    def __init__(self, message: str, stage: str):
        self.stage = stage
        super().__init__(message)


class OrchestrationError(FamilyPlannerError):
    """Error raised when a run cannot produce a plan because a stage failed."""

    def __init__(self, message: str, stage: str | None = None):
        self.stage = stage
        super().__init__(message)


class ValidationError(FamilyPlannerError):
    """Error raised when validation of a request or context fails."""

    pass


def handle_errors(
    default_value: T | None = None, error_cls: type[Exception] = FamilyPlannerError
) -> Callable[[F], F]:
    """
    Decorator to catch and handle exceptions, logging them and
    optionally returning a default value.

    Works for both plain functions and coroutine functions.

    Args:
        default_value: Value to return if an exception occurs (optional)
        error_cls: Exception type to re-raise (default: FamilyPlannerError)

    Returns:
        Decorated function
    """

    def _handle(func_name: str, e: Exception) -> Any:
        logger.error(f"Error in {func_name}: {e!s}")
        logger.debug(f"Traceback: {traceback.format_exc()}")

        if default_value is not None:
            logger.info(f"Returning default value from {func_name}")
            return default_value

        if isinstance(e, error_cls):
            raise e
        raise error_cls(f"{func_name} failed", original_error=e) from e

    def decorator(func: F) -> F:
        if asyncio.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    return _handle(func.__name__, e)

            return cast(F, async_wrapper)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                return _handle(func.__name__, e)

        return cast(F, wrapper)

    return decorator
