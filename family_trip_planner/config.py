"""
Configuration management for the Family Trip Planner system.

This module handles loading and managing configuration for the planning
pipeline, including provider API keys, stage timeouts, scheduling policy
and the defaults applied to inbound planning requests.
"""

import os
from dataclasses import dataclass, field
from enum import Enum

from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()

# Keys shipped in example .env files are treated as unset
PLACEHOLDER_KEY_PREFIXES = ("your_", "your-", "changeme", "placeholder")


class LogLevel(str, Enum):
    """Log levels supported by the system."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def is_usable_key(api_key: str | None) -> bool:
    """
    Check whether an API key looks like a real credential.

    Args:
        api_key: Key read from the environment (may be None)

    Returns:
        False for missing, blank or placeholder keys
    """
    if not api_key or not api_key.strip():
        return False
    lowered = api_key.strip().lower()
    return not lowered.startswith(PLACEHOLDER_KEY_PREFIXES)


class ProviderConfig(BaseModel):
    """Configuration for the external travel-data providers."""

    tripadvisor_api_key: str | None = Field(
        default=None, description="TripAdvisor content API key"
    )
    google_places_api_key: str | None = Field(
        default=None, description="Google Places API key"
    )
    skyscanner_api_key: str | None = Field(
        default=None, description="Skyscanner (RapidAPI) key"
    )
    booking_api_key: str | None = Field(
        default=None, description="Booking.com (RapidAPI) key"
    )
    openweather_api_key: str | None = Field(
        default=None, description="OpenWeatherMap API key"
    )
    use_mock_apis: bool = Field(
        default=True, description="Force deterministic mock providers"
    )
    timeout_seconds: float = Field(
        default=10.0, description="Per-request HTTP timeout for live providers"
    )
    max_retries: int = Field(
        default=3, description="Retry attempts for live provider requests"
    )

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        """Validate the provider timeout is positive."""
        if value <= 0:
            raise ValueError(f"Provider timeout must be positive, got {value}")
        return value

    @field_validator("max_retries")
    @classmethod
    def validate_retries(cls, value: int) -> int:
        """Validate at least one attempt is made."""
        if value < 1:
            raise ValueError(f"Provider max_retries must be at least 1, got {value}")
        return value

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        """Create a ProviderConfig from environment variables."""
        return cls(
            tripadvisor_api_key=os.getenv("TRIPADVISOR_API_KEY"),
            google_places_api_key=os.getenv("GOOGLE_PLACES_API_KEY"),
            skyscanner_api_key=os.getenv("SKYSCANNER_API_KEY"),
            booking_api_key=os.getenv("BOOKING_API_KEY"),
            openweather_api_key=os.getenv("OPENWEATHER_API_KEY"),
            use_mock_apis=_env_bool("USE_MOCK_APIS", "true"),
            timeout_seconds=float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "10")),
            max_retries=int(os.getenv("PROVIDER_MAX_RETRIES", "3")),
        )

    def key_for(self, provider: str) -> str | None:
        """Return the configured key for a provider name, if usable."""
        key = getattr(self, f"{provider}_api_key", None)
        return key if is_usable_key(key) else None

    def missing_keys(self) -> list[str]:
        """List the environment variables whose keys are unset or placeholders."""
        names = {
            "TRIPADVISOR_API_KEY": self.tripadvisor_api_key,
            "GOOGLE_PLACES_API_KEY": self.google_places_api_key,
            "SKYSCANNER_API_KEY": self.skyscanner_api_key,
            "BOOKING_API_KEY": self.booking_api_key,
            "OPENWEATHER_API_KEY": self.openweather_api_key,
        }
        return [name for name, value in names.items() if not is_usable_key(value)]


class SystemConfig(BaseModel):
    """System-wide configuration."""

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    environment: str = Field(
        default="development",
        description="Environment (development, staging, production)",
    )
    stage_timeout_seconds: float = Field(
        default=30.0, description="Upper bound on a single pipeline stage"
    )
    health_check_timeout_seconds: float = Field(
        default=5.0, description="Upper bound on a single provider probe"
    )
    max_activities_per_day: int = Field(
        default=3, description="Most activities the scheduler places on one day"
    )
    default_origin: str = Field(default="JFK", description="Departure airport")
    default_currency: str = Field(default="USD", description="Default currency")
    default_user_id: str = Field(
        default="test-user-123", description="User id for anonymous requests"
    )
    frontend_url: str = Field(
        default="http://localhost:5173", description="Base URL for sharing links"
    )

    @classmethod
    def from_env(cls) -> "SystemConfig":
        """Create a SystemConfig from environment variables."""
        return cls(
            log_level=LogLevel(os.getenv("LOG_LEVEL", "INFO").upper()),
            environment=os.getenv("ENVIRONMENT", "development"),
            stage_timeout_seconds=float(os.getenv("STAGE_TIMEOUT_SECONDS", "30")),
            health_check_timeout_seconds=float(
                os.getenv("HEALTH_CHECK_TIMEOUT_SECONDS", "5")
            ),
            max_activities_per_day=int(os.getenv("MAX_ACTIVITIES_PER_DAY", "3")),
            default_origin=os.getenv("DEFAULT_ORIGIN", "JFK"),
            default_currency=os.getenv("DEFAULT_CURRENCY", "USD"),
            default_user_id=os.getenv("DEFAULT_USER_ID", "test-user-123"),
            frontend_url=os.getenv("FRONTEND_URL", "http://localhost:5173"),
        )


@dataclass
class FamilyPlannerConfig:
    """Main configuration class for the Family Trip Planner system."""

    providers: ProviderConfig = field(default_factory=ProviderConfig.from_env)
    system: SystemConfig = field(default_factory=SystemConfig.from_env)

    class ConfigurationError(Exception):
        """Exception raised for configuration validation errors."""

        pass

    def validate(self, raise_error: bool = False) -> bool:
        """
        Validate the entire configuration.

        Missing provider keys are not an error: the affected providers run
        against their mock generators and a warning is logged.

        Args:
            raise_error: If True, raise ConfigurationError instead of returning False

        Returns:
            True if configuration is valid, False otherwise

        Raises:
            ConfigurationError: If raise_error is True and validation fails
        """
        try:
            if self.system.stage_timeout_seconds <= 0:
                raise ValueError("Stage timeout must be positive")
            if self.system.health_check_timeout_seconds <= 0:
                raise ValueError("Health check timeout must be positive")
            if self.system.max_activities_per_day <= 0:
                raise ValueError("Max activities per day must be positive")

            missing = self.providers.missing_keys()
            if missing and not self.providers.use_mock_apis:
                logger.warning(
                    f"Provider API keys missing: {', '.join(missing)}. "
                    f"Those providers will serve mock data."
                )

            return True

        except ValueError as e:
            logger.error(f"Configuration validation failed: {e!s}")

            if raise_error:
                raise self.ConfigurationError(
                    f"Configuration validation failed: {e!s}"
                ) from e

            return False


# Global configuration instance
config = FamilyPlannerConfig()


def initialize_config(
    custom_config_path: str | None = None,
    validate: bool = True,
    raise_on_error: bool = False,
) -> FamilyPlannerConfig:
    """
    Initialize and validate the configuration.

    Args:
        custom_config_path: Path to a custom .env file to load
        validate: Whether to validate the configuration
        raise_on_error: Whether to raise an exception on validation failure

    Returns:
        Initialized and validated configuration object

    Raises:
        FamilyPlannerConfig.ConfigurationError: If validation fails and
            raise_on_error is True
        FileNotFoundError: If custom_config_path is provided but does not exist
    """
    if custom_config_path:
        if not os.path.exists(custom_config_path):
            error_msg = f"Custom configuration file not found: {custom_config_path}"
            logger.error(error_msg)
            raise FileNotFoundError(error_msg)

        logger.info(f"Loading custom configuration from {custom_config_path}")
        load_dotenv(custom_config_path, override=True)

        # Reload into the shared object so existing importers see the update
        config.providers = ProviderConfig.from_env()
        config.system = SystemConfig.from_env()

    if validate:
        is_valid = config.validate(raise_error=raise_on_error)
        if not is_valid:
            logger.warning(
                "Configuration validation failed. Check STAGE_TIMEOUT_SECONDS, "
                "HEALTH_CHECK_TIMEOUT_SECONDS and MAX_ACTIVITIES_PER_DAY."
            )

    return config
