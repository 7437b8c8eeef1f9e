"""Tests for configuration loading and validation."""

import pytest

from family_trip_planner.config import (
    FamilyPlannerConfig,
    ProviderConfig,
    SystemConfig,
    initialize_config,
    is_usable_key,
)


def test_placeholder_keys_are_not_usable():
    """Keys copied from an example .env file count as missing."""
    assert is_usable_key("abc123") is True
    assert is_usable_key("your_tripadvisor_api_key_here") is False
    assert is_usable_key("   ") is False
    assert is_usable_key(None) is False


def test_provider_config_from_env(monkeypatch):
    """Provider settings are read from the environment."""
    monkeypatch.setenv("SKYSCANNER_API_KEY", "sky-key")
    monkeypatch.setenv("BOOKING_API_KEY", "your_booking_api_key_here")
    monkeypatch.setenv("USE_MOCK_APIS", "false")
    monkeypatch.setenv("PROVIDER_TIMEOUT_SECONDS", "4.5")
    monkeypatch.setenv("PROVIDER_MAX_RETRIES", "2")

    providers = ProviderConfig.from_env()

    assert providers.use_mock_apis is False
    assert providers.timeout_seconds == 4.5
    assert providers.max_retries == 2
    assert providers.key_for("skyscanner") == "sky-key"
    assert providers.key_for("booking") is None
    assert "BOOKING_API_KEY" in providers.missing_keys()
    assert "SKYSCANNER_API_KEY" not in providers.missing_keys()


def test_provider_config_rejects_bad_timeout():
    """Provider timeout must be positive."""
    with pytest.raises(ValueError):
        ProviderConfig(timeout_seconds=0)


def test_system_config_from_env(monkeypatch):
    """System settings are read from the environment."""
    monkeypatch.setenv("STAGE_TIMEOUT_SECONDS", "12")
    monkeypatch.setenv("MAX_ACTIVITIES_PER_DAY", "4")
    monkeypatch.setenv("DEFAULT_ORIGIN", "BOS")
    monkeypatch.setenv("FRONTEND_URL", "https://plans.example.com")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    system = SystemConfig.from_env()

    assert system.stage_timeout_seconds == 12
    assert system.max_activities_per_day == 4
    assert system.default_origin == "BOS"
    assert system.frontend_url == "https://plans.example.com"
    assert system.log_level.value == "DEBUG"


def test_validate_rejects_non_positive_bounds():
    """A zero per-day bound fails validation."""
    config = FamilyPlannerConfig(
        providers=ProviderConfig(),
        system=SystemConfig(max_activities_per_day=0),
    )

    assert config.validate() is False
    with pytest.raises(FamilyPlannerConfig.ConfigurationError):
        config.validate(raise_error=True)


def test_validate_accepts_missing_keys(test_config):
    """Missing provider keys are not an error."""
    assert test_config.validate(raise_error=True) is True


def test_initialize_config_missing_file():
    """A custom .env path that does not exist raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        initialize_config(custom_config_path="/nonexistent/path/.env")
