"""
Helper utilities for the Family Trip Planner system.

This module provides general utility functions used across the application.
"""

import hashlib
import math
import uuid
from datetime import date, datetime, time, timedelta
from typing import Any

import pycountry


def generate_id(prefix: str = "") -> str:
    """
    Generate a unique ID with an optional prefix.

    Args:
        prefix: Optional prefix for the ID

    Returns:
        A unique ID string
    """
    unique_id = str(uuid.uuid4()).replace("-", "")
    if prefix:
        return f"{prefix}-{unique_id}"
    return unique_id


def generate_run_id() -> str:
    """
    Generate a unique ID for an orchestration run.

    Returns:
        A unique run ID string
    """
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    unique_part = str(uuid.uuid4())[:8]
    return f"trip-{timestamp}-{unique_part}"


def stable_seed(*parts: Any) -> int:
    """
    Derive a deterministic integer seed from arbitrary values.

    Python's built-in hash() is salted per process, so mock generators use
    this instead to return the same records for the same query.
    """
    text = "|".join(str(part).strip().lower() for part in parts)
    return int(hashlib.sha256(text.encode("utf-8")).hexdigest()[:12], 16)


def safe_serialize(obj: Any) -> Any:
    """
    Safely serialize an object to a JSON-compatible format.

    Args:
        obj: Object to serialize

    Returns:
        JSON-compatible representation of the object
    """
    if obj is None or isinstance(obj, str | int | float | bool):
        return obj

    if isinstance(obj, datetime | date | time):
        return obj.isoformat()

    if isinstance(obj, list | tuple):
        return [safe_serialize(item) for item in obj]

    if isinstance(obj, dict):
        return {k: safe_serialize(v) for k, v in obj.items()}

    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json", by_alias=True)

    result = safe_serialize(obj.__dict__) if hasattr(obj, "__dict__") else str(obj)
    return result


def parse_iso_date(value: str | date | datetime) -> date:
    """
    Parse an ISO-8601 date or datetime string into a date.

    Args:
        value: "2024-06-15", "2024-06-15T10:00:00Z" or a date/datetime

    Returns:
        The calendar date

    Raises:
        ValueError: If the value is not a valid ISO date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if "T" in text:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    return date.fromisoformat(text)


def trip_duration_days(start: date, end: date) -> int:
    """
    Number of days a trip spans, never less than one.

    Args:
        start: First day of the trip
        end: Last day of the trip

    Returns:
        Whole days between the dates, with same-day trips counted as one day
    """
    return max((end - start).days, 1)


def date_range(start: date, days: int) -> list[date]:
    """Consecutive dates starting at start."""
    return [start + timedelta(days=offset) for offset in range(days)]


def minutes_to_clock(minutes: int) -> str:
    """
    Format minutes since midnight as HH:MM.

    Args:
        minutes: Minutes since midnight

    Returns:
        Clock string, e.g. 540 -> "09:00"
    """
    minutes = max(0, minutes)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def clock_to_minutes(clock: str) -> int:
    """Parse HH:MM into minutes since midnight."""
    hours, mins = clock.split(":")
    return int(hours) * 60 + int(mins)


def round_money(amount: float) -> float:
    """Round a monetary amount to cents."""
    return math.floor(amount * 100 + 0.5) / 100


def get_country_code(country_name: str) -> str | None:
    """
    Get the ISO 3166-1 alpha-2 country code for a country name.

    Args:
        country_name: Country name

    Returns:
        ISO 3166-1 alpha-2 country code or None if not found
    """
    try:
        country = pycountry.countries.search_fuzzy(country_name)[0]
        return country.alpha_2
    except (LookupError, IndexError):
        return None


def get_country_name(country_code: str) -> str | None:
    """
    Get the country name for an ISO 3166-1 alpha-2 country code.

    Args:
        country_code: ISO 3166-1 alpha-2 country code

    Returns:
        Country name or None if not found
    """
    try:
        country = pycountry.countries.get(alpha_2=country_code)
        if country:
            return country.name
        return None
    except (LookupError, AttributeError):
        return None


def get_currency_symbol(currency_code: str) -> str:
    """
    Get the currency symbol for a currency code.

    Args:
        currency_code: ISO 4217 currency code

    Returns:
        Currency symbol or original code if not found
    """
    currency_symbols = {
        "USD": "$",
        "EUR": "€",
        "GBP": "£",
        "JPY": "¥",
        "AUD": "A$",
        "CAD": "C$",
    }
    return currency_symbols.get(currency_code, currency_code)


def format_price(amount: float, currency: str = "USD", decimal_places: int = 2) -> str:
    """
    Format a price with the appropriate currency symbol.

    Args:
        amount: Price amount
        currency: ISO 4217 currency code
        decimal_places: Number of decimal places to show

    Returns:
        Formatted price string
    """
    symbol = get_currency_symbol(currency)
    if currency == "JPY":
        return f"{symbol}{int(amount):,}"
    return f"{symbol}{amount:,.{decimal_places}f}"


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """
    Truncate text to a maximum length, adding a suffix if truncated.

    Args:
        text: Text to truncate
        max_length: Maximum length
        suffix: Suffix to add if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text

    return text[: max_length - len(suffix)] + suffix
