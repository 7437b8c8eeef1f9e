"""
Provider adapters, one per travel-data capability.
"""

from family_trip_planner.services.providers.accommodations import BookingComAdapter
from family_trip_planner.services.providers.attractions import TripAdvisorAdapter
from family_trip_planner.services.providers.base import ProviderAdapter
from family_trip_planner.services.providers.flights import SkyscannerAdapter
from family_trip_planner.services.providers.places import GooglePlacesAdapter
from family_trip_planner.services.providers.weather import OpenWeatherAdapter

__all__ = [
    "BookingComAdapter",
    "GooglePlacesAdapter",
    "OpenWeatherAdapter",
    "ProviderAdapter",
    "SkyscannerAdapter",
    "TripAdvisorAdapter",
]
