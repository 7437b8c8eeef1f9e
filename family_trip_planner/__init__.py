"""
Family trip planning backend.

This package sequences four planning stages (planner, booking, scheduler
and UI) over a unified facade of travel-data providers to assemble a
day-by-day family itinerary.
"""

__version__ = "0.1.0"
