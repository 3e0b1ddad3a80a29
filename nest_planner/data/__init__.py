"""
Trip records and the persistence boundary.
"""

from nest_planner.data.records import (
    ActivityRecord,
    DayPlan,
    DayRecord,
    TripRecord,
    TripStatus,
)
from nest_planner.data.repository import InMemoryTripRepository, TripRepository

__all__ = [
    "ActivityRecord",
    "DayPlan",
    "DayRecord",
    "InMemoryTripRepository",
    "TripRecord",
    "TripRepository",
    "TripStatus",
]
