"""
Persistence boundary for trips.

The hosted backend is an external collaborator; the pipeline only needs to
insert a trip, its days and their activities. :class:`InMemoryTripRepository`
backs demo mode and tests.
"""

from typing import Protocol

from nest_planner.data.records import ActivityRecord, DayRecord, TripRecord
from nest_planner.utils.helpers import generate_id
from nest_planner.utils.logging import get_logger

logger = get_logger(__name__)


class TripRepository(Protocol):
    async def create_trip(self, trip: TripRecord) -> TripRecord: ...

    async def create_day(self, day: DayRecord) -> DayRecord: ...

    async def create_activities(
        self, activities: list[ActivityRecord]
    ) -> list[ActivityRecord]: ...


class InMemoryTripRepository:
    """Process-local store with the same insert semantics as the backend."""

    def __init__(self):
        self.trips: dict[str, TripRecord] = {}
        self.days: dict[str, DayRecord] = {}
        self.activities: dict[str, ActivityRecord] = {}

    async def create_trip(self, trip: TripRecord) -> TripRecord:
        stored = trip.model_copy(update={"id": trip.id or generate_id("trip")})
        self.trips[stored.id] = stored
        logger.debug(f"Stored trip {stored.id}")
        return stored

    async def create_day(self, day: DayRecord) -> DayRecord:
        stored = day.model_copy(update={"id": day.id or generate_id("day")})
        self.days[stored.id] = stored
        return stored

    async def create_activities(
        self, activities: list[ActivityRecord]
    ) -> list[ActivityRecord]:
        stored = []
        for activity in activities:
            record = activity.model_copy(
                update={"id": activity.id or generate_id("act")}
            )
            self.activities[record.id] = record
            stored.append(record)
        return stored

    def list_trips(self, user_id: str) -> list[TripRecord]:
        return sorted(
            (t for t in self.trips.values() if t.user_id == user_id),
            key=lambda t: t.start_date,
        )

    def list_days(self, trip_id: str) -> list[DayRecord]:
        return sorted(
            (d for d in self.days.values() if d.trip_id == trip_id),
            key=lambda d: d.day_number,
        )

    def list_activities(self, day_id: str) -> list[ActivityRecord]:
        return [a for a in self.activities.values() if a.day_id == day_id]
