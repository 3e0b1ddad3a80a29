"""Tests for the in-memory trip repository."""

import pytest

from nest_planner.data.records import ActivityRecord, DayRecord, TripRecord
from nest_planner.data.repository import InMemoryTripRepository


def make_trip(start_date, user_id="u-1"):
    return TripRecord(
        user_id=user_id,
        title="Trip",
        destination="Lisbon",
        start_date=start_date,
        end_date=start_date,
        cover_image="https://picsum.photos/800/600?random=1",
    )


@pytest.fixture
def repository():
    return InMemoryTripRepository()


async def test_ids_are_assigned(repository):
    trip = await repository.create_trip(make_trip("2025-05-01"))
    day = await repository.create_day(
        DayRecord(trip_id=trip.id, date="2025-05-01", day_number=1)
    )
    activities = await repository.create_activities(
        [ActivityRecord(day_id=day.id, trip_id=trip.id, title="Tram 28")]
    )

    assert trip.id.startswith("trip-")
    assert day.id.startswith("day-")
    assert activities[0].id.startswith("act-")
    assert repository.list_activities(day.id) == activities


async def test_trips_sorted_by_start_date(repository):
    await repository.create_trip(make_trip("2025-08-01"))
    await repository.create_trip(make_trip("2025-05-01"))
    await repository.create_trip(make_trip("2025-06-01", user_id="someone-else"))

    assert [t.start_date for t in repository.list_trips("u-1")] == [
        "2025-05-01",
        "2025-08-01",
    ]
