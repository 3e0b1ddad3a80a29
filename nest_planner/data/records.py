"""
Insertable trip, day and activity records.

These mirror the rows of the hosted persistence backend. Identifiers are
opaque strings assigned by the repository on insert.
"""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from nest_planner.models import ActivityCategory


class TripStatus(StrEnum):
    PLANNING = "planning"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"


class TripRecord(BaseModel):
    id: str | None = None
    user_id: str
    title: str
    destination: str
    start_date: str
    end_date: str
    cover_image: str
    video_url: str | None = None
    status: TripStatus = TripStatus.PLANNING
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class DayRecord(BaseModel):
    id: str | None = None
    trip_id: str | None = None
    date: str
    day_number: int = Field(..., ge=1)
    notes: str | None = None


class ActivityRecord(BaseModel):
    id: str | None = None
    day_id: str | None = None
    trip_id: str | None = None
    title: str
    time: str | None = None
    location: str | None = None
    cost: float = 0.0
    category: ActivityCategory = ActivityCategory.OTHER
    notes: str | None = None
    is_booked: bool = False
    assigned_to: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class DayPlan(BaseModel):
    """A day record with the activities to insert under it."""

    day: DayRecord
    activities: list[ActivityRecord] = Field(default_factory=list)
