"""
Request and response shapes of the generation pipeline.

These are transient values owned by the call that created them; nothing
here is persisted by the pipeline itself.
"""

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, field_validator, model_validator

from nest_planner.utils.error_handling import (
    MalformedResponseError,
    NestPlannerError,
    ProviderError,
)
from nest_planner.utils.helpers import (
    DEFAULT_IMAGE_MIME,
    decode_data_uri,
    encode_data_uri,
)

T = TypeVar("T")

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class ActivityCategory(StrEnum):
    FOOD = "Food"
    ADVENTURE = "Adventure"
    SIGHTSEEING = "Sightseeing"
    RELAX = "Relax"
    TRAVEL = "Travel"
    OTHER = "Other"


class SuggestionRequest(BaseModel):
    """Parameters for suggesting activities for one day of a trip."""

    destination: str = Field(..., min_length=1)
    date: str
    day_number: int = Field(..., ge=1)
    preferences: str | None = None
    excluded_titles: list[str] = Field(default_factory=list)


class ActivitySuggestion(BaseModel):
    """A strictly validated activity returned by the suggestion service."""

    title: str = Field(..., min_length=1)
    category: ActivityCategory
    time: str
    cost: float = Field(..., ge=0)
    location: str | None = None
    notes: str = ""

    @field_validator("time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not _TIME_PATTERN.match(value):
            raise ValueError(f"time must be 24-hour HH:MM, got {value!r}")
        return value


class ItineraryActivity(BaseModel):
    """
    An activity inside a generated itinerary.

    Schema-constrained output is structurally valid, so field values are
    coerced leniently: unknown categories become Other and a missing cost
    becomes 0.
    """

    title: str = ""
    time: str | None = None
    category: ActivityCategory = ActivityCategory.OTHER
    cost: float = 0.0
    location: str | None = None
    notes: str | None = None

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, value: Any) -> Any:
        try:
            return ActivityCategory(value)
        except ValueError:
            return ActivityCategory.OTHER

    @field_validator("cost", mode="before")
    @classmethod
    def coerce_cost(cls, value: Any) -> Any:
        if value is None:
            return 0.0
        return value


class ItineraryDay(BaseModel):
    day_number: int
    theme_or_note: str | None = None
    activities: list[ItineraryActivity] = Field(default_factory=list)


class ItineraryPlan(BaseModel):
    """A multi-day plan; day numbers are expected, not guaranteed, to be 1..N."""

    days: list[ItineraryDay] = Field(default_factory=list)

    def day(self, day_number: int) -> ItineraryDay | None:
        """Return the first entry for ``day_number``; duplicates are ignored."""
        return next((d for d in self.days if d.day_number == day_number), None)


class MediaAsset(BaseModel):
    """Either a remote URL or an inline binary payload tagged with a MIME type."""

    url: str | None = None
    data: bytes | None = None
    mime_type: str | None = None

    @model_validator(mode="after")
    def check_representation(self) -> "MediaAsset":
        if (self.url is None) == (self.data is None):
            raise ValueError("MediaAsset needs exactly one of url or data")
        return self

    @property
    def is_inline(self) -> bool:
        return self.data is not None

    @classmethod
    def from_url(cls, url: str) -> "MediaAsset":
        return cls(url=url)

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str) -> "MediaAsset":
        return cls(data=data, mime_type=mime_type)

    @classmethod
    def from_data_uri(
        cls, value: str, default_mime: str = DEFAULT_IMAGE_MIME
    ) -> "MediaAsset":
        data, mime_type = decode_data_uri(value, default_mime)
        return cls(data=data, mime_type=mime_type)

    def to_data_uri(self) -> str:
        if self.data is None:
            raise ValueError("Only inline assets can be rendered as a data URI")
        return encode_data_uri(self.data, self.mime_type or DEFAULT_IMAGE_MIME)

    def display_value(self) -> str:
        """Value suitable for storage or an <img>/<video> src attribute."""
        return self.url if self.url is not None else self.to_data_uri()


class GroundedSource(BaseModel):
    uri: str
    title: str = ""


class GroundedAnswer(BaseModel):
    text: str
    web_sources: list[GroundedSource] = Field(default_factory=list)
    map_sources: list[GroundedSource] = Field(default_factory=list)


class ActivityDetail(BaseModel):
    description: str
    rating: str | None = None
    opening_hours: str | None = Field(default=None, alias="openingHours")
    website: str | None = None
    phone_number: str | None = Field(default=None, alias="phoneNumber")
    address: str | None = None
    best_time: str | None = Field(default=None, alias="bestTime")

    model_config = {"populate_by_name": True}


@dataclass(frozen=True)
class Generated(Generic[T]):
    """The provider answered and the payload validated."""

    value: T

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Malformed:
    """The provider answered but the payload failed validation."""

    error: MalformedResponseError

    def unwrap(self):
        raise self.error


@dataclass(frozen=True)
class ProviderFailed:
    """The remote call itself failed."""

    error: ProviderError

    def unwrap(self):
        raise self.error


GenerationOutcome = Generated[T] | Malformed | ProviderFailed


def outcome_from_error(error: NestPlannerError) -> Malformed | ProviderFailed:
    if isinstance(error, MalformedResponseError):
        return Malformed(error)
    if isinstance(error, ProviderError):
        return ProviderFailed(error)
    raise error
