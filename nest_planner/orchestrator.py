"""
Trip creation: itinerary, cover image, video teaser, then persistence.

Stages run strictly in that order and each one is failure-isolated: a
failed itinerary leaves a bare trip with empty days, a failed image keeps
the placeholder cover, a failed teaser stores no video. Only a failure to
insert the trip record itself aborts creation.
"""

import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta

from pydantic import BaseModel, Field

from nest_planner.data.records import ActivityRecord, DayPlan, DayRecord, TripRecord
from nest_planner.data.repository import TripRepository
from nest_planner.models import ItineraryPlan
from nest_planner.services.itinerary import ItineraryGenerationService, compute_day_count
from nest_planner.services.media import MediaGenerationService
from nest_planner.utils.error_handling import ValidationError
from nest_planner.utils.logging import get_logger

logger = get_logger(__name__)

PLACEHOLDER_IMAGES = [
    "https://picsum.photos/800/600?random=1",
    "https://picsum.photos/800/600?random=2",
    "https://picsum.photos/800/600?random=3",
    "https://picsum.photos/800/600?random=4",
    "https://picsum.photos/800/600?random=5",
]
FIRST_DAY_NOTE = "Arrival"


class TripRequest(BaseModel):
    """User-submitted trip parameters."""

    user_id: str
    destination: str
    start_date: date
    end_date: date
    title: str = ""
    preferences: str = ""
    ai_mode: bool = False
    vibe: str | None = Field(
        default=None, description="Teaser mood; defaults to the preferences"
    )


@dataclass
class StageReport:
    name: str
    succeeded: bool
    error: str | None = None


@dataclass
class TripCreationResult:
    trip: TripRecord
    days: list[DayPlan] = field(default_factory=list)
    stages: list[StageReport] = field(default_factory=list)

    @property
    def failed_stages(self) -> list[str]:
        return [s.name for s in self.stages if not s.succeeded]


def validate_trip_request(request: TripRequest) -> None:
    """
    Raises:
        ValidationError: If destination, title or the date range is invalid
    """
    if not request.destination.strip():
        raise ValidationError("Please fill in destination and dates.")
    if not request.ai_mode and not request.title.strip():
        raise ValidationError("Please enter a trip name.")
    if request.start_date > request.end_date:
        raise ValidationError("End date must be after start date")


def build_day_plans(
    plan: ItineraryPlan | None, start_date: date, day_count: int
) -> list[DayPlan]:
    """
    Produce one day (with activities) per calendar day of the trip.

    Days the plan does not cover are empty; plan entries outside
    ``1..day_count`` are ignored and the first of any duplicates wins.
    """
    day_plans = []
    for index in range(day_count):
        day_number = index + 1
        ai_day = plan.day(day_number) if plan is not None else None

        notes = ai_day.theme_or_note if ai_day is not None else None
        if not notes and index == 0:
            notes = FIRST_DAY_NOTE

        activities = []
        if ai_day is not None:
            activities = [
                ActivityRecord(
                    title=activity.title or "Untitled activity",
                    category=activity.category,
                    cost=activity.cost or 0.0,
                    time=activity.time,
                    location=activity.location,
                    notes=activity.notes,
                )
                for activity in ai_day.activities
            ]

        day_plans.append(
            DayPlan(
                day=DayRecord(
                    date=(start_date + timedelta(days=index)).isoformat(),
                    day_number=day_number,
                    notes=notes,
                ),
                activities=activities,
            )
        )
    return day_plans


class TripOrchestrator:
    """
    Coordinates the generation services and the repository for trip creation.

    Args:
        repository: Persistence boundary
        itinerary_service: Itinerary generator (optional)
        media_service: Cover image and teaser generator (optional)
        choose_placeholder: Picks the default cover image (optional)
    """

    def __init__(
        self,
        repository: TripRepository,
        itinerary_service: ItineraryGenerationService | None = None,
        media_service: MediaGenerationService | None = None,
        choose_placeholder: Callable[[Sequence[str]], str] = random.choice,
    ):
        self.repository = repository
        self.itinerary_service = itinerary_service or ItineraryGenerationService()
        self.media_service = media_service or MediaGenerationService()
        self.choose_placeholder = choose_placeholder

    async def create_trip(self, request: TripRequest) -> TripCreationResult:
        """
        Create a trip, enriching it with AI output when ``ai_mode`` is on.

        Raises:
            ValidationError: If the request is invalid
            Exception: Whatever the repository raises when inserting the trip
        """
        validate_trip_request(request)
        day_count = compute_day_count(request.start_date, request.end_date)

        title = request.title.strip()
        cover_image = self.choose_placeholder(PLACEHOLDER_IMAGES)
        video_url: str | None = None
        plan: ItineraryPlan | None = None
        stages: list[StageReport] = []

        if request.ai_mode:
            plan = await self._plan_stage(request, day_count, stages)
            if not title:
                title = f"Trip to {request.destination}"
            cover_image = await self._image_stage(request, cover_image, stages)
            video_url = await self._video_stage(request, stages)

        trip = await self.repository.create_trip(
            TripRecord(
                user_id=request.user_id,
                title=title,
                destination=request.destination,
                start_date=request.start_date.isoformat(),
                end_date=request.end_date.isoformat(),
                cover_image=cover_image,
                video_url=video_url,
            )
        )
        logger.info(f"Created trip {trip.id} ({day_count} days) for {request.destination}")

        stored_days = await self._persist_days(
            trip, build_day_plans(plan, request.start_date, day_count)
        )
        return TripCreationResult(trip=trip, days=stored_days, stages=stages)

    async def _plan_stage(
        self, request: TripRequest, day_count: int, stages: list[StageReport]
    ) -> ItineraryPlan | None:
        try:
            plan = await self.itinerary_service.generate_itinerary(
                request.destination, day_count, request.preferences
            )
        except Exception as e:
            logger.error(f"AI itinerary failed, creating a basic trip instead: {e!s}")
            stages.append(StageReport("itinerary", False, str(e)))
            return None
        stages.append(StageReport("itinerary", True))
        return plan

    async def _image_stage(
        self, request: TripRequest, placeholder: str, stages: list[StageReport]
    ) -> str:
        try:
            asset = await self.media_service.generate_cover_image(request.destination)
            cover_image = asset.display_value()
        except Exception as e:
            logger.warning(f"Image generation failed: {e!s}")
            stages.append(StageReport("image", False, str(e)))
            return placeholder
        stages.append(StageReport("image", True))
        return cover_image

    async def _video_stage(
        self, request: TripRequest, stages: list[StageReport]
    ) -> str | None:
        try:
            teaser = await self.media_service.generate_video_teaser(
                request.destination, request.vibe or request.preferences
            )
        except Exception as e:
            logger.warning(f"Video generation failed: {e!s}")
            stages.append(StageReport("video", False, str(e)))
            return None
        stages.append(StageReport("video", teaser is not None))
        return teaser.display_value() if teaser is not None else None

    async def _persist_days(
        self, trip: TripRecord, day_plans: list[DayPlan]
    ) -> list[DayPlan]:
        stored = []
        for day_plan in day_plans:
            try:
                day = await self.repository.create_day(
                    day_plan.day.model_copy(update={"trip_id": trip.id})
                )
            except Exception as e:
                logger.error(f"Error inserting day {day_plan.day.day_number}: {e!s}")
                continue

            activities: list[ActivityRecord] = []
            if day_plan.activities:
                to_insert = [
                    a.model_copy(update={"day_id": day.id, "trip_id": trip.id})
                    for a in day_plan.activities
                ]
                try:
                    activities = await self.repository.create_activities(to_insert)
                except Exception as e:
                    logger.error(
                        f"Error inserting activities for day {day.day_number}: {e!s}"
                    )
            stored.append(DayPlan(day=day, activities=activities))
        return stored
