"""
Full multi-day itinerary generation.

Unlike the grounded suggestion call, the itinerary is produced with an
explicit response schema, so the provider guarantees structure. The call
is raced against a hard deadline: "the model never answered"
(:class:`GenerationTimeoutError`), "the model answered nonsense"
(:class:`MalformedResponseError`) and "the call failed"
(:class:`ProviderError`) stay distinguishable for the caller.
"""

import asyncio
import math
from datetime import date, datetime

from google.genai import types
from pydantic import ValidationError as PydanticValidationError

from nest_planner.client import GenerationClient
from nest_planner.config import config as app_config
from nest_planner.models import ActivityCategory, ItineraryPlan
from nest_planner.services.base import BaseGenerationService, ServiceConfig, response_text
from nest_planner.utils.error_handling import (
    GenerationTimeoutError,
    MalformedResponseError,
    ValidationError,
)
from nest_planner.utils.helpers import parse_json_payload

SECONDS_PER_DAY = 60 * 60 * 24
DEFAULT_PREFERENCES = "General sightseeing"

ACTIVITY_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "title": types.Schema(type=types.Type.STRING),
        "time": types.Schema(type=types.Type.STRING, description="24h format HH:MM"),
        "category": types.Schema(
            type=types.Type.STRING, enum=[c.value for c in ActivityCategory]
        ),
        "cost": types.Schema(type=types.Type.NUMBER),
        "location": types.Schema(type=types.Type.STRING),
        "notes": types.Schema(type=types.Type.STRING),
    },
)

ITINERARY_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "days": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "day_number": types.Schema(type=types.Type.INTEGER),
                    "theme_or_note": types.Schema(type=types.Type.STRING),
                    "activities": types.Schema(
                        type=types.Type.ARRAY, items=ACTIVITY_SCHEMA
                    ),
                },
            ),
        )
    },
)


def compute_day_count(start: date | datetime, end: date | datetime) -> int:
    """
    Inclusive number of days between two dates, at least 1.

    Mirrors ``ceil(|end - start| in days) + 1`` so partial days round up.
    """
    if isinstance(start, datetime) != isinstance(end, datetime):
        start = start.date() if isinstance(start, datetime) else start
        end = end.date() if isinstance(end, datetime) else end
    elapsed_days = abs((end - start).total_seconds()) / SECONDS_PER_DAY
    return max(1, math.ceil(elapsed_days) + 1)


def build_itinerary_prompt(destination: str, day_count: int, preferences: str | None) -> str:
    return (
        f"Plan a trip to {destination} for {day_count} days.\n"
        f"Preferences: {(preferences or '').strip() or DEFAULT_PREFERENCES}.\n"
        "Return a list of activities for each day, numbering days from 1 to "
        f"{day_count}.\n"
        "The response must be a strict JSON object. Do not include markdown code blocks."
    )


def parse_itinerary(text: str) -> ItineraryPlan:
    """
    Parse a schema-constrained itinerary payload.

    Raises:
        MalformedResponseError: If the payload is not a valid plan object
    """
    payload = parse_json_payload(text or "{}")
    if not isinstance(payload, dict):
        raise MalformedResponseError("Expected an itinerary JSON object", raw_text=text)
    try:
        return ItineraryPlan.model_validate(payload)
    except PydanticValidationError as e:
        raise MalformedResponseError(
            "Itinerary failed validation", raw_text=text, original_error=e
        ) from e


class ItineraryGenerationService(BaseGenerationService):
    """Generates a full structured plan for a trip in a single call."""

    def __init__(
        self,
        client: GenerationClient | None = None,
        config: ServiceConfig | None = None,
        timeout_seconds: float | None = None,
    ):
        super().__init__(
            config
            or ServiceConfig.from_model(
                "itinerary_service", app_config.get_model("itinerary")
            ),
            client,
        )
        self.timeout_seconds = (
            timeout_seconds
            if timeout_seconds is not None
            else app_config.pipeline.itinerary_timeout_seconds
        )

    async def generate_itinerary(
        self, destination: str, day_count: int, preferences: str | None = None
    ) -> ItineraryPlan:
        """
        Generate a ``day_count``-day plan for ``destination``.

        Raises:
            ValidationError: If day_count is below 1
            ConfigurationError: If no credential resolves
            GenerationTimeoutError: If the deadline elapses first
            MalformedResponseError: If the answer cannot be parsed
            ProviderError: If the remote call fails
        """
        if day_count < 1:
            raise ValidationError(f"day_count must be at least 1, got {day_count}")

        api_client, _ = self.client.require_client()
        generate_config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=ITINERARY_SCHEMA,
            temperature=self.config.temperature,
        )

        self.log.info(
            f"Generating {day_count}-day itinerary for {destination} "
            f"(timeout {self.timeout_seconds:.0f}s)"
        )
        try:
            response = await asyncio.wait_for(
                self._generate_content(
                    build_itinerary_prompt(destination, day_count, preferences),
                    generate_config,
                    api_client=api_client,
                ),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as e:
            if isinstance(e, GenerationTimeoutError):
                raise
            self.log.error(f"Itinerary generation timed out after {self.timeout_seconds}s")
            raise GenerationTimeoutError(
                f"AI generation timed out ({self.timeout_seconds:.0f}s)",
                timeout_seconds=self.timeout_seconds,
            ) from e

        plan = parse_itinerary(response_text(response))
        self.log.info(f"Itinerary parsed with {len(plan.days)} day entries")
        return plan

    async def generate_for_dates(
        self,
        destination: str,
        start: date | datetime,
        end: date | datetime,
        preferences: str | None = None,
    ) -> ItineraryPlan:
        return await self.generate_itinerary(
            destination, compute_day_count(start, end), preferences
        )
