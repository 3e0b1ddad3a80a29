"""Tests for full itinerary generation."""

import asyncio
import json
from datetime import date, datetime

import httpx
import pytest

from nest_planner.services.base import ServiceConfig
from nest_planner.services.itinerary import (
    ItineraryGenerationService,
    build_itinerary_prompt,
    compute_day_count,
    parse_itinerary,
)
from nest_planner.utils.error_handling import (
    ConfigurationError,
    GenerationTimeoutError,
    MalformedResponseError,
    ProviderError,
    ValidationError,
)
from tests.unit.fakes import make_response

LISBON_PLAN = {
    "days": [
        {
            "day_number": day,
            "theme_or_note": f"Day {day} theme",
            "activities": [
                {
                    "title": f"Activity {day}",
                    "time": "10:00",
                    "category": "Sightseeing",
                    "cost": 10,
                    "location": "Alfama",
                    "notes": "",
                }
            ],
        }
        for day in (1, 2, 3)
    ]
}


@pytest.fixture
def service(generation_client):
    return ItineraryGenerationService(
        client=generation_client,
        config=ServiceConfig(name="itinerary_service", model="gemini-2.5-flash"),
        timeout_seconds=60,
    )


@pytest.mark.parametrize(
    "start, end, expected",
    [
        (date(2025, 5, 1), date(2025, 5, 3), 3),
        (date(2025, 5, 1), date(2025, 5, 1), 1),
        (datetime(2025, 5, 1, 8), datetime(2025, 5, 2, 20), 3),
        (date(2025, 5, 3), date(2025, 5, 1), 3),
    ],
)
def test_compute_day_count(start, end, expected):
    assert compute_day_count(start, end) == expected


def test_prompt_mentions_days_and_default_preferences():
    prompt = build_itinerary_prompt("Lisbon", 3, None)
    assert "Lisbon for 3 days" in prompt
    assert "General sightseeing" in prompt


def test_parse_rejects_array():
    with pytest.raises(MalformedResponseError):
        parse_itinerary("[]")


async def test_three_day_plan_in_order(service, mock_gemini_client):
    mock_gemini_client.aio.models.generate_content.return_value = make_response(
        json.dumps(LISBON_PLAN)
    )

    plan = await service.generate_for_dates(
        "Lisbon", date(2025, 5, 1), date(2025, 5, 3), "food"
    )

    assert [d.day_number for d in plan.days] == [1, 2, 3]
    kwargs = mock_gemini_client.aio.models.generate_content.call_args.kwargs
    assert kwargs["config"].response_mime_type == "application/json"
    assert kwargs["config"].response_schema is not None
    assert "3 days" in kwargs["contents"]


async def test_deadline_raises_timeout(generation_client, mock_gemini_client):
    async def never_answers(**kwargs):
        await asyncio.sleep(3600)

    mock_gemini_client.aio.models.generate_content.side_effect = never_answers
    service = ItineraryGenerationService(client=generation_client, timeout_seconds=0.01)

    with pytest.raises(GenerationTimeoutError) as exc_info:
        await service.generate_itinerary("Lisbon", 3)
    assert exc_info.value.timeout_seconds == 0.01


async def test_unparseable_answer_is_malformed(service, mock_gemini_client):
    mock_gemini_client.aio.models.generate_content.return_value = make_response(
        "not json at all"
    )
    with pytest.raises(MalformedResponseError):
        await service.generate_itinerary("Lisbon", 3)


async def test_day_count_must_be_positive(service):
    with pytest.raises(ValidationError):
        await service.generate_itinerary("Lisbon", 0)


async def test_missing_credential(unconfigured_client):
    service = ItineraryGenerationService(client=unconfigured_client)
    with pytest.raises(ConfigurationError):
        await service.generate_itinerary("Lisbon", 3)


async def test_network_failure_is_provider_error(service, mock_gemini_client):
    mock_gemini_client.aio.models.generate_content.side_effect = httpx.ReadTimeout(
        "read timed out"
    )
    with pytest.raises(ProviderError):
        await service.generate_itinerary("Lisbon", 3)
