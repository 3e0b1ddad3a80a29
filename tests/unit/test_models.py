"""Tests for pipeline data models."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from nest_planner.models import (
    ActivityCategory,
    ActivityDetail,
    ActivitySuggestion,
    Generated,
    ItineraryActivity,
    ItineraryPlan,
    Malformed,
    MediaAsset,
    ProviderFailed,
    outcome_from_error,
)
from nest_planner.utils.error_handling import (
    ConfigurationError,
    MalformedResponseError,
    ProviderError,
)


def test_suggestion_rejects_bad_time():
    with pytest.raises(PydanticValidationError):
        ActivitySuggestion(title="Louvre", category="Sightseeing", time="9am", cost=20)


def test_suggestion_rejects_unknown_category():
    with pytest.raises(PydanticValidationError):
        ActivitySuggestion(title="Louvre", category="Museum", time="09:00", cost=20)


def test_itinerary_activity_is_lenient():
    activity = ItineraryActivity(title="Walk", category="Strolling", cost=None)
    assert activity.category == ActivityCategory.OTHER
    assert activity.cost == 0.0


def test_plan_day_lookup_keeps_first_duplicate():
    plan = ItineraryPlan.model_validate(
        {
            "days": [
                {"day_number": 1, "theme_or_note": "first"},
                {"day_number": 1, "theme_or_note": "second"},
            ]
        }
    )
    assert plan.day(1).theme_or_note == "first"
    assert plan.day(2) is None


def test_media_asset_needs_exactly_one_representation():
    with pytest.raises(PydanticValidationError):
        MediaAsset()
    with pytest.raises(PydanticValidationError):
        MediaAsset(url="https://example.com/a.jpg", data=b"x", mime_type="image/png")


def test_url_asset_display_value():
    asset = MediaAsset.from_url("https://example.com/a.jpg")
    assert asset.is_inline is False
    assert asset.display_value() == "https://example.com/a.jpg"
    with pytest.raises(ValueError):
        asset.to_data_uri()


def test_activity_detail_aliases():
    detail = ActivityDetail.model_validate(
        {"description": "Old church", "openingHours": "9-17", "bestTime": "Morning"}
    )
    assert detail.opening_hours == "9-17"
    assert detail.best_time == "Morning"


def test_outcomes_unwrap():
    assert Generated([1, 2]).unwrap() == [1, 2]

    malformed = outcome_from_error(MalformedResponseError("bad"))
    assert isinstance(malformed, Malformed)
    with pytest.raises(MalformedResponseError):
        malformed.unwrap()

    failed = outcome_from_error(ProviderError("down"))
    assert isinstance(failed, ProviderFailed)
    with pytest.raises(ProviderError):
        failed.unwrap()


def test_outcome_from_unrelated_error_reraises():
    with pytest.raises(ConfigurationError):
        outcome_from_error(ConfigurationError("no key"))
