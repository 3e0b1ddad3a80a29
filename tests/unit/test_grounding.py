"""Tests for grounded question answering."""

from types import SimpleNamespace

import pytest

from nest_planner.services.base import ServiceConfig
from nest_planner.services.grounding import (
    NO_ANSWER_TEXT,
    GroundedQueryService,
    classify_sources,
    is_map_uri,
)
from nest_planner.utils.error_handling import ValidationError
from tests.unit.fakes import make_response, web_chunk


def maps_chunk(uri, title=""):
    return SimpleNamespace(web=None, maps=SimpleNamespace(uri=uri, title=title))


@pytest.fixture
def service(generation_client):
    return GroundedQueryService(
        client=generation_client,
        config=ServiceConfig(name="grounded_query_service", model="gemini-2.5-flash"),
    )


@pytest.mark.parametrize(
    "uri",
    [
        "https://maps.google.com/?cid=123",
        "https://www.google.com/maps/place/Louvre",
        "https://goo.gl/maps/abc",
        "https://maps.app.goo.gl/xyz",
    ],
)
def test_map_uris(uri):
    assert is_map_uri(uri)


def test_plain_web_uri_is_not_map():
    assert not is_map_uri("https://www.louvre.fr/en")


def test_classify_sources():
    web, maps = classify_sources(
        [
            web_chunk("https://www.louvre.fr/en", "Louvre"),
            web_chunk("https://maps.google.com/?cid=1", "Louvre on Maps"),
            maps_chunk("https://maps.google.com/?cid=2", "Cafe"),
            SimpleNamespace(web=None, maps=None),
        ]
    )
    assert [s.title for s in web] == ["Louvre", "Louvre on Maps"]
    assert [s.title for s in maps] == ["Louvre on Maps", "Cafe"]


async def test_answer_uses_search_and_maps(service, mock_gemini_client):
    mock_gemini_client.aio.models.generate_content.return_value = make_response(
        "The Louvre is open until 6pm.",
        grounding_chunks=[web_chunk("https://www.louvre.fr/en", "Louvre")],
    )

    answer = await service.answer_grounded("Is the Louvre open today?")

    assert answer.text == "The Louvre is open until 6pm."
    assert answer.web_sources[0].uri == "https://www.louvre.fr/en"
    assert answer.map_sources == []
    tools = mock_gemini_client.aio.models.generate_content.call_args.kwargs[
        "config"
    ].tools
    assert tools[0].google_search is not None
    assert tools[1].google_maps is not None


async def test_empty_answer_text(service, mock_gemini_client):
    mock_gemini_client.aio.models.generate_content.return_value = make_response("")
    answer = await service.answer_grounded("Anything happening tonight?")
    assert answer.text == NO_ANSWER_TEXT
    assert answer.web_sources == []


async def test_empty_query(service):
    with pytest.raises(ValidationError):
        await service.answer_grounded("   ")
