"""
Free-text questions answered with live Google Search and Google Maps
grounding, returning the answer together with its classified citations.
"""

import re
from typing import Any

from google.genai import types

from nest_planner.client import GenerationClient
from nest_planner.config import config as app_config
from nest_planner.models import GroundedAnswer, GroundedSource
from nest_planner.services.base import BaseGenerationService, ServiceConfig, response_text
from nest_planner.utils.error_handling import ValidationError

NO_ANSWER_TEXT = "No information found."

MAP_URI_PATTERN = re.compile(
    r"maps\.google\.|google\.[a-z.]+/maps|goo\.gl/maps|maps\.app\.goo\.gl",
    re.IGNORECASE,
)


def is_map_uri(uri: str) -> bool:
    return bool(MAP_URI_PATTERN.search(uri or ""))


def classify_sources(
    grounding_chunks: list[Any],
) -> tuple[list[GroundedSource], list[GroundedSource]]:
    """
    Split grounding chunks into (web sources, map sources).

    Web chunks are web sources; a web chunk whose URI points at a map
    provider is additionally a map source. Maps chunks are map sources only.
    """
    web_sources: list[GroundedSource] = []
    map_sources: list[GroundedSource] = []

    for chunk in grounding_chunks:
        web = getattr(chunk, "web", None)
        if web is not None and getattr(web, "uri", None):
            source = GroundedSource(uri=web.uri, title=getattr(web, "title", None) or "")
            web_sources.append(source)
            if is_map_uri(source.uri):
                map_sources.append(source)
            continue

        place = getattr(chunk, "maps", None)
        if place is not None and getattr(place, "uri", None):
            map_sources.append(
                GroundedSource(uri=place.uri, title=getattr(place, "title", None) or "")
            )

    return web_sources, map_sources


def grounding_chunks(response: Any) -> list[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    return list(getattr(metadata, "grounding_chunks", None) or [])


class GroundedQueryService(BaseGenerationService):
    """Answers live questions about a destination with cited sources."""

    def __init__(
        self,
        client: GenerationClient | None = None,
        config: ServiceConfig | None = None,
    ):
        super().__init__(
            config
            or ServiceConfig.from_model(
                "grounded_query_service", app_config.get_model("grounding")
            ),
            client,
        )

    async def answer_grounded(self, query: str) -> GroundedAnswer:
        """
        Answer ``query`` using search and maps grounding.

        Raises:
            ValidationError: If the query is empty
            ConfigurationError: If no credential resolves
            ProviderError: If the remote call fails
        """
        if not query.strip():
            raise ValidationError("Query must not be empty")

        response = await self._generate_content(
            query,
            types.GenerateContentConfig(
                tools=[
                    types.Tool(google_search=types.GoogleSearch()),
                    types.Tool(google_maps=types.GoogleMaps()),
                ],
                temperature=self.config.temperature,
            ),
        )

        web_sources, map_sources = classify_sources(grounding_chunks(response))
        self.log.info(
            f"Grounded answer with {len(web_sources)} web and "
            f"{len(map_sources)} map sources"
        )
        return GroundedAnswer(
            text=response_text(response) or NO_ANSWER_TEXT,
            web_sources=web_sources,
            map_sources=map_sources,
        )
