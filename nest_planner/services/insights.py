"""
Informational lookups shown next to a trip: practical details about one
activity and a one-line destination tip. Both are best effort and degrade
to placeholder text instead of raising.
"""

from google.genai import types
from pydantic import ValidationError as PydanticValidationError

from nest_planner.client import GenerationClient
from nest_planner.config import config as app_config
from nest_planner.models import ActivityDetail
from nest_planner.services.base import BaseGenerationService, ServiceConfig, response_text
from nest_planner.utils.error_handling import MalformedResponseError
from nest_planner.utils.helpers import parse_json_payload

DETAILS_UNAVAILABLE = "Details unavailable."
TIP_NO_CREDENTIAL = "Have a great trip!"
TIP_EMPTY = "Explore the local culture!"
TIP_FAILED = "Enjoy your adventure!"


def build_detail_prompt(title: str, location: str) -> str:
    return f"""
Find specific details for the place "{title}" in "{location}".
I need practical info for a traveler.
Use Google Search to find the most current info.

Return a STRICT valid JSON object (no markdown) with these exact fields:
{{
  "description": "string (1 sentence overview)",
  "rating": "string (e.g. 4.5 stars)",
  "openingHours": "string (e.g. 9AM - 5PM)",
  "website": "string (url)",
  "phoneNumber": "string",
  "address": "string",
  "bestTime": "string (best time to visit)"
}}
""".strip()


def parse_activity_detail(text: str) -> ActivityDetail:
    """
    Raises:
        MalformedResponseError: If the text is not a detail object
    """
    payload = parse_json_payload(text or "{}")
    if not isinstance(payload, dict):
        raise MalformedResponseError("Expected a JSON object", raw_text=text)
    payload = {k: v for k, v in payload.items() if v is not None}
    payload.setdefault("description", DETAILS_UNAVAILABLE)
    try:
        return ActivityDetail.model_validate(payload)
    except PydanticValidationError as e:
        raise MalformedResponseError(
            "Activity detail failed validation", raw_text=text, original_error=e
        ) from e


class ActivityDetailService(BaseGenerationService):
    """Grounded lookup of practical details for one activity."""

    def __init__(
        self,
        client: GenerationClient | None = None,
        config: ServiceConfig | None = None,
    ):
        super().__init__(
            config
            or ServiceConfig.from_model(
                "activity_detail_service", app_config.get_model("details")
            ),
            client,
        )

    async def lookup(self, title: str, location: str) -> ActivityDetail:
        """
        Return details for ``title``, degrading to a placeholder on provider
        or parse errors.

        Raises:
            ConfigurationError: If no credential resolves
        """
        api_client, _ = self.client.require_client()
        try:
            response = await self._generate_content(
                build_detail_prompt(title, location),
                types.GenerateContentConfig(
                    tools=[types.Tool(google_search=types.GoogleSearch())],
                    temperature=self.config.temperature,
                ),
                api_client=api_client,
            )
            return parse_activity_detail(response_text(response))
        except Exception as e:
            self.log.warning(f"Activity detail lookup failed for '{title}': {e!s}")
            return ActivityDetail(description=DETAILS_UNAVAILABLE)


class QuickTipService(BaseGenerationService):
    """Low-latency single-sentence destination tip."""

    def __init__(
        self,
        client: GenerationClient | None = None,
        config: ServiceConfig | None = None,
    ):
        super().__init__(
            config
            or ServiceConfig.from_model("quick_tip_service", app_config.get_model("tips")),
            client,
        )

    async def quick_tip(self, destination: str) -> str:
        credential = self.client.resolve_credential()
        if not credential:
            return TIP_NO_CREDENTIAL
        try:
            response = await self._generate_content(
                f"Give me one single, fascinating, short travel tip or fun fact about "
                f"{destination} for a family traveler. Under 30 words.",
                api_client=self.client.create_client(credential),
            )
        except Exception as e:
            self.log.debug(f"Quick tip failed: {e!s}")
            return TIP_FAILED
        return response_text(response).strip() or TIP_EMPTY
