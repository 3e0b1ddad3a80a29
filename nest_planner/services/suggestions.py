"""
Structured activity suggestions for a single trip day.

Suggestions are produced with Google Search grounding so the model names
real venues, then parsed and validated strictly: either every suggested
activity is well formed or the whole call fails with
:class:`MalformedResponseError`.
"""

from google.genai import types
from pydantic import ValidationError as PydanticValidationError

from nest_planner.client import GenerationClient
from nest_planner.config import config as app_config
from nest_planner.models import (
    ActivitySuggestion,
    Generated,
    GenerationOutcome,
    SuggestionRequest,
    outcome_from_error,
)
from nest_planner.services.base import BaseGenerationService, ServiceConfig, response_text
from nest_planner.utils.error_handling import (
    MalformedResponseError,
    ProviderError,
)
from nest_planner.utils.helpers import parse_json_payload

DEFAULT_PREFERENCES = (
    "A balanced mix of famous landmarks, local food spots, and relaxing breaks."
)
SUGGESTIONS_PER_DAY = 3


def build_exclusion_clause(excluded_titles: list[str]) -> str:
    if not excluded_titles:
        return ""
    return (
        "IMPORTANT: Do NOT suggest the following activities as they are already "
        f"on the itinerary: {', '.join(excluded_titles)}."
    )


def build_suggestion_prompt(request: SuggestionRequest) -> str:
    """Render the instruction sent to the model for ``request``."""
    preferences = (request.preferences or "").strip() or DEFAULT_PREFERENCES
    return f"""
You are an expert local travel guide planning a trip for a family.

Trip Details:
- Destination: {request.destination}
- Date: {request.date} (Day {request.day_number} of the trip)
- User Preferences: {preferences}

{build_exclusion_clause(request.excluded_titles)}

Task:
Suggest {SUGGESTIONS_PER_DAY} distinct, high-quality activities for this specific day.
Find hidden gems or highly rated local favorites if the main attractions are taken.

Requirements:
1. REAL PLACES ONLY: use Google Search to verify that the places exist and are popular.
2. Specific names: say "Lunch at Cafe de Flore", never "Lunch at a local cafe".
3. Logical flow: order them by time (morning, afternoon, evening).
4. Family friendly: every activity must suit a family.

Output Format:
Return a strictly valid JSON array (no markdown code blocks) where each object has:
- title (string)
- category (one of: "Food", "Adventure", "Sightseeing", "Relax", "Travel", "Other")
- time (string, 24h format HH:MM)
- cost (number, estimated cost per person in USD)
- location (string)
- notes (string, short persuasive description)
""".strip()


def parse_suggestions(text: str) -> list[ActivitySuggestion]:
    """
    Parse and validate a suggestion payload.

    Raises:
        MalformedResponseError: If the text is not a JSON array of valid activities
    """
    if not text.strip():
        return []

    payload = parse_json_payload(text)
    if isinstance(payload, dict):
        # Some answers wrap the array, e.g. {"activities": [...]}
        payload = next((v for v in payload.values() if isinstance(v, list)), None)
    if not isinstance(payload, list):
        raise MalformedResponseError("Expected a JSON array of activities", raw_text=text)

    try:
        return [ActivitySuggestion.model_validate(item) for item in payload]
    except PydanticValidationError as e:
        raise MalformedResponseError(
            "Suggested activity failed validation", raw_text=text, original_error=e
        ) from e


class StructuredSuggestionService(BaseGenerationService):
    """Suggests grounded, validated activities for one day of a trip."""

    def __init__(
        self,
        client: GenerationClient | None = None,
        config: ServiceConfig | None = None,
    ):
        super().__init__(
            config
            or ServiceConfig.from_model(
                "suggestion_service", app_config.get_model("suggestions")
            ),
            client,
        )

    def _generate_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            tools=[types.Tool(google_search=types.GoogleSearch())],
            temperature=(
                1.0 if self.config.temperature is None else self.config.temperature
            ),
        )

    async def generate(
        self, request: SuggestionRequest
    ) -> GenerationOutcome[list[ActivitySuggestion]]:
        """
        Run the suggestion call and return a tagged outcome.

        Raises:
            ConfigurationError: If no credential resolves
        """
        try:
            response = await self._generate_content(
                build_suggestion_prompt(request), self._generate_config()
            )
            return Generated(parse_suggestions(response_text(response)))
        except (MalformedResponseError, ProviderError) as e:
            return outcome_from_error(e)

    async def suggest_activities(
        self, request: SuggestionRequest
    ) -> list[ActivitySuggestion]:
        """
        Suggest activities for ``request.day_number`` at ``request.destination``.

        Raises:
            ConfigurationError: If no credential resolves
            MalformedResponseError: If the answer cannot be parsed or validated
            ProviderError: If the remote call fails
        """
        self.log.info(
            f"Suggesting activities for {request.destination} day {request.day_number} "
            f"({len(request.excluded_titles)} excluded)"
        )
        outcome = await self.generate(request)
        if isinstance(outcome, Generated):
            self.log.info(f"Received {len(outcome.value)} suggestions")
        else:
            self.log.error(f"Suggestion generation failed: {outcome.error!s}")
        return outcome.unwrap()
