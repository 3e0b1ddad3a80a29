"""
Base class for the Gemini-backed generation services.

Provides the shared plumbing every service needs: credential-checked
client creation, a logged ``generate_content`` call that converts SDK
failures into :class:`ProviderError`, and accessors for the loosely typed
response shapes (text, inline binary parts, grounding metadata).
"""

from dataclasses import dataclass
from typing import Any

from google.genai import types

from nest_planner.client import GenerationClient
from nest_planner.config import ModelConfig
from nest_planner.utils.error_handling import wrap_provider_errors
from nest_planner.utils.logging import ServiceLogger
from nest_planner.utils.helpers import truncate_text


@dataclass
class ServiceConfig:
    """Configuration for a generation service."""

    name: str
    model: str
    temperature: float | None = None

    @classmethod
    def from_model(cls, name: str, model: ModelConfig) -> "ServiceConfig":
        return cls(name=name, model=model.name, temperature=model.temperature)


class BaseGenerationService:
    """
    Base class for all generation services.

    Args:
        config: Service name, model and sampling temperature
        client: Credential-aware client factory (optional)
    """

    def __init__(self, config: ServiceConfig, client: GenerationClient | None = None):
        self.config = config
        self.client = client or GenerationClient()
        self.log = ServiceLogger(config.name)

    @property
    def name(self) -> str:
        return self.config.name

    async def _generate_content(
        self,
        contents: Any,
        generate_config: types.GenerateContentConfig | None = None,
        api_client: Any | None = None,
    ) -> types.GenerateContentResponse:
        """
        Issue one ``generate_content`` call.

        Raises:
            ConfigurationError: If no credential resolves and no client was given
            ProviderError: If the remote call fails
        """
        if api_client is None:
            api_client, _ = self.client.require_client()

        prompt_preview = (
            truncate_text(contents, 500) if isinstance(contents, str) else "<multipart>"
        )
        self.log.log_llm_input(self.config.model, prompt_preview, self.config.temperature)

        with wrap_provider_errors():
            response = await api_client.aio.models.generate_content(
                model=self.config.model,
                contents=contents,
                config=generate_config,
            )

        self.log.log_llm_output(self.config.model, response_text(response))
        return response


def response_text(response: Any) -> str:
    """Return the concatenated text of a response, or "" when there is none."""
    try:
        return response.text or ""
    except (AttributeError, ValueError):
        return ""


def response_parts(response: Any) -> list[Any]:
    """Parts of the first candidate; empty when the response has none."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def first_inline_data(response: Any) -> tuple[bytes, str] | None:
    """Return (bytes, MIME type) of the first inline binary part, if any."""
    for part in response_parts(response):
        inline = getattr(part, "inline_data", None)
        if inline is not None and getattr(inline, "data", None):
            return inline.data, inline.mime_type or "application/octet-stream"
    return None
