"""
Authenticated access to the Gemini API.

Credentials are resolved at call time from an ordered list of sources so a
key selected mid-session (or rotated after a model-access failure) is picked
up by the next call. Client handles are created per call and never validate
the key eagerly; a bad key only surfaces on the first real request.
"""

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from dotenv import dotenv_values
from google import genai

from nest_planner.utils.error_handling import ConfigurationError
from nest_planner.utils.logging import get_logger

logger = get_logger(__name__)

ClientFactory = Callable[..., Any]


@dataclass(frozen=True)
class CredentialSource:
    """One place a credential may live, checked key by key."""

    name: str
    lookup: Callable[[], Mapping[str, str | None]]
    keys: tuple[str, ...] = ("API_KEY",)

    def read(self) -> str:
        values = self.lookup()
        for key in self.keys:
            value = values.get(key)
            if value and value.strip():
                return value.strip()
        return ""


def process_environment_source() -> CredentialSource:
    return CredentialSource(
        name="process",
        lookup=lambda: os.environ,
        keys=("API_KEY", "GEMINI_API_KEY"),
    )


def dotenv_source(path: str | None = None) -> CredentialSource:
    """Build-time style variables kept in a .env file (VITE_ prefixed first)."""
    return CredentialSource(
        name="dotenv",
        lookup=lambda: dotenv_values(path),
        keys=("VITE_API_KEY", "API_KEY"),
    )


def mapping_source(values: Mapping[str, str | None], name: str = "static") -> CredentialSource:
    """A fixed mapping, mostly useful for tests and embedding."""
    return CredentialSource(name=name, lookup=lambda: values, keys=("API_KEY", "VITE_API_KEY"))


@dataclass
class CredentialProvider:
    """
    Resolves the API credential from an ordered list of sources.

    The first non-empty value wins; when no source has one the provider is
    in the "not configured" state and :meth:`resolve` returns "".
    """

    sources: list[CredentialSource] = field(
        default_factory=lambda: [process_environment_source(), dotenv_source()]
    )

    def resolve(self) -> str:
        for source in self.sources:
            try:
                value = source.read()
            except OSError as e:
                logger.warning(f"Credential source '{source.name}' unreadable: {e!s}")
                continue
            if value:
                return value
        return ""

    @property
    def is_configured(self) -> bool:
        return bool(self.resolve())

    def require(self) -> str:
        """Return the credential or raise ConfigurationError."""
        credential = self.resolve()
        if not credential:
            raise ConfigurationError(
                "API key is missing: set API_KEY (or VITE_API_KEY) in the environment"
            )
        return credential

    @classmethod
    def from_mapping(cls, values: Mapping[str, str | None]) -> "CredentialProvider":
        return cls(sources=[mapping_source(values)])


class CredentialSelector(Protocol):
    """Optional host capability letting the user pick a different API key."""

    async def has_selected_credential(self) -> bool: ...

    async def prompt_select_credential(self) -> None: ...


class GenerationClient:
    """
    Thin factory for google-genai clients bound to the current credential.

    Args:
        credentials: Credential provider consulted on every call
        client_factory: Callable building a client from ``api_key=``
            (``genai.Client`` by default)
    """

    def __init__(
        self,
        credentials: CredentialProvider | None = None,
        client_factory: ClientFactory | None = None,
    ):
        self.credentials = credentials or CredentialProvider()
        self.client_factory = client_factory or genai.Client

    def resolve_credential(self) -> str:
        return self.credentials.resolve()

    def create_client(self, credential: str) -> Any:
        return self.client_factory(api_key=credential)

    def require_client(self) -> tuple[Any, str]:
        """
        Create a client for the current credential.

        Returns:
            Tuple of (client, credential)

        Raises:
            ConfigurationError: If no credential resolves
        """
        credential = self.credentials.require()
        return self.create_client(credential), credential
