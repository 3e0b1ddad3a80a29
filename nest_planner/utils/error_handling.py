"""
Error handling utilities for the NEST planner.

This module defines the error taxonomy shared by every generation service,
helpers that translate SDK and network failures into it, and the
provider-error classifier that drives the one-shot credential retry of the
video teaser path.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

import aiohttp
import httpx
from google.genai import errors as genai_errors

HTTP_STATUS_NOT_FOUND = 404


class NestPlannerError(Exception):
    """Base exception class for all NEST planner errors."""

    def __init__(self, message: str, original_error: Exception | None = None):
        """
        Initialize a NestPlannerError.

        Args:
            message: Error message
            original_error: The original exception that caused this error (optional)
        """
        self.original_error = original_error
        if original_error:
            message = f"{message} - Original error: {original_error!s}"
        super().__init__(message)


class ConfigurationError(NestPlannerError):
    """No credential could be resolved; never retried automatically."""

    pass


class MalformedResponseError(NestPlannerError):
    """The provider answered but the payload failed JSON or schema validation."""

    def __init__(
        self,
        message: str,
        raw_text: str | None = None,
        original_error: Exception | None = None,
    ):
        self.raw_text = raw_text
        super().__init__(message, original_error)


class GenerationTimeoutError(NestPlannerError, TimeoutError):
    """A deadline elapsed before the provider answered."""

    def __init__(self, message: str, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(message)


class ProviderError(NestPlannerError):
    """The remote call itself failed (network, auth, quota, model unavailable)."""

    def __init__(
        self,
        message: str,
        service_name: str = "gemini",
        status_code: int | None = None,
        status: str | None = None,
        original_error: Exception | None = None,
    ):
        """
        Initialize a ProviderError.

        Args:
            message: Error message
            service_name: Name of the remote service
            status_code: HTTP status code (optional)
            status: Provider status string such as NOT_FOUND (optional)
            original_error: The original exception that caused this error (optional)
        """
        self.service_name = service_name
        self.status_code = status_code
        self.status = status
        status_str = f" (status: {status_code})" if status_code else ""
        full_message = f"Error in {service_name} API{status_str}: {message}"
        super().__init__(full_message, original_error)


class ValidationError(NestPlannerError):
    """Error raised when caller input fails validation."""

    pass


class ProviderErrorClassifier(Protocol):
    """Decides whether a failure means the credential lacks model access."""

    def is_model_access_denied(self, error: BaseException) -> bool: ...


class GeminiErrorClassifier:
    """
    Classifier for Gemini API failures.

    Video models answer 404 / "Requested entity was not found" when the
    selected key has no billing project or no access to the model.
    """

    markers = ("Requested entity was not found", "404", "NOT_FOUND")

    def is_model_access_denied(self, error: BaseException) -> bool:
        candidates: list[BaseException] = [error]
        original = getattr(error, "original_error", None)
        if original is not None:
            candidates.append(original)

        for candidate in candidates:
            code = getattr(candidate, "code", None) or getattr(
                candidate, "status_code", None
            )
            if code == HTTP_STATUS_NOT_FOUND:
                return True
            if getattr(candidate, "status", None) == "NOT_FOUND":
                return True
            text = str(candidate)
            if any(marker in text for marker in self.markers):
                return True
        return False


def to_provider_error(error: Exception, service_name: str = "gemini") -> ProviderError:
    """
    Convert an SDK or transport exception into a ProviderError.

    Args:
        error: The exception raised by google-genai, its httpx transport or aiohttp
        service_name: Name of the remote service

    Returns:
        ProviderError carrying the status code when one is known
    """
    if isinstance(error, genai_errors.APIError):
        return ProviderError(
            error.message or str(error),
            service_name=service_name,
            status_code=error.code,
            status=error.status,
            original_error=error,
        )
    if isinstance(error, aiohttp.ClientResponseError):
        return ProviderError(
            error.message,
            service_name=service_name,
            status_code=error.status,
            original_error=error,
        )
    if isinstance(error, httpx.HTTPStatusError):
        return ProviderError(
            str(error),
            service_name=service_name,
            status_code=error.response.status_code,
            original_error=error,
        )
    return ProviderError(str(error), service_name=service_name, original_error=error)


@contextmanager
def wrap_provider_errors(service_name: str = "gemini") -> Iterator[None]:
    """
    Translate provider failures raised inside the block into ProviderError.

    Errors already belonging to the taxonomy pass through untouched.
    """
    try:
        yield
    except NestPlannerError:
        raise
    except (genai_errors.APIError, aiohttp.ClientError, httpx.HTTPError) as e:
        raise to_provider_error(e, service_name) from e

