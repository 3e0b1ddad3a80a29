"""Tests for the error taxonomy and provider error translation."""

import httpx
import pytest
from google.genai import errors as genai_errors

from nest_planner.utils.error_handling import (
    GeminiErrorClassifier,
    GenerationTimeoutError,
    MalformedResponseError,
    NestPlannerError,
    ProviderError,
    to_provider_error,
    wrap_provider_errors,
)


def _api_error(code, status, message):
    return genai_errors.ClientError(
        code, {"error": {"code": code, "status": status, "message": message}}
    )


def test_timeout_error_is_also_builtin_timeout():
    error = GenerationTimeoutError("AI generation timed out (60s)", timeout_seconds=60)
    assert isinstance(error, TimeoutError)
    assert isinstance(error, NestPlannerError)
    assert error.timeout_seconds == 60


def test_original_error_is_kept():
    cause = ValueError("bad")
    error = MalformedResponseError("oops", raw_text="{", original_error=cause)
    assert error.original_error is cause
    assert "bad" in str(error)


def test_to_provider_error_keeps_status():
    error = to_provider_error(_api_error(404, "NOT_FOUND", "Requested entity was not found."))
    assert error.status_code == 404
    assert error.status == "NOT_FOUND"
    assert "gemini" in str(error)


def test_wrap_provider_errors_converts_api_errors():
    with pytest.raises(ProviderError) as exc_info:
        with wrap_provider_errors():
            raise _api_error(429, "RESOURCE_EXHAUSTED", "quota")
    assert exc_info.value.status_code == 429


def test_wrap_provider_errors_passes_taxonomy_through():
    with pytest.raises(MalformedResponseError):
        with wrap_provider_errors():
            raise MalformedResponseError("bad json")


def test_wrap_provider_errors_leaves_other_errors_alone():
    with pytest.raises(KeyError):
        with wrap_provider_errors():
            raise KeyError("bug")


@pytest.mark.parametrize(
    "error",
    [
        _api_error(404, "NOT_FOUND", "Requested entity was not found."),
        ProviderError("boom", status_code=404),
        RuntimeError("Requested entity was not found."),
        ProviderError("wrapped", original_error=RuntimeError("NOT_FOUND")),
    ],
)
def test_classifier_detects_model_access_denied(error):
    assert GeminiErrorClassifier().is_model_access_denied(error) is True


@pytest.mark.parametrize(
    "error",
    [
        _api_error(403, "PERMISSION_DENIED", "API key not valid"),
        ProviderError("quota exceeded", status_code=429),
        RuntimeError("connection reset"),
    ],
)
def test_classifier_ignores_other_failures(error):
    assert GeminiErrorClassifier().is_model_access_denied(error) is False


def test_wrap_provider_errors_converts_transport_errors():
    with pytest.raises(ProviderError) as exc_info:
        with wrap_provider_errors():
            raise httpx.ConnectError("connection refused")
    assert isinstance(exc_info.value.original_error, httpx.ConnectError)


def test_to_provider_error_keeps_http_status():
    request = httpx.Request("POST", "https://generativelanguage.googleapis.com/v1beta")
    response = httpx.Response(503, request=request)
    error = httpx.HTTPStatusError("unavailable", request=request, response=response)

    assert to_provider_error(error).status_code == 503
