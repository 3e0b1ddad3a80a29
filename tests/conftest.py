"""
Pytest configuration for the NEST planner tests.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from nest_planner.client import CredentialProvider, GenerationClient
from nest_planner.utils import LogLevel, setup_logging
from tests.unit.fakes import make_response

TEST_KEY = "test-key"


@pytest.fixture(scope="session", autouse=True)
def setup_test_logging():
    """Set up logging for tests."""
    setup_logging(LogLevel.DEBUG)


@pytest.fixture
def mock_gemini_client():
    """Mock google-genai client with an async generate_content."""
    mock_client = MagicMock()
    mock_client.aio.models.generate_content = AsyncMock(
        return_value=make_response("Test response")
    )
    return mock_client


@pytest.fixture
def generation_client(mock_gemini_client):
    """GenerationClient with a configured key that always builds the mock."""
    return GenerationClient(
        credentials=CredentialProvider.from_mapping({"API_KEY": TEST_KEY}),
        client_factory=lambda api_key: mock_gemini_client,
    )


@pytest.fixture
def unconfigured_client(mock_gemini_client):
    """GenerationClient whose credential provider resolves nothing."""
    return GenerationClient(
        credentials=CredentialProvider.from_mapping({}),
        client_factory=lambda api_key: mock_gemini_client,
    )
