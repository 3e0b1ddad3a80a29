"""Tests for the assistant facade combining text and voice."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from nest_planner.assistant import AssistantMode, ConversationalAssistant
from nest_planner.assistant.voice import VoiceState
from nest_planner.utils.error_handling import ConfigurationError
from tests.unit.fakes import (
    FakeAudioOutput,
    FakeLiveConnect,
    FakeLiveSession,
    FakeMicrophone,
    wait_until,
)


@pytest.fixture
def live_connect(mock_gemini_client):
    connect = FakeLiveConnect(FakeLiveSession())
    mock_gemini_client.aio.live.connect = MagicMock(return_value=connect)
    return connect


@pytest.fixture
def assistant(generation_client, live_connect):
    return ConversationalAssistant(
        client=generation_client,
        open_microphone=AsyncMock(side_effect=lambda: FakeMicrophone()),
        open_output=lambda rate: FakeAudioOutput(),
    )


async def test_voice_requires_devices(generation_client):
    assistant = ConversationalAssistant(client=generation_client)
    with pytest.raises(ConfigurationError):
        await assistant.start_voice()
    assert assistant.mode is AssistantMode.TEXT


async def test_toggle_voice(assistant, live_connect):
    assert await assistant.toggle_voice() is AssistantMode.VOICE
    assert assistant.voice.state is VoiceState.OPEN

    assert await assistant.toggle_voice() is AssistantMode.TEXT
    assert assistant.voice.state is VoiceState.CLOSED
    assert live_connect.exits == 1


async def test_start_voice_reuses_active_session(assistant):
    first = await assistant.start_voice()
    second = await assistant.start_voice()
    assert first is second
    await assistant.close()


async def test_failed_voice_start_returns_to_text(unconfigured_client):
    assistant = ConversationalAssistant(
        client=unconfigured_client,
        open_microphone=AsyncMock(side_effect=lambda: FakeMicrophone()),
        open_output=lambda rate: FakeAudioOutput(),
    )
    with pytest.raises(ConfigurationError):
        await assistant.start_voice()
    assert assistant.mode is AssistantMode.TEXT


async def test_close_stops_everything(assistant):
    await assistant.start_voice()
    voice = assistant.voice

    await assistant.close()

    assert voice.state is VoiceState.CLOSED
    assert assistant.voice is None
    assert assistant.chat.is_active is False


async def test_remote_close_returns_to_text(assistant, live_connect):
    await assistant.start_voice()

    live_connect.session.turns.put_nowait([])
    await wait_until(lambda: assistant.voice.state is VoiceState.CLOSED)

    assert assistant.mode is AssistantMode.TEXT
    assert await assistant.toggle_voice() is AssistantMode.VOICE
    assert assistant.voice.state is VoiceState.OPEN
    await assistant.close()
