"""
The NEST assistant: one text chat plus at most one live voice session.
"""

from enum import StrEnum

from nest_planner.assistant.chat import ChatReply, TextChat
from nest_planner.assistant.voice import (
    MicrophoneFactory,
    OutputFactory,
    VoiceSession,
    VoiceState,
)
from nest_planner.client import GenerationClient
from nest_planner.utils.error_handling import ConfigurationError
from nest_planner.utils.logging import get_logger

logger = get_logger(__name__)


class AssistantMode(StrEnum):
    TEXT = "text"
    VOICE = "voice"


class ConversationalAssistant:
    """
    Owns the text chat and the voice session for one user-facing assistant.

    Args:
        client: Credential-aware client factory (optional)
        open_microphone: Coroutine acquiring the microphone (required for voice)
        open_output: Output audio context factory (required for voice)
    """

    def __init__(
        self,
        client: GenerationClient | None = None,
        open_microphone: MicrophoneFactory | None = None,
        open_output: OutputFactory | None = None,
    ):
        self.client = client or GenerationClient()
        self.open_microphone = open_microphone
        self.open_output = open_output
        self.chat = TextChat(self.client)
        self.voice: VoiceSession | None = None
        self.mode = AssistantMode.TEXT

    async def send_text(self, message: str) -> ChatReply:
        return await self.chat.send(message)

    async def start_voice(self) -> VoiceSession:
        """
        Start (or return the already running) voice session.

        Raises:
            ConfigurationError: If no audio devices were provided or no
                credential resolves
        """
        if self.voice is not None and self.voice.is_active:
            return self.voice
        if self.open_microphone is None or self.open_output is None:
            raise ConfigurationError("Voice mode needs a microphone and an audio output")

        self.mode = AssistantMode.VOICE
        self.voice = VoiceSession(
            open_microphone=self.open_microphone,
            open_output=self.open_output,
            client=self.client,
        )
        self.voice.on("state", self._on_voice_state)
        try:
            await self.voice.start()
        except Exception:
            self.mode = AssistantMode.TEXT
            raise
        return self.voice

    def _on_voice_state(self, state: VoiceState) -> None:
        if state is VoiceState.CLOSED:
            self.mode = AssistantMode.TEXT

    async def stop_voice(self) -> None:
        if self.voice is not None:
            await self.voice.stop()
        self.mode = AssistantMode.TEXT

    async def toggle_voice(self) -> AssistantMode:
        if self.mode is AssistantMode.TEXT:
            await self.start_voice()
        else:
            await self.stop_voice()
        return self.mode

    async def close(self) -> None:
        """Teardown: stop voice and discard the chat session."""
        await self.stop_voice()
        self.voice = None
        self.chat.close()
        logger.debug("Assistant closed")
