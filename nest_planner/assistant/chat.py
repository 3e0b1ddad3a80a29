"""
Multi-turn text chat with the travel assistant.

The chat session is created lazily on the first message and survives
failed turns: an error is reported in the reply while the conversation
context stays intact. Only :meth:`TextChat.close` discards it.
"""

from dataclasses import dataclass
from typing import Any

from google.genai import types

from nest_planner.client import GenerationClient
from nest_planner.config import config as app_config
from nest_planner.utils.error_handling import ValidationError
from nest_planner.utils.logging import get_logger

logger = get_logger(__name__)

SYSTEM_INSTRUCTION = (
    "You are NEST, a helpful family travel assistant. Be concise, friendly, and expert."
)
EMPTY_REPLY = "I'm having trouble thinking right now."
ERROR_REPLY = "Sorry, I encountered an error. Please try again."


@dataclass
class ChatReply:
    text: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TextChat:
    """A lazily created, persistent chat session."""

    def __init__(self, client: GenerationClient | None = None, model: str | None = None):
        self.client = client or GenerationClient()
        self.model = model or app_config.get_model("chat").name
        self._session: Any | None = None

    @property
    def is_active(self) -> bool:
        return self._session is not None

    def _ensure_session(self) -> Any:
        if self._session is None:
            api_client = self.client.create_client(self.client.resolve_credential())
            self._session = api_client.aio.chats.create(
                model=self.model,
                config=types.GenerateContentConfig(
                    system_instruction=SYSTEM_INSTRUCTION
                ),
            )
            logger.info(f"Created chat session with {self.model}")
        return self._session

    async def send(self, message: str) -> ChatReply:
        """
        Send one user turn and return the model turn.

        Raises:
            ValidationError: If the message is blank
        """
        if not message.strip():
            raise ValidationError("Chat message must not be empty")

        try:
            session = self._ensure_session()
            response = await session.send_message(message)
            reply = ChatReply(text=(response.text or "").strip() or EMPTY_REPLY)
        except Exception as e:
            logger.error(f"Chat turn failed: {e!s}")
            reply = ChatReply(text=ERROR_REPLY, error=str(e) or type(e).__name__)

        return reply

    def close(self) -> None:
        self._session = None
