"""
Conversational assistant: persistent text chat and duplex voice.
"""

from nest_planner.assistant.audio import PlaybackScheduler
from nest_planner.assistant.chat import ChatReply, TextChat
from nest_planner.assistant.conversational import AssistantMode, ConversationalAssistant
from nest_planner.assistant.voice import VoiceSession, VoiceState

__all__ = [
    "AssistantMode",
    "ChatReply",
    "ConversationalAssistant",
    "PlaybackScheduler",
    "TextChat",
    "VoiceSession",
    "VoiceState",
]
