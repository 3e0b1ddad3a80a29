"""
Duplex low-latency voice session with the live model.

One :class:`VoiceSession` object owns the whole channel for as long as voice
mode is active::

    IDLE -> CONNECTING -> OPEN -> CLOSED

``CONNECTING`` acquires the audio output context, the microphone and the
remote channel. ``OPEN`` runs three tasks: capture (microphone -> frames ->
outbound queue), upload (queue -> provider, no acknowledgement awaited) and
receive (provider -> playback scheduler). Any of an explicit stop, a remote
close or a provider error moves the session to ``CLOSED``; teardown is
idempotent and tolerates partially constructed state.
"""

import asyncio
import base64
from collections import defaultdict
from collections.abc import Awaitable, Callable
from contextlib import AsyncExitStack
from enum import StrEnum
from typing import Any

from google.genai import types

from nest_planner.assistant.audio import (
    AudioInput,
    AudioOutput,
    FrameAssembler,
    PlaybackScheduler,
    float_to_pcm16,
    pcm_mime_type,
    resample,
)
from nest_planner.client import GenerationClient
from nest_planner.config import PipelineConfig
from nest_planner.config import config as app_config
from nest_planner.utils.error_handling import ValidationError
from nest_planner.utils.logging import get_logger

logger = get_logger(__name__)

VOICE_SYSTEM_INSTRUCTION = (
    "You are NEST, a cheerful family travel planner. "
    "Keep responses helpful and encouraging."
)

MicrophoneFactory = Callable[[], Awaitable[AudioInput]]
OutputFactory = Callable[[int], AudioOutput]
Listener = Callable[..., None]


class VoiceState(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


def build_live_config(voice_name: str) -> types.LiveConnectConfig:
    return types.LiveConnectConfig(
        response_modalities=[types.Modality.AUDIO],
        speech_config=types.SpeechConfig(
            voice_config=types.VoiceConfig(
                prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice_name)
            )
        ),
        system_instruction=VOICE_SYSTEM_INSTRUCTION,
    )


class VoiceSession:
    """
    State machine for one live voice conversation.

    Sessions are single use: once CLOSED, start a new one.

    Args:
        open_microphone: Coroutine acquiring the microphone stream
        open_output: Creates the output audio context for a sample rate
        client: Credential-aware client factory (optional)
        model: Live model name (optional)
        pipeline: Framing and rate constants (optional)
    """

    def __init__(
        self,
        open_microphone: MicrophoneFactory,
        open_output: OutputFactory,
        client: GenerationClient | None = None,
        model: str | None = None,
        pipeline: PipelineConfig | None = None,
    ):
        self.open_microphone = open_microphone
        self.open_output = open_output
        self.client = client or GenerationClient()
        self.model = model or app_config.get_model("live").name
        self.pipeline = pipeline or app_config.pipeline

        self.state = VoiceState.IDLE
        self.outbound: asyncio.Queue[bytes] = asyncio.Queue(
            maxsize=self.pipeline.voice_outbound_queue_size
        )
        self.dropped_frames = 0
        self.failed_sends = 0
        self.scheduler: PlaybackScheduler | None = None

        self._microphone: AudioInput | None = None
        self._output: AudioOutput | None = None
        self._remote: Any | None = None
        self._exit_stack: AsyncExitStack | None = None
        self._tasks: list[asyncio.Task] = []
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def on(self, event: str, callback: Listener) -> None:
        """Register a callback for "state", "error" or "interrupted" events."""
        self._listeners[event].append(callback)

    def _emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners[event]):
            try:
                callback(*args)
            except Exception as e:
                logger.warning(f"Voice '{event}' listener failed: {e!s}")

    def _set_state(self, state: VoiceState) -> None:
        if self.state is state:
            return
        logger.info(f"Voice session {self.state.value} -> {state.value}")
        self.state = state
        self._emit("state", state)

    @property
    def is_active(self) -> bool:
        return self.state in (VoiceState.CONNECTING, VoiceState.OPEN)

    async def start(self) -> None:
        """
        Connect the audio devices and the remote channel, then start streaming.

        Raises:
            ValidationError: If the session was already closed
            ConfigurationError: If no credential resolves
        """
        if self.is_active:
            return
        if self.state is VoiceState.CLOSED:
            raise ValidationError("Voice session is closed; create a new one")

        self._set_state(VoiceState.CONNECTING)
        try:
            self._output = self.open_output(self.pipeline.voice_output_rate)
            self.scheduler = PlaybackScheduler(
                self._output, self.pipeline.voice_output_rate
            )
            self._microphone = await self.open_microphone()
            if self.state is VoiceState.CLOSED:
                await self._release_all()
                return

            api_client, _ = self.client.require_client()
            stack = AsyncExitStack()
            remote = await stack.enter_async_context(
                api_client.aio.live.connect(
                    model=self.model,
                    config=build_live_config(self.pipeline.voice_name),
                )
            )
            if self.state is VoiceState.CLOSED:
                await stack.aclose()
                await self._release_all()
                return
            self._exit_stack = stack
            self._remote = remote
        except Exception as e:
            logger.error(f"Failed to start voice session: {e!s}")
            self._emit("error", e)
            await self.stop()
            raise

        self._set_state(VoiceState.OPEN)
        self._tasks = [
            asyncio.create_task(self._capture_loop(), name="voice-capture"),
            asyncio.create_task(self._upload_loop(), name="voice-upload"),
            asyncio.create_task(self._receive_loop(), name="voice-receive"),
        ]

    def send(self, frame: bytes) -> bool:
        """
        Queue one encoded PCM frame for upload.

        The queue is bounded: when full, the oldest frame is dropped.

        Returns:
            False if the session is not open
        """
        if self.state is not VoiceState.OPEN:
            return False
        if self.outbound.full():
            self.outbound.get_nowait()
            self.dropped_frames += 1
        self.outbound.put_nowait(frame)
        return True

    def handle_server_message(self, message: Any) -> None:
        """Schedule inbound audio and honour interruption, in arrival order."""
        content = getattr(message, "server_content", None)
        if content is None or self.scheduler is None:
            return

        model_turn = getattr(content, "model_turn", None)
        for part in getattr(model_turn, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            data = getattr(inline, "data", None) if inline is not None else None
            if not data:
                continue
            if isinstance(data, str):
                data = base64.b64decode(data)
            self.scheduler.schedule(data)

        if getattr(content, "interrupted", False):
            stopped = self.scheduler.interrupt()
            logger.debug(f"Model speech interrupted, stopped {stopped} buffers")
            self._emit("interrupted")

    async def _capture_loop(self) -> None:
        microphone = self._microphone
        frame_samples = self.pipeline.voice_frame_samples
        assembler = FrameAssembler(frame_samples)
        async for chunk in microphone.chunks():
            if self.state is not VoiceState.OPEN:
                break
            for frame in assembler.push(chunk):
                samples = resample(
                    frame, microphone.sample_rate, self.pipeline.voice_input_rate
                )
                self.send(float_to_pcm16(samples))

    async def _upload_loop(self) -> None:
        mime_type = pcm_mime_type(self.pipeline.voice_input_rate)
        while True:
            frame = await self.outbound.get()
            try:
                await self._remote.send_realtime_input(
                    audio=types.Blob(data=frame, mime_type=mime_type)
                )
            except Exception as e:
                self.failed_sends += 1
                logger.warning(f"Dropped outbound audio frame: {e!s}")

    async def _receive_loop(self) -> None:
        try:
            while self.state is VoiceState.OPEN:
                received = False
                async for message in self._remote.receive():
                    received = True
                    self.handle_server_message(message)
                if not received:
                    logger.info("Live channel closed by remote")
                    break
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Live API error: {e!s}")
            self._emit("error", e)
        await self.stop()

    async def stop(self) -> None:
        """Tear the session down. Safe to call repeatedly and from any state."""
        if self.state is VoiceState.CLOSED:
            return
        self._set_state(VoiceState.CLOSED)
        await self._release_all()

    async def _release_all(self) -> None:
        if self._microphone is not None:
            try:
                self._microphone.close()
            except Exception as e:
                logger.warning(f"Failed to release microphone: {e!s}")
            self._microphone = None

        current = asyncio.current_task()
        pending = [task for task in self._tasks if task is not current]
        for task in pending:
            task.cancel()
        self._tasks = []
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        while not self.outbound.empty():
            self.outbound.get_nowait()

        if self.scheduler is not None:
            self.scheduler.interrupt()

        if self._output is not None:
            try:
                self._output.close()
            except Exception as e:
                logger.warning(f"Failed to close audio output: {e!s}")
            self._output = None

        if self._exit_stack is not None:
            stack, self._exit_stack = self._exit_stack, None
            try:
                await stack.aclose()
            except Exception as e:
                logger.warning(f"Failed to close live channel: {e!s}")
        self._remote = None
