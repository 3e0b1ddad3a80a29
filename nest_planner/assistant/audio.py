"""
Audio framing and playback scheduling for the live voice channel.

The live model consumes 16 kHz mono 16-bit little-endian PCM and answers
with 24 kHz PCM in the same encoding. Microphone capture arrives as float
samples in [-1, 1] at whatever rate the device runs; it is resampled and
cut into fixed-size frames before upload.

Inbound chunks are scheduled back to back on a monotonically advancing
playback cursor so variable network timing never produces gaps or overlap.
"""

import sys
from array import array
from collections.abc import AsyncIterator, Callable, Sequence
from typing import Protocol

PCM_MAX = 32767
PCM_MIN = -32768


def pcm_mime_type(sample_rate: int) -> str:
    return f"audio/pcm;rate={sample_rate}"


def float_to_pcm16(samples: Sequence[float]) -> bytes:
    """Encode float samples as 16-bit little-endian PCM, clipping to range."""
    pcm = array(
        "h",
        (max(PCM_MIN, min(PCM_MAX, int(round(s * 32768.0)))) for s in samples),
    )
    if sys.byteorder == "big":
        pcm.byteswap()
    return pcm.tobytes()


def pcm16_to_float(data: bytes, channels: int = 1) -> list[float]:
    """
    Decode 16-bit little-endian PCM into float samples of the first channel.

    A trailing odd byte is ignored.
    """
    usable = len(data) - (len(data) % 2)
    pcm = array("h")
    pcm.frombytes(data[:usable])
    if sys.byteorder == "big":
        pcm.byteswap()
    return [pcm[i] / 32768.0 for i in range(0, len(pcm) - len(pcm) % channels, channels)]


def resample(samples: Sequence[float], source_rate: int, target_rate: int) -> list[float]:
    """Linear-interpolation resampling between two sample rates."""
    if source_rate == target_rate or not samples:
        return list(samples)

    ratio = source_rate / target_rate
    length = max(1, int(len(samples) / ratio))
    last = len(samples) - 1
    out = []
    for i in range(length):
        position = i * ratio
        left = min(int(position), last)
        right = min(left + 1, last)
        fraction = position - left
        out.append(samples[left] * (1.0 - fraction) + samples[right] * fraction)
    return out


class FrameAssembler:
    """Accumulates capture chunks and emits fixed-size frames."""

    def __init__(self, frame_size: int):
        if frame_size < 1:
            raise ValueError("frame_size must be positive")
        self.frame_size = frame_size
        self._pending: list[float] = []

    def push(self, chunk: Sequence[float]) -> list[list[float]]:
        self._pending.extend(chunk)
        frames = []
        while len(self._pending) >= self.frame_size:
            frames.append(self._pending[: self.frame_size])
            del self._pending[: self.frame_size]
        return frames

    def reset(self) -> None:
        self._pending.clear()


class PlayHandle(Protocol):
    def stop(self) -> None: ...


class AudioOutput(Protocol):
    """Output audio context: a clock plus scheduled buffer playback."""

    @property
    def current_time(self) -> float: ...

    def play(
        self,
        samples: Sequence[float],
        sample_rate: int,
        start_at: float,
        on_ended: Callable[[], None],
    ) -> PlayHandle: ...

    def close(self) -> None: ...


class AudioInput(Protocol):
    """An acquired microphone stream."""

    sample_rate: int

    def chunks(self) -> AsyncIterator[Sequence[float]]: ...

    def close(self) -> None: ...


class PlaybackScheduler:
    """
    Schedules inbound audio chunks for gapless, in-order playback.

    Each chunk starts at ``max(cursor, now)`` and advances the cursor by its
    duration. :meth:`interrupt` stops everything queued or playing and resets
    the cursor to zero.
    """

    def __init__(self, output: AudioOutput, sample_rate: int = 24000):
        self.output = output
        self.sample_rate = sample_rate
        self.cursor = 0.0
        self.active: set[PlayHandle] = set()

    def schedule(self, pcm: bytes) -> float:
        """Schedule one PCM chunk, returning its start time."""
        samples = pcm16_to_float(pcm)
        if not samples:
            return self.cursor

        duration = len(samples) / self.sample_rate
        self.cursor = max(self.cursor, self.output.current_time)
        start_at = self.cursor

        handle: PlayHandle | None = None

        def _ended() -> None:
            if handle is not None:
                self.active.discard(handle)

        handle = self.output.play(samples, self.sample_rate, start_at, _ended)
        self.active.add(handle)
        self.cursor += duration
        return start_at

    def interrupt(self) -> int:
        """Stop every scheduled buffer; returns how many were stopped."""
        stopped = 0
        for handle in list(self.active):
            handle.stop()
            stopped += 1
        self.active.clear()
        self.cursor = 0.0
        return stopped
