"""Float-to-PCM framing for streaming transcription.

Accumulates float samples from the capture callback and yields fixed-size
16-bit PCM frames sized for low-latency transmission.
"""

from dataclasses import dataclass

import numpy as np

# Little-endian signed 16-bit, the only encoding the streaming service accepts
PCM_DTYPE = np.dtype("<i2")


@dataclass(frozen=True)
class AudioFrame:
    """An immutable block of mono 16-bit little-endian PCM samples."""

    pcm: bytes
    sample_rate: int

    @property
    def num_samples(self) -> int:
        return len(self.pcm) // PCM_DTYPE.itemsize

    @property
    def duration(self) -> float:
        """Length of the frame in seconds."""
        return self.num_samples / self.sample_rate

    def samples(self) -> np.ndarray:
        """Return the frame as a read-only int16 array."""
        return np.frombuffer(self.pcm, dtype=PCM_DTYPE)


def quantize(samples: np.ndarray) -> np.ndarray:
    """Convert float samples in [-1.0, 1.0] to int16.

    Values are clamped first; negatives scale by 32768 and non-negatives by
    32767 so both extremes land exactly on the int16 range, then the result
    is truncated toward zero.
    """
    clipped = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    scaled = np.where(clipped < 0, clipped * 32768.0, clipped * 32767.0)
    return scaled.astype(PCM_DTYPE)


class Chunker:
    """Turns a continuous float sample stream into fixed-size PCM frames.

    Pure transformation with no I/O: safe to call from the audio callback
    thread. Samples below the frame threshold are held for the next call,
    so no audio is dropped and order is preserved.

    Args:
        sample_rate: Capture sample rate in Hz.
        frame_duration_ms: Target audio length per emitted frame.
    """

    def __init__(self, sample_rate: int = 16000, frame_duration_ms: int = 50) -> None:
        if sample_rate <= 0 or frame_duration_ms <= 0:
            raise ValueError("sample_rate and frame_duration_ms must be positive")
        self._sample_rate = sample_rate
        self._frame_size = max(sample_rate * frame_duration_ms // 1000, 1)
        self._pending = np.empty(0, dtype=PCM_DTYPE)

    @property
    def frame_size(self) -> int:
        """Number of samples per emitted frame."""
        return self._frame_size

    @property
    def buffered(self) -> int:
        """Number of quantized samples waiting for a full frame."""
        return len(self._pending)

    def push(self, samples: np.ndarray) -> list[AudioFrame]:
        """Buffer *samples* and return every complete frame now available."""
        quantized = quantize(np.ravel(samples))
        if len(quantized) == 0:
            return []

        buffer = np.concatenate((self._pending, quantized))
        full = len(buffer) - (len(buffer) % self._frame_size)

        frames = [
            AudioFrame(
                pcm=buffer[start : start + self._frame_size].tobytes(),
                sample_rate=self._sample_rate,
            )
            for start in range(0, full, self._frame_size)
        ]
        self._pending = buffer[full:].copy()
        return frames

    def flush(self) -> AudioFrame | None:
        """Emit the trailing partial frame, if any, and clear the buffer."""
        if len(self._pending) == 0:
            return None
        frame = AudioFrame(pcm=self._pending.tobytes(), sample_rate=self._sample_rate)
        self._pending = np.empty(0, dtype=PCM_DTYPE)
        return frame

    def reset(self) -> None:
        """Discard buffered samples."""
        self._pending = np.empty(0, dtype=PCM_DTYPE)
