"""Microphone capture via sounddevice.

Wraps a ``sounddevice.InputStream`` that delivers mono float32 blocks to a
callback on the PortAudio thread. Acquisition failures surface as
:class:`DeviceError` so a session can abort cleanly.
"""

import logging
from collections.abc import Callable

import numpy as np
import sounddevice as sd

from meeting_recorder.core.exceptions import DeviceError

logger = logging.getLogger(__name__)

CHANNELS = 1
DTYPE = "float32"


class MicrophoneCapture:
    """Exclusive handle on one input device for the lifetime of a session.

    Args:
        on_samples: Called from the audio thread with each 1-D float32 block.
        sample_rate: Requested capture rate in Hz.
        device: sounddevice device name or index (``None`` = system default).
        blocksize: Frames per callback (0 lets PortAudio choose).
    """

    def __init__(
        self,
        on_samples: Callable[[np.ndarray], None],
        sample_rate: int = 16000,
        device: str | int | None = None,
        blocksize: int = 1024,
    ) -> None:
        self._on_samples = on_samples
        self._sample_rate = sample_rate
        self._device = device
        self._blocksize = blocksize
        self._stream: sd.InputStream | None = None

    @property
    def active(self) -> bool:
        return self._stream is not None and self._stream.active

    def _callback(self, indata: np.ndarray, frames: int, time_info, status) -> None:
        """sounddevice callback: forward the first channel."""
        if status:
            logger.warning("Audio input status: %s", status)
        self._on_samples(indata[:, 0].copy())

    def start(self) -> None:
        """Open and start the input stream.

        Raises:
            DeviceError: If the device is missing, busy, or permission is denied.
        """
        if self._stream is not None:
            return

        try:
            stream = sd.InputStream(
                device=self._device,
                channels=CHANNELS,
                samplerate=self._sample_rate,
                dtype=DTYPE,
                latency="low",
                blocksize=self._blocksize,
                callback=self._callback,
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as exc:
            logger.warning("Could not open input device %r: %s", self._device, exc)
            raise DeviceError(f"Microphone unavailable: {exc}") from exc

        self._stream = stream
        logger.info(
            "Capture started (device=%r, rate=%s, blocksize=%s)",
            self._device,
            self._sample_rate,
            self._blocksize,
        )

    def close(self) -> None:
        """Stop and release the input stream. Idempotent."""
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()
        logger.info("Capture stopped")
