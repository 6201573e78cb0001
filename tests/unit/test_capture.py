"""Tests for the sounddevice capture wrapper (PortAudio stream mocked)."""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

try:
    import sounddevice as sd
except OSError:  # PortAudio shared library missing on this machine
    pytest.skip("PortAudio not available", allow_module_level=True)

from meeting_recorder.core.exceptions import DeviceError
from meeting_recorder.services.audio.capture import MicrophoneCapture

INPUT_STREAM = "meeting_recorder.services.audio.capture.sd.InputStream"


class TestMicrophoneCapture:
    def test_start_opens_mono_float_stream(self):
        with patch(INPUT_STREAM) as stream_cls:
            capture = MicrophoneCapture(lambda _s: None, sample_rate=16000, device=2)
            capture.start()

        kwargs = stream_cls.call_args.kwargs
        assert kwargs["device"] == 2
        assert kwargs["channels"] == 1
        assert kwargs["samplerate"] == 16000
        assert kwargs["dtype"] == "float32"
        stream_cls.return_value.start.assert_called_once()

    def test_callback_forwards_first_channel(self):
        received = []
        capture = MicrophoneCapture(received.append)
        block = np.array([[0.1, 0.9], [0.2, 0.8]], dtype=np.float32)

        capture._callback(block, 2, None, None)

        assert received[0].tolist() == pytest.approx([0.1, 0.2])

    def test_device_failure_raises_device_error(self):
        with patch(INPUT_STREAM, side_effect=sd.PortAudioError("Device unavailable")):
            capture = MicrophoneCapture(lambda _s: None)
            with pytest.raises(DeviceError, match="Device unavailable"):
                capture.start()
        assert capture.active is False

    def test_close_is_idempotent(self):
        stream = MagicMock()
        with patch(INPUT_STREAM, return_value=stream):
            capture = MicrophoneCapture(lambda _s: None)
            capture.start()

        capture.close()
        capture.close()

        stream.stop.assert_called_once()
        stream.close.assert_called_once()
