from __future__ import annotations

import os
import unittest
from unittest.mock import patch

import numpy as np

from audio_listener import MicrophoneCapture


class MicrophoneBufferTests(unittest.TestCase):
    def test_internal_buffer_is_capped(self) -> None:
        with patch.dict(os.environ, {"AUDIO_MAX_BUFFER_SECONDS": "0.5"}):
            capture = MicrophoneCapture(sample_rate=100)
        capture._running = True
        indata = np.ones((30, 1), dtype=np.float32)

        capture._audio_callback(indata, frames=30, time_info=None, status=None)
        capture._audio_callback(indata, frames=30, time_info=None, status=None)

        samples = capture.stop()
        self.assertEqual(samples.shape[0], capture._max_buffer_frames)
        self.assertEqual(samples.shape[0], 50)

    def test_stereo_input_is_downmixed(self) -> None:
        capture = MicrophoneCapture(sample_rate=100, channels=2)
        capture._running = True
        indata = np.array([[1.0, 0.0], [0.5, 0.5], [-1.0, 0.0]], dtype=np.float32)

        capture._audio_callback(indata, frames=3, time_info=None, status=None)

        samples = capture.stop()
        self.assertEqual(samples.ndim, 1)
        np.testing.assert_allclose(samples, [0.5, 0.5, -0.5])

    def test_callback_ignored_when_not_running(self) -> None:
        capture = MicrophoneCapture(sample_rate=100)
        capture._audio_callback(np.ones((10, 1), dtype=np.float32), frames=10, time_info=None, status=None)
        self.assertEqual(capture.stop().shape[0], 0)

    def test_abort_discards_samples(self) -> None:
        capture = MicrophoneCapture(sample_rate=100)
        capture._running = True
        capture._audio_callback(np.ones((10, 1), dtype=np.float32), frames=10, time_info=None, status=None)
        capture.abort()
        self.assertFalse(capture.is_running)
        self.assertEqual(capture.stop().shape[0], 0)

    def test_unknown_preferred_device_is_rejected(self) -> None:
        capture = MicrophoneCapture(preferred_device="Studio Mic")
        with patch.object(MicrophoneCapture, "list_input_devices", return_value=["Built-in Microphone"]):
            with self.assertRaises(ValueError):
                capture._resolve_input_device()
            self.assertFalse(capture.request_permission())


if __name__ == "__main__":
    unittest.main()
