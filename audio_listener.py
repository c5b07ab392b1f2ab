from __future__ import annotations

import logging
import threading
from typing import Optional

import numpy as np
import sounddevice as sd

from config_utils import read_float_env


class MicrophoneCapture:
    """Collects float32 samples from the default (or named) input device, downmixed to mono."""

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        preferred_device: Optional[str] = None,
    ) -> None:
        self._sample_rate = sample_rate
        self._channels = channels
        self._preferred_device = preferred_device

        self._stream: Optional[sd.InputStream] = None
        self._chunks: list[np.ndarray] = []
        self._frames = 0
        self._buffer_lock = threading.Lock()
        max_buffer_seconds = read_float_env("AUDIO_MAX_BUFFER_SECONDS", 60.0)
        self._max_buffer_frames = max(1, int(self._sample_rate * max_buffer_seconds))
        self._running = False

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def channels(self) -> int:
        return self._channels

    @property
    def is_running(self) -> bool:
        return self._running

    @staticmethod
    def list_input_devices() -> list[str]:
        devices = sd.query_devices()
        names: list[str] = []
        for d in devices:
            if int(d.get("max_input_channels", 0)) > 0:
                names.append(str(d.get("name", "Unknown input device")))
        return names

    def request_permission(self) -> bool:
        # Blocking; callers run it off the event loop.
        try:
            sd.check_input_settings(
                device=self._resolve_input_device(),
                channels=self._channels,
                samplerate=self._sample_rate,
                dtype="float32",
            )
        except (sd.PortAudioError, ValueError) as exc:
            logging.warning("microphone_permission_denied error=%s", exc)
            return False
        return True

    def start(self) -> None:
        if self._running:
            return
        with self._buffer_lock:
            self._chunks = []
            self._frames = 0
        self._stream = sd.InputStream(
            samplerate=self._sample_rate,
            channels=self._channels,
            dtype="float32",
            callback=self._audio_callback,
            device=self._resolve_input_device(),
            blocksize=0,
        )
        self._running = True
        try:
            self._stream.start()
        except sd.PortAudioError:
            self._running = False
            self._close_stream()
            raise
        logging.info("microphone_started sample_rate=%s channels=%s", self._sample_rate, self._channels)

    def stop(self) -> np.ndarray:
        """Release the device and hand back everything captured so far."""
        self._running = False
        self._close_stream()
        with self._buffer_lock:
            samples = np.concatenate(self._chunks) if self._chunks else np.empty((0,), dtype=np.float32)
            self._chunks = []
            self._frames = 0
        logging.info("microphone_stopped frames=%s", samples.shape[0])
        return samples

    def abort(self) -> None:
        self._running = False
        self._close_stream()
        with self._buffer_lock:
            self._chunks = []
            self._frames = 0

    def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except sd.PortAudioError as exc:
            logging.warning("microphone_close_failed error=%s", exc)

    def _audio_callback(self, indata, frames, time_info, status) -> None:
        del frames, time_info
        if status:
            logging.debug("microphone_status status=%s", status)
        if not self._running:
            return
        mono = np.mean(indata, axis=1, dtype=np.float32)
        with self._buffer_lock:
            if not self._running or self._frames >= self._max_buffer_frames:
                return
            room = self._max_buffer_frames - self._frames
            if mono.shape[0] > room:
                mono = mono[:room]
            self._chunks.append(mono)
            self._frames += mono.shape[0]

    def _resolve_input_device(self) -> Optional[str]:
        if not self._preferred_device:
            return None
        lowered_target = self._preferred_device.lower()
        for name in self.list_input_devices():
            if lowered_target in name.lower():
                return name
        raise ValueError(f"Input device '{self._preferred_device}' was not found among input devices.")
