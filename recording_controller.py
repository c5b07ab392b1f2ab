from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Protocol

import numpy as np

from audio_packaging import AudioPackager, AudioPayload
from voice_errors import VoiceErrorKind, VoiceServiceError


class RecordingStatus(str, Enum):
    IDLE = "idle"
    REQUESTING_PERMISSION = "requesting-permission"
    RECORDING = "recording"
    STOPPING = "stopping"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


OPEN_STATUSES = frozenset(
    {
        RecordingStatus.REQUESTING_PERMISSION,
        RecordingStatus.RECORDING,
        RecordingStatus.STOPPING,
        RecordingStatus.PROCESSING,
    }
)


@dataclass
class RecordingSession:
    started_at: datetime
    status: RecordingStatus
    elapsed_seconds: float = 0.0
    audio_uri: Optional[Path] = None
    payload: Optional[AudioPayload] = None


class CaptureDevice(Protocol):
    sample_rate: int
    channels: int

    def request_permission(self) -> bool: ...

    def start(self) -> None: ...

    def stop(self) -> np.ndarray: ...

    def abort(self) -> None: ...


StatusCallback = Callable[[RecordingStatus, RecordingStatus], None]
TickCallback = Callable[[float], None]
AutoStopCallback = Callable[[RecordingSession], None]


class RecordingController:
    """Owns the microphone session: one recording at a time, 1 Hz timer, auto-stop ceiling."""

    def __init__(
        self,
        capture: CaptureDevice,
        packager: Optional[AudioPackager] = None,
        max_duration_s: float = 30.0,
        tick_interval_s: float = 1.0,
        on_status_change: Optional[StatusCallback] = None,
        on_tick: Optional[TickCallback] = None,
        on_auto_stop: Optional[AutoStopCallback] = None,
        temp_dir: Optional[str] = None,
    ) -> None:
        self._capture = capture
        self._packager = packager or AudioPackager()
        self._max_duration_s = max_duration_s
        self._tick_interval_s = tick_interval_s
        self.on_status_change = on_status_change
        self.on_tick = on_tick
        self.on_auto_stop = on_auto_stop
        self._temp_dir = temp_dir

        self._status = RecordingStatus.IDLE
        self._session: Optional[RecordingSession] = None
        self._tick_task: Optional[asyncio.Task[None]] = None
        self._generation = 0
        self.auto_stop_task: Optional[asyncio.Task[Optional[RecordingSession]]] = None
        self.last_error: Optional[VoiceServiceError] = None

    @property
    def status(self) -> RecordingStatus:
        return self._status

    @property
    def session(self) -> Optional[RecordingSession]:
        return self._session

    @property
    def elapsed_seconds(self) -> float:
        return self._session.elapsed_seconds if self._session is not None else 0.0

    @property
    def is_busy(self) -> bool:
        return self._status in OPEN_STATUSES

    async def start_recording(self) -> RecordingSession:
        if self._status in OPEN_STATUSES:
            raise VoiceServiceError(VoiceErrorKind.RECORDING_FAILED, "Recording already in progress")

        self._generation += 1
        generation = self._generation
        self._session = None
        self.last_error = None
        self._set_status(RecordingStatus.REQUESTING_PERMISSION)

        try:
            granted = await asyncio.to_thread(self._capture.request_permission)
        except Exception as exc:  # noqa: BLE001 - audio device boundary
            if generation != self._generation:
                raise VoiceServiceError(VoiceErrorKind.RECORDING_FAILED, "Recording cancelled") from exc
            raise self._enter_error(
                VoiceServiceError(VoiceErrorKind.RECORDING_FAILED, f"Microphone unavailable: {exc}", exc)
            ) from exc
        if generation != self._generation:
            raise VoiceServiceError(VoiceErrorKind.RECORDING_FAILED, "Recording cancelled")
        if not granted:
            raise self._enter_error(
                VoiceServiceError(VoiceErrorKind.PERMISSION_DENIED, "Microphone permission not granted")
            )

        try:
            self._capture.start()
        except Exception as exc:  # noqa: BLE001 - audio device boundary
            self._abort_capture()
            raise self._enter_error(
                VoiceServiceError(VoiceErrorKind.RECORDING_FAILED, f"Failed to start recording: {exc}", exc)
            ) from exc

        self._session = RecordingSession(started_at=datetime.now(), status=RecordingStatus.RECORDING)
        self._set_status(RecordingStatus.RECORDING)
        self._tick_task = asyncio.create_task(self._run_ticks(generation))
        logging.info("recording_started max_duration_s=%s", self._max_duration_s)
        return self._session

    async def stop_recording(self) -> Optional[RecordingSession]:
        session = self._session
        if self._status is not RecordingStatus.RECORDING or session is None:
            return None

        self._set_status(RecordingStatus.STOPPING)
        self._cancel_tick()
        try:
            samples = self._capture.stop()
        except Exception as exc:  # noqa: BLE001 - audio device boundary
            self._abort_capture()
            raise self._enter_error(
                VoiceServiceError(VoiceErrorKind.RECORDING_FAILED, f"Failed to stop recording: {exc}", exc)
            ) from exc

        if samples is None or np.asarray(samples).size == 0:
            raise self._enter_error(VoiceServiceError(VoiceErrorKind.RECORDING_FAILED, "No audio was captured"))

        try:
            # Capture delivers mono samples whatever the device channel count.
            payload = self._packager.package(samples, self._capture.sample_rate, 1)
            payload.path = self._write_temp_file(payload)
            payload.temporary = True
        except VoiceServiceError as exc:
            raise self._enter_error(exc) from exc
        except OSError as exc:
            raise self._enter_error(
                VoiceServiceError(VoiceErrorKind.RECORDING_FAILED, f"Failed to save recording: {exc}", exc)
            ) from exc

        session.payload = payload
        session.audio_uri = payload.path
        self._set_status(RecordingStatus.PROCESSING)
        logging.info(
            "recording_stopped elapsed_s=%.1f bytes=%s mime=%s",
            session.elapsed_seconds,
            payload.size_bytes,
            payload.mime_type,
        )
        return session

    def cancel_recording(self) -> None:
        self._generation += 1
        self._cancel_tick()
        if self.auto_stop_task is not None and not self.auto_stop_task.done():
            self.auto_stop_task.cancel()
        self.auto_stop_task = None
        self._abort_capture()
        self._discard_temp_file()
        self._session = None
        self.last_error = None
        self._set_status(RecordingStatus.IDLE)
        logging.info("recording_cancelled")

    def complete(self) -> None:
        if self._status is RecordingStatus.PROCESSING:
            self._set_status(RecordingStatus.COMPLETED)

    def fail(self, error: VoiceServiceError) -> None:
        # A cancelled or restarted session must not be flipped by a late result.
        if self._status is RecordingStatus.PROCESSING:
            self._enter_error(error)

    def reset(self) -> None:
        if self._status in (RecordingStatus.COMPLETED, RecordingStatus.ERROR):
            self._session = None
            self.last_error = None
            self._set_status(RecordingStatus.IDLE)

    async def _run_ticks(self, generation: int) -> None:
        ticks = 0
        while True:
            await asyncio.sleep(self._tick_interval_s)
            session = self._session
            if generation != self._generation or self._status is not RecordingStatus.RECORDING or session is None:
                return
            ticks += 1
            session.elapsed_seconds = round(ticks * self._tick_interval_s, 3)
            if self.on_tick is not None:
                self.on_tick(session.elapsed_seconds)
            if session.elapsed_seconds >= self._max_duration_s:
                logging.info("recording_auto_stop elapsed_s=%.1f", session.elapsed_seconds)
                self.auto_stop_task = asyncio.create_task(self._auto_stop())
                return

    async def _auto_stop(self) -> Optional[RecordingSession]:
        try:
            session = await self.stop_recording()
        except VoiceServiceError as exc:
            # Already surfaced through the error status and last_error.
            logging.warning("recording_auto_stop_failed kind=%s error=%s", exc.kind.value, exc.message)
            return None
        if session is not None and self.on_auto_stop is not None:
            self.on_auto_stop(session)
        return session

    def _cancel_tick(self) -> None:
        task, self._tick_task = self._tick_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def _abort_capture(self) -> None:
        try:
            self._capture.abort()
        except Exception as exc:  # noqa: BLE001 - cleanup must not raise
            logging.warning("recording_abort_failed error=%s", exc)

    def _discard_temp_file(self) -> None:
        session = self._session
        if session is None or session.audio_uri is None:
            return
        try:
            Path(session.audio_uri).unlink(missing_ok=True)
        except OSError as exc:
            logging.warning("recording_temp_cleanup_failed path=%s error=%s", session.audio_uri, exc)

    def _write_temp_file(self, payload: AudioPayload) -> Path:
        extension = payload.filename.rsplit(".", 1)[-1]
        fd, name = tempfile.mkstemp(prefix="voice_", suffix=f".{extension}", dir=self._temp_dir)
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload.data)
        return Path(name)

    def _enter_error(self, error: VoiceServiceError) -> VoiceServiceError:
        self.last_error = error
        self._set_status(RecordingStatus.ERROR)
        return error

    def _set_status(self, new_status: RecordingStatus) -> None:
        old_status = self._status
        if old_status is new_status:
            return
        self._status = new_status
        if self._session is not None:
            self._session.status = new_status
        logging.debug("recording_status old=%s new=%s", old_status.value, new_status.value)
        if self.on_status_change is not None:
            self.on_status_change(old_status, new_status)
