from __future__ import annotations

import io
import logging
import wave
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import numpy as np
import soundfile as sf

from voice_errors import VoiceErrorKind, VoiceServiceError

MAX_PAYLOAD_BYTES = 25 * 1024 * 1024


@dataclass(frozen=True)
class AudioFormat:
    mime_type: str
    extension: str
    container: str
    subtype: str


@dataclass
class AudioPayload:
    data: bytes
    mime_type: str
    filename: str
    duration_s: float = 0.0
    path: Optional[Path] = None
    # True only for files the recorder wrote; caller-supplied files are never deleted.
    temporary: bool = False

    @property
    def size_bytes(self) -> int:
        return len(self.data)


SAFE_DEFAULT_FORMAT = AudioFormat("audio/wav", "wav", "WAV", "PCM_16")

PREFERRED_FORMATS: tuple[AudioFormat, ...] = (
    AudioFormat("audio/ogg;codecs=opus", "ogg", "OGG", "OPUS"),
    AudioFormat("audio/flac", "flac", "FLAC", "PCM_16"),
    AudioFormat("audio/ogg;codecs=vorbis", "ogg", "OGG", "VORBIS"),
    SAFE_DEFAULT_FORMAT,
)

EXTENSION_MIME_TYPES = {
    "wav": "audio/wav",
    "flac": "audio/flac",
    "ogg": "audio/ogg",
    "opus": "audio/ogg",
    "webm": "audio/webm",
    "m4a": "audio/m4a",
    "mp4": "audio/mp4",
    "mp3": "audio/mpeg",
    "mpga": "audio/mpeg",
    "mpeg": "audio/mpeg",
    "aac": "audio/aac",
}

FormatProbe = Callable[[AudioFormat], bool]


def soundfile_supports(audio_format: AudioFormat) -> bool:
    try:
        return bool(sf.check_format(audio_format.container, audio_format.subtype))
    except (TypeError, ValueError):
        return False


class AudioPackager:
    def __init__(
        self,
        probe: Optional[FormatProbe] = None,
        formats: tuple[AudioFormat, ...] = PREFERRED_FORMATS,
        max_bytes: int = MAX_PAYLOAD_BYTES,
    ) -> None:
        self._probe = probe or soundfile_supports
        self._formats = formats
        self._max_bytes = max_bytes
        self._selected: Optional[AudioFormat] = None

    @property
    def selected_format(self) -> AudioFormat:
        if self._selected is None:
            self._selected = self._select_format()
        return self._selected

    def supported_mime_types(self) -> list[str]:
        supported = [fmt.mime_type for fmt in self._formats if fmt is SAFE_DEFAULT_FORMAT or self._probe(fmt)]
        if SAFE_DEFAULT_FORMAT.mime_type not in supported:
            supported.append(SAFE_DEFAULT_FORMAT.mime_type)
        return supported

    def package(self, samples: np.ndarray, sample_rate: int, channels: int = 1) -> AudioPayload:
        mono = np.asarray(samples, dtype=np.float32).reshape(-1)
        if mono.size == 0:
            raise VoiceServiceError(VoiceErrorKind.INVALID_AUDIO, "No audio samples to package")
        audio_format = self.selected_format
        if audio_format is SAFE_DEFAULT_FORMAT:
            data = self._to_wav_bytes(mono, sample_rate, channels)
        else:
            data = self._encode_with_soundfile(mono, sample_rate, audio_format)
        payload = AudioPayload(
            data=data,
            mime_type=audio_format.mime_type,
            filename=f"audio.{audio_format.extension}",
            duration_s=mono.shape[0] / float(sample_rate * channels),
        )
        self.validate(payload)
        return payload

    def load_file(self, path: Path | str) -> AudioPayload:
        file_path = Path(path)
        if not file_path.is_file():
            raise VoiceServiceError(VoiceErrorKind.INVALID_AUDIO, "Audio file not found")
        extension = file_path.suffix.lower().lstrip(".")
        mime_type = EXTENSION_MIME_TYPES.get(extension)
        if mime_type is None:
            raise VoiceServiceError(
                VoiceErrorKind.INVALID_AUDIO,
                "Please upload a valid audio file (mp3, wav, m4a, webm, ogg, flac, aac)",
            )
        size = file_path.stat().st_size
        if size > self._max_bytes:
            raise VoiceServiceError(VoiceErrorKind.INVALID_AUDIO, self._too_large_message(size))
        payload = AudioPayload(
            data=file_path.read_bytes(),
            mime_type=mime_type,
            filename=f"audio.{extension}",
            path=file_path,
        )
        self.validate(payload)
        return payload

    def validate(self, payload: AudioPayload) -> None:
        if not payload.data:
            raise VoiceServiceError(VoiceErrorKind.INVALID_AUDIO, "Audio payload is empty")
        if payload.size_bytes > self._max_bytes:
            raise VoiceServiceError(VoiceErrorKind.INVALID_AUDIO, self._too_large_message(payload.size_bytes))

    def _select_format(self) -> AudioFormat:
        for audio_format in self._formats:
            if audio_format is SAFE_DEFAULT_FORMAT or self._probe(audio_format):
                logging.debug("audio_format_selected mime=%s", audio_format.mime_type)
                return audio_format
        logging.info("audio_format_fallback mime=%s", SAFE_DEFAULT_FORMAT.mime_type)
        return SAFE_DEFAULT_FORMAT

    def _too_large_message(self, size: int) -> str:
        limit_mb = self._max_bytes // (1024 * 1024)
        return f"Audio file too large ({round(size / 1024 / 1024)}MB). Maximum size is {limit_mb}MB."

    @staticmethod
    def _encode_with_soundfile(samples: np.ndarray, sample_rate: int, audio_format: AudioFormat) -> bytes:
        buf = io.BytesIO()
        try:
            sf.write(buf, samples, sample_rate, format=audio_format.container, subtype=audio_format.subtype)
        except (RuntimeError, TypeError, ValueError) as exc:
            raise VoiceServiceError(
                VoiceErrorKind.RECORDING_FAILED,
                f"Failed to encode audio as {audio_format.mime_type}: {exc}",
                exc,
            ) from exc
        return buf.getvalue()

    @staticmethod
    def _to_wav_bytes(samples: np.ndarray, sample_rate: int, channels: int) -> bytes:
        clamped = np.clip(samples, -1.0, 1.0)
        int16_samples = (clamped * 32767).astype(np.int16)
        buf = io.BytesIO()
        with wave.open(buf, "wb") as wf:
            wf.setnchannels(channels)
            wf.setsampwidth(2)
            wf.setframerate(sample_rate)
            wf.writeframes(int16_samples.tobytes())
        return buf.getvalue()
