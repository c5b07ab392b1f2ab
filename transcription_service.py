from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from time import perf_counter
from typing import Any, Optional

from openai import AsyncOpenAI

from audio_packaging import AudioPayload
from config_utils import DEFAULT_API_BASE_URL, read_api_key
from language_detection import NO_SIGNAL_CONFIDENCE, UNAMBIGUOUS_TAG_CONFIDENCE, disambiguate, normalize_language_tag
from language_tables import BASE_LANGUAGE
from voice_errors import VoiceErrorKind, VoiceServiceError, classify_api_error


@dataclass
class TranscriptionResult:
    text: str
    raw_language_tag: Optional[str]
    detected_language: str
    language_confidence: float
    duration_seconds: Optional[float] = None
    latency_s: float = 0.0


class WhisperTranscriptionService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "whisper-large-v3",
        base_url: str = DEFAULT_API_BASE_URL,
        timeout_s: float = 60.0,
        language_detection_enabled: bool = True,
        cleanup_after_transcription: bool = True,
    ) -> None:
        key = api_key or read_api_key()
        if not key:
            raise VoiceServiceError(VoiceErrorKind.API_KEY_MISSING, "Transcription API key not configured")
        # Retries belong to the caller; the SDK must fail fast.
        self._client = AsyncOpenAI(api_key=key, base_url=base_url, timeout=timeout_s, max_retries=0)
        self._model = model
        self._language_detection_enabled = language_detection_enabled
        self._cleanup_after_transcription = cleanup_after_transcription

    @property
    def model(self) -> str:
        return self._model

    async def transcribe(self, payload: AudioPayload, language_hint: Optional[str] = None) -> TranscriptionResult:
        started = perf_counter()
        try:
            try:
                response = await self._client.audio.transcriptions.create(
                    **self._build_request_kwargs(payload, language_hint)
                )
            except Exception as exc:  # noqa: BLE001 - service boundary
                raise classify_api_error(
                    exc,
                    VoiceErrorKind.TRANSCRIPTION_FAILED,
                    service="transcription",
                    bad_request_prefix="Invalid audio format or request",
                ) from exc

            if not hasattr(response, "text") and not isinstance(response, dict):
                raise VoiceServiceError(VoiceErrorKind.TRANSCRIPTION_FAILED, "Unexpected transcription response")
            text = self._read_value(response, "text").strip()
            if not text:
                raise VoiceServiceError(VoiceErrorKind.NO_SPEECH_DETECTED, "No speech detected in audio")

            raw_tag = self._read_value(response, "language").strip() or None
            language, confidence = self._resolve_language(text, raw_tag)
            result = TranscriptionResult(
                text=text,
                raw_language_tag=raw_tag,
                detected_language=language,
                language_confidence=confidence,
                duration_seconds=self._read_duration(response),
                latency_s=perf_counter() - started,
            )
            logging.info(
                "transcription_done language=%s confidence=%.2f raw_tag=%s latency_s=%.2f chars=%s",
                result.detected_language,
                result.language_confidence,
                raw_tag,
                result.latency_s,
                len(text),
            )
            return result
        finally:
            if self._cleanup_after_transcription and payload.temporary and payload.path is not None:
                self._cleanup_audio_file(payload.path)

    def _build_request_kwargs(self, payload: AudioPayload, language_hint: Optional[str]) -> dict[str, object]:
        kwargs: dict[str, object] = {
            "model": self._model,
            "file": (payload.filename, payload.data, payload.mime_type),
            "response_format": "verbose_json",
            "temperature": 0,
        }
        if language_hint:
            kwargs["language"] = language_hint
        return kwargs

    def _resolve_language(self, text: str, raw_tag: Optional[str]) -> tuple[str, float]:
        fallback_tag = normalize_language_tag(raw_tag)
        if not self._language_detection_enabled:
            if fallback_tag:
                return fallback_tag, UNAMBIGUOUS_TAG_CONFIDENCE
            return BASE_LANGUAGE, NO_SIGNAL_CONFIDENCE
        try:
            detection = disambiguate(text, raw_tag)
        except Exception as exc:  # noqa: BLE001 - detection is best effort
            failure = VoiceServiceError(VoiceErrorKind.LANGUAGE_DETECTION_FAILED, f"Language detection failed: {exc}", exc)
            logging.warning("language_detection_failed kind=%s error=%s", failure.kind.value, failure.message)
            if fallback_tag:
                return fallback_tag, UNAMBIGUOUS_TAG_CONFIDENCE
            return BASE_LANGUAGE, NO_SIGNAL_CONFIDENCE
        return detection.language, detection.confidence

    @staticmethod
    def _cleanup_audio_file(path: Path) -> None:
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as exc:
            logging.warning("audio_cleanup_failed path=%s error=%s", path, exc)

    @staticmethod
    def _read_duration(response: Any) -> Optional[float]:
        raw = WhisperTranscriptionService._read_value(response, "duration").strip()
        if not raw:
            return None
        try:
            return float(raw)
        except ValueError:
            return None

    @staticmethod
    def _read_value(response: Any, key: str) -> str:
        if hasattr(response, key):
            value = getattr(response, key)
            return "" if value is None else str(value)
        if isinstance(response, dict):
            value = response.get(key)
            return "" if value is None else str(value)
        return ""
