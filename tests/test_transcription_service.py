from __future__ import annotations

import asyncio
import io
import os
import tempfile
import unittest
import wave
from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import numpy as np
from openai import APIStatusError

from audio_packaging import AudioPackager, AudioPayload
from transcription_service import WhisperTranscriptionService
from voice_errors import VoiceErrorKind, VoiceServiceError


class _FakeResponse:
    def __init__(self, text: str, language: str = "english", duration: float = 1.5) -> None:
        self.text = text
        self.language = language
        self.duration = duration


def _api_status_error(status_code: int, message: str) -> APIStatusError:
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/audio/transcriptions")
    response = httpx.Response(status_code=status_code, request=request)
    return APIStatusError(message, response=response, body={"error": {"message": message}})


def _dummy_wav_payload(path: Path | None = None, temporary: bool = False) -> AudioPayload:
    samples = (np.sin(np.linspace(0, np.pi * 2, 800)) * 0.1).astype(np.float32)
    int16_samples = (np.clip(samples, -1.0, 1.0) * 32767).astype(np.int16)
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(16000)
        wf.writeframes(int16_samples.tobytes())
    return AudioPayload(
        data=buf.getvalue(), mime_type="audio/wav", filename="audio.wav", path=path, temporary=temporary
    )


class TranscribeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.service = WhisperTranscriptionService(api_key="test-key")

    def test_text_and_language_are_resolved(self) -> None:
        self.service._client.audio.transcriptions.create = AsyncMock(
            return_value=_FakeResponse("  मुझे नौकरी चाहिए और मैं भारत में हूँ  ", "Hindi")
        )

        result = asyncio.run(self.service.transcribe(_dummy_wav_payload()))

        self.assertEqual(result.text, "मुझे नौकरी चाहिए और मैं भारत में हूँ")
        self.assertEqual(result.raw_language_tag, "Hindi")
        self.assertEqual(result.detected_language, "hi")
        self.assertEqual(result.language_confidence, 0.9)
        self.assertEqual(result.duration_seconds, 1.5)

    def test_dict_response_is_accepted(self) -> None:
        self.service._client.audio.transcriptions.create = AsyncMock(
            return_value={"text": "வணக்கம்", "language": "tamil"}
        )
        result = asyncio.run(self.service.transcribe(_dummy_wav_payload()))
        self.assertEqual(result.detected_language, "ta")
        self.assertIsNone(result.duration_seconds)

    def test_empty_text_is_no_speech(self) -> None:
        self.service._client.audio.transcriptions.create = AsyncMock(return_value=_FakeResponse("   "))
        with self.assertRaises(VoiceServiceError) as ctx:
            asyncio.run(self.service.transcribe(_dummy_wav_payload()))
        self.assertEqual(ctx.exception.kind, VoiceErrorKind.NO_SPEECH_DETECTED)

    def test_unauthorized_maps_to_transcription_failure(self) -> None:
        self.service._client.audio.transcriptions.create = AsyncMock(
            side_effect=_api_status_error(401, "Invalid API Key")
        )
        with self.assertRaises(VoiceServiceError) as ctx:
            asyncio.run(self.service.transcribe(_dummy_wav_payload()))
        self.assertEqual(ctx.exception.kind, VoiceErrorKind.TRANSCRIPTION_FAILED)
        self.assertEqual(ctx.exception.message, "Invalid transcription API key")

    def test_bad_request_keeps_endpoint_message(self) -> None:
        self.service._client.audio.transcriptions.create = AsyncMock(
            side_effect=_api_status_error(400, "file must be one of flac, mp3, wav")
        )
        with self.assertRaises(VoiceServiceError) as ctx:
            asyncio.run(self.service.transcribe(_dummy_wav_payload()))
        self.assertEqual(
            ctx.exception.message,
            "Invalid audio format or request: file must be one of flac, mp3, wav",
        )
        self.assertNotIn("None", ctx.exception.message)

    def test_server_error_is_network_error(self) -> None:
        self.service._client.audio.transcriptions.create = AsyncMock(side_effect=_api_status_error(502, "bad gateway"))
        with self.assertRaises(VoiceServiceError) as ctx:
            asyncio.run(self.service.transcribe(_dummy_wav_payload()))
        self.assertEqual(ctx.exception.kind, VoiceErrorKind.NETWORK_ERROR)

    def test_audio_file_is_removed_on_success_and_failure(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            ok_path = Path(tmp) / "ok.wav"
            bad_path = Path(tmp) / "bad.wav"
            ok_path.write_bytes(b"x")
            bad_path.write_bytes(b"x")
            self.service._client.audio.transcriptions.create = AsyncMock(
                side_effect=[_FakeResponse("hello there"), _api_status_error(500, "boom")]
            )

            asyncio.run(self.service.transcribe(_dummy_wav_payload(ok_path, temporary=True)))
            with self.assertRaises(VoiceServiceError):
                asyncio.run(self.service.transcribe(_dummy_wav_payload(bad_path, temporary=True)))

            self.assertFalse(ok_path.exists())
            self.assertFalse(bad_path.exists())

    def test_cleanup_can_be_disabled(self) -> None:
        service = WhisperTranscriptionService(api_key="test-key", cleanup_after_transcription=False)
        service._client.audio.transcriptions.create = AsyncMock(return_value=_FakeResponse("hello there"))
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "keep.wav"
            path.write_bytes(b"x")
            asyncio.run(service.transcribe(_dummy_wav_payload(path, temporary=True)))
            self.assertTrue(path.exists())

    def test_caller_supplied_file_is_never_deleted(self) -> None:
        self.service._client.audio.transcriptions.create = AsyncMock(
            side_effect=[_FakeResponse("hello there"), _api_status_error(500, "boom")]
        )
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "interview.wav"
            path.write_bytes(_dummy_wav_payload().data)
            payload = AudioPackager().load_file(path)
            self.assertFalse(payload.temporary)

            asyncio.run(self.service.transcribe(payload))
            with self.assertRaises(VoiceServiceError):
                asyncio.run(self.service.transcribe(payload))

            self.assertTrue(path.exists())

    def test_detection_disabled_uses_normalized_tag(self) -> None:
        service = WhisperTranscriptionService(api_key="test-key", language_detection_enabled=False)
        service._client.audio.transcriptions.create = AsyncMock(return_value=_FakeResponse("வணக்கம்", "en"))
        result = asyncio.run(service.transcribe(_dummy_wav_payload()))
        self.assertEqual(result.detected_language, "en")
        self.assertEqual(result.language_confidence, 0.8)


class RequestKwargsTests(unittest.TestCase):
    def test_language_is_only_sent_with_hint(self) -> None:
        service = WhisperTranscriptionService(api_key="test-key")
        payload = _dummy_wav_payload()

        auto = service._build_request_kwargs(payload, None)
        hinted = service._build_request_kwargs(payload, "ta")

        self.assertNotIn("language", auto)
        self.assertEqual(hinted["language"], "ta")
        self.assertEqual(auto["model"], "whisper-large-v3")
        self.assertEqual(auto["response_format"], "verbose_json")
        self.assertEqual(auto["temperature"], 0)
        self.assertEqual(auto["file"], ("audio.wav", payload.data, "audio/wav"))

    def test_missing_key_raises(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(VoiceServiceError) as ctx:
                WhisperTranscriptionService()
        self.assertEqual(ctx.exception.kind, VoiceErrorKind.API_KEY_MISSING)


if __name__ == "__main__":
    unittest.main()
