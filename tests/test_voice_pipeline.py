from __future__ import annotations

import asyncio
import json
import tempfile
import unittest
from pathlib import Path
from typing import Optional
from unittest.mock import AsyncMock

import numpy as np

from audio_packaging import AudioPackager, AudioPayload
from chat_service import ChatReply
from metrics_reporter import VoiceMetricsReporter
from recording_controller import RecordingController, RecordingStatus
from transcription_service import TranscriptionResult, WhisperTranscriptionService
from voice_errors import VoiceErrorKind, VoiceServiceError
from voice_pipeline import VoicePipeline, is_false_positive


class _FakeTranscriber:
    def __init__(self, text: str = "I want a job in data science", language: str = "en") -> None:
        self.text = text
        self.language = language
        self.error: Optional[Exception] = None
        self.hints: list[Optional[str]] = []

    async def transcribe(self, payload: AudioPayload, language_hint: Optional[str] = None) -> TranscriptionResult:
        self.hints.append(language_hint)
        if self.error is not None:
            raise self.error
        return TranscriptionResult(
            text=self.text,
            raw_language_tag=self.language,
            detected_language=self.language,
            language_confidence=0.9,
            latency_s=0.4,
        )


class _FakeChat:
    def __init__(self) -> None:
        self.calls: list[tuple[str, Optional[str], Optional[str]]] = []
        self.error: Optional[Exception] = None

    async def respond(self, message: str, language: Optional[str] = None, system_prompt: Optional[str] = None) -> ChatReply:
        self.calls.append((message, language, system_prompt))
        if self.error is not None:
            raise self.error
        return ChatReply(message=f"reply to {message}", model="fake", response_language=language, latency_s=0.2)


class _FakeCapture:
    sample_rate = 16000
    channels = 1

    def request_permission(self) -> bool:
        return True

    def start(self) -> None:
        pass

    def stop(self) -> np.ndarray:
        return np.full(1600, 0.1, dtype=np.float32)

    def abort(self) -> None:
        pass


def _payload() -> AudioPayload:
    return AudioPayload(data=b"RIFF....", mime_type="audio/wav", filename="audio.wav")


class FalsePositiveTests(unittest.TestCase):
    def test_filter(self) -> None:
        self.assertTrue(is_false_positive(" Thank you. "))
        self.assertTrue(is_false_positive("a"))
        self.assertFalse(is_false_positive("thank you for the help"))


class VoicePipelineTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.metrics = VoiceMetricsReporter(
            True, str(self.root / "metrics.jsonl"), str(self.root / "summary.json")
        )
        self.metrics.start_session()
        self.transcriber = _FakeTranscriber()
        self.chat = _FakeChat()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _metric_events(self) -> list[dict]:
        lines = (self.root / "metrics.jsonl").read_text(encoding="utf-8").splitlines()
        return [json.loads(line) for line in lines]

    def test_voice_input_is_answered_in_detected_language(self) -> None:
        self.transcriber.language = "hi"
        pipeline = VoicePipeline(self.transcriber, self.chat, metrics=self.metrics, language_hint="hi")

        turn = asyncio.run(pipeline.process_voice_input(_payload(), system_prompt="custom"))

        self.assertEqual(turn.transcript, "I want a job in data science")
        self.assertEqual(turn.reply, "reply to I want a job in data science")
        self.assertEqual(turn.language, "hi")
        self.assertEqual(self.chat.calls, [("I want a job in data science", "hi", "custom")])
        self.assertEqual(self.transcriber.hints, ["hi"])
        self.assertEqual(self._metric_events()[0]["event_type"], "turn")

    def test_false_positive_transcript_is_rejected(self) -> None:
        self.transcriber.text = "Thank you."
        pipeline = VoicePipeline(self.transcriber, self.chat, metrics=self.metrics)

        with self.assertRaises(VoiceServiceError) as ctx:
            asyncio.run(pipeline.process_voice_input(_payload()))

        self.assertEqual(ctx.exception.kind, VoiceErrorKind.NO_SPEECH_DETECTED)
        self.assertEqual(self.chat.calls, [])
        self.assertEqual(self._metric_events()[0]["kind"], "NO_SPEECH_DETECTED")

    def test_unexpected_transcriber_error_is_wrapped(self) -> None:
        self.transcriber.error = RuntimeError("socket closed")
        pipeline = VoicePipeline(self.transcriber, self.chat)

        with self.assertRaises(VoiceServiceError) as ctx:
            asyncio.run(pipeline.transcribe(_payload()))

        self.assertEqual(ctx.exception.kind, VoiceErrorKind.TRANSCRIPTION_FAILED)
        self.assertIsInstance(ctx.exception.cause, RuntimeError)

    def test_chat_failure_is_recorded(self) -> None:
        self.chat.error = VoiceServiceError(VoiceErrorKind.CHAT_FAILED, "No response generated")
        pipeline = VoicePipeline(self.transcriber, self.chat, metrics=self.metrics)

        with self.assertRaises(VoiceServiceError):
            asyncio.run(pipeline.process_voice_input(_payload()))

        event = self._metric_events()[0]
        self.assertEqual(event["stage"], "chat")
        self.assertEqual(event["kind"], "CHAT_FAILED")

    def test_chat_not_configured(self) -> None:
        pipeline = VoicePipeline(self.transcriber)
        with self.assertRaises(VoiceServiceError) as ctx:
            asyncio.run(pipeline.process_voice_input(_payload()))
        self.assertEqual(ctx.exception.kind, VoiceErrorKind.API_KEY_MISSING)

    def test_process_file(self) -> None:
        path = self.root / "question.m4a"
        path.write_bytes(b"fake-m4a")
        pipeline = VoicePipeline(self.transcriber, self.chat)

        turn = asyncio.run(pipeline.process_file(path))

        self.assertEqual(turn.transcription.text, self.transcriber.text)

    def test_process_file_keeps_the_input_file(self) -> None:
        path = self.root / "question.wav"
        path.write_bytes(b"RIFF....WAVEfmt ")
        service = WhisperTranscriptionService(api_key="test-key")
        service._client.audio.transcriptions.create = AsyncMock(
            return_value={"text": "I want a job in data science", "language": "english"}
        )
        pipeline = VoicePipeline(service, self.chat)

        turn = asyncio.run(pipeline.process_file(path))

        self.assertEqual(turn.transcript, "I want a job in data science")
        self.assertTrue(path.exists())
        self.assertEqual(path.read_bytes(), b"RIFF....WAVEfmt ")

    def test_respond_to_transcript_records_turn(self) -> None:
        pipeline = VoicePipeline(self.transcriber, self.chat, metrics=self.metrics)
        transcription = TranscriptionResult(
            text="मुझे नौकरी चाहिए",
            raw_language_tag="hindi",
            detected_language="hi",
            language_confidence=0.9,
            latency_s=0.3,
        )

        turn = asyncio.run(pipeline.respond_to_transcript(transcription))

        self.assertTrue(pipeline.has_chat)
        self.assertEqual(turn.reply, "reply to मुझे नौकरी चाहिए")
        self.assertEqual(self.chat.calls, [("मुझे नौकरी चाहिए", "hi", None)])
        event = self._metric_events()[0]
        self.assertEqual(event["event_type"], "turn")
        self.assertEqual(event["language"], "hi")

    def test_stop_and_respond_completes_controller(self) -> None:
        controller = RecordingController(
            _FakeCapture(), packager=AudioPackager(probe=lambda fmt: False), temp_dir=self._tmp.name
        )
        pipeline = VoicePipeline(self.transcriber, self.chat, controller=controller)

        async def run():
            await controller.start_recording()
            return await pipeline.stop_and_respond()

        turn = asyncio.run(run())

        self.assertIsNotNone(turn)
        self.assertEqual(controller.status, RecordingStatus.COMPLETED)

    def test_transcribe_only_failure_moves_controller_to_error(self) -> None:
        self.transcriber.error = VoiceServiceError(VoiceErrorKind.NETWORK_ERROR, "Request timed out")
        controller = RecordingController(
            _FakeCapture(), packager=AudioPackager(probe=lambda fmt: False), temp_dir=self._tmp.name
        )
        pipeline = VoicePipeline(self.transcriber, controller=controller)

        async def run() -> None:
            await controller.start_recording()
            await pipeline.transcribe_only()

        with self.assertRaises(VoiceServiceError):
            asyncio.run(run())
        self.assertEqual(controller.status, RecordingStatus.ERROR)
        self.assertEqual(controller.last_error.kind, VoiceErrorKind.NETWORK_ERROR)

    def test_transcribe_only_without_active_recording(self) -> None:
        controller = RecordingController(_FakeCapture(), packager=AudioPackager(probe=lambda fmt: False))
        pipeline = VoicePipeline(self.transcriber, controller=controller)
        self.assertIsNone(asyncio.run(pipeline.transcribe_only()))


if __name__ == "__main__":
    unittest.main()
