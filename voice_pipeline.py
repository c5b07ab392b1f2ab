from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from audio_packaging import AudioPackager, AudioPayload
from chat_service import CareerChatService, ChatReply
from metrics_reporter import VoiceMetricsReporter
from recording_controller import RecordingController
from transcription_service import TranscriptionResult, WhisperTranscriptionService
from voice_errors import VoiceErrorKind, VoiceServiceError

# Whisper tends to hallucinate these on silent or near-silent clips.
FALSE_POSITIVE_TRANSCRIPTS = frozenset({"thank you", "thanks", "thank you."})
MIN_TRANSCRIPT_CHARS = 2


@dataclass
class ChatTurn:
    transcript: str
    reply: str
    language: str
    confidence: float
    transcription: TranscriptionResult
    chat: ChatReply


def _unexpected(kind: VoiceErrorKind, exc: BaseException) -> VoiceServiceError:
    return VoiceServiceError(kind, f"Unexpected failure: {exc}", exc)


def is_false_positive(text: str) -> bool:
    lowered = text.strip().lower()
    return lowered in FALSE_POSITIVE_TRANSCRIPTS or len(lowered) < MIN_TRANSCRIPT_CHARS


class VoicePipeline:
    def __init__(
        self,
        transcriber: WhisperTranscriptionService,
        chat: Optional[CareerChatService] = None,
        packager: Optional[AudioPackager] = None,
        controller: Optional[RecordingController] = None,
        metrics: Optional[VoiceMetricsReporter] = None,
        language_hint: Optional[str] = None,
    ) -> None:
        self._transcriber = transcriber
        self._chat = chat
        self._packager = packager or AudioPackager()
        self._controller = controller
        self._metrics = metrics
        self._language_hint = language_hint

    @property
    def controller(self) -> Optional[RecordingController]:
        return self._controller

    @property
    def has_chat(self) -> bool:
        return self._chat is not None

    async def transcribe(self, payload: AudioPayload) -> TranscriptionResult:
        try:
            result = await self._transcriber.transcribe(payload, self._language_hint)
        except VoiceServiceError as exc:
            self._record_failure("transcription", exc)
            raise
        except Exception as exc:  # noqa: BLE001 - stage boundary
            raise self._record_failure("transcription", _unexpected(VoiceErrorKind.TRANSCRIPTION_FAILED, exc)) from exc
        if is_false_positive(result.text):
            logging.info("transcript_filtered text=%r", result.text)
            raise self._record_failure(
                "transcription",
                VoiceServiceError(VoiceErrorKind.NO_SPEECH_DETECTED, "No speech detected. Please try recording again."),
            )
        return result

    async def process_voice_input(self, payload: AudioPayload, system_prompt: Optional[str] = None) -> ChatTurn:
        if self._chat is None:
            raise VoiceServiceError(VoiceErrorKind.API_KEY_MISSING, "Chat service not configured")
        transcription = await self.transcribe(payload)
        return await self.respond_to_transcript(transcription, system_prompt)

    async def respond_to_transcript(
        self, transcription: TranscriptionResult, system_prompt: Optional[str] = None
    ) -> ChatTurn:
        """Answer an already transcribed turn in its detected language and record the turn."""
        if self._chat is None:
            raise VoiceServiceError(VoiceErrorKind.API_KEY_MISSING, "Chat service not configured")
        try:
            reply = await self._chat.respond(transcription.text, transcription.detected_language, system_prompt)
        except VoiceServiceError as exc:
            self._record_failure("chat", exc)
            raise
        except Exception as exc:  # noqa: BLE001 - stage boundary
            raise self._record_failure("chat", _unexpected(VoiceErrorKind.CHAT_FAILED, exc)) from exc

        if self._metrics is not None:
            self._metrics.record_turn(
                language=transcription.detected_language,
                confidence=transcription.language_confidence,
                transcription_latency_s=transcription.latency_s,
                chat_latency_s=reply.latency_s,
                transcript_chars=len(transcription.text),
            )
        return ChatTurn(
            transcript=transcription.text,
            reply=reply.message,
            language=transcription.detected_language,
            confidence=transcription.language_confidence,
            transcription=transcription,
            chat=reply,
        )

    async def process_file(self, path: Path | str, system_prompt: Optional[str] = None) -> ChatTurn:
        try:
            payload = self._packager.load_file(path)
        except VoiceServiceError as exc:
            self._record_failure("packaging", exc)
            raise
        return await self.process_voice_input(payload, system_prompt)

    async def stop_and_respond(self, system_prompt: Optional[str] = None) -> Optional[ChatTurn]:
        payload = await self._stop_controller()
        if payload is None:
            return None
        return await self._finish(self.process_voice_input(payload, system_prompt))

    async def transcribe_only(self) -> Optional[TranscriptionResult]:
        payload = await self._stop_controller()
        if payload is None:
            return None
        return await self._finish(self.transcribe(payload))

    async def transcribe_session_payload(self, payload: AudioPayload) -> TranscriptionResult:
        """Transcribe a payload the controller already finalized (auto-stop path)."""
        return await self._finish(self.transcribe(payload))

    async def _stop_controller(self) -> Optional[AudioPayload]:
        if self._controller is None:
            raise VoiceServiceError(VoiceErrorKind.RECORDING_FAILED, "No recorder attached")
        try:
            session = await self._controller.stop_recording()
        except VoiceServiceError as exc:
            self._record_failure("recording", exc)
            raise
        if session is None or session.payload is None:
            return None
        return session.payload

    async def _finish(self, stage):
        controller = self._controller
        try:
            result = await stage
        except VoiceServiceError as exc:
            if controller is not None:
                controller.fail(exc)
            raise
        if controller is not None:
            controller.complete()
        return result

    def _record_failure(self, stage: str, error: VoiceServiceError) -> VoiceServiceError:
        logging.warning("voice_stage_failed stage=%s kind=%s error=%s", stage, error.kind.value, error.message)
        if self._metrics is not None:
            self._metrics.record_error(stage, error.kind.value, error.message)
        return error
