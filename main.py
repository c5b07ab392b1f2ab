from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Awaitable, Callable, Optional

from dotenv import load_dotenv
from PyQt6.QtWidgets import QApplication
from qasync import QEventLoop

from audio_listener import MicrophoneCapture
from audio_packaging import AudioPackager
from chat_service import CareerChatService
from community_search import CommunitySearchClient, CommunitySearchError
from config_utils import VoiceSettings
from language_detection import language_name
from metrics_reporter import VoiceMetricsReporter
from overlay_ui import VoiceOverlayWindow
from profile_enhancer import ProfileEnhancer
from recording_controller import RecordingController, RecordingSession, RecordingStatus
from transcription_service import TranscriptionResult, WhisperTranscriptionService
from voice_errors import VoiceErrorKind, VoiceServiceError, user_message
from voice_pipeline import VoicePipeline


def build_transcriber(settings: VoiceSettings) -> WhisperTranscriptionService:
    return WhisperTranscriptionService(
        api_key=settings.api_key,
        model=settings.transcription_model,
        base_url=settings.api_base_url,
        timeout_s=settings.http_timeout_s,
        language_detection_enabled=settings.language_detection_enabled,
        cleanup_after_transcription=settings.cleanup_after_transcription,
    )


def build_chat(settings: VoiceSettings) -> CareerChatService:
    return CareerChatService(
        api_key=settings.api_key,
        model=settings.chat_model,
        base_url=settings.api_base_url,
        timeout_s=settings.http_timeout_s,
        max_tokens=settings.chat_max_tokens,
    )


class VoiceOverlayController:
    def __init__(
        self,
        ui: VoiceOverlayWindow,
        settings: Optional[VoiceSettings] = None,
        recorder: Optional[RecordingController] = None,
        pipeline: Optional[VoicePipeline] = None,
    ) -> None:
        self.ui = ui
        self.settings = settings or VoiceSettings.from_env()
        self.packager = AudioPackager()
        self.recorder = recorder or RecordingController(
            MicrophoneCapture(preferred_device=os.getenv("AUDIO_INPUT_DEVICE")),
            packager=self.packager,
            max_duration_s=self.settings.max_recording_s,
            tick_interval_s=self.settings.tick_interval_s,
        )
        self.recorder.on_status_change = self._on_status_change
        self.recorder.on_tick = self._on_tick
        self.recorder.on_auto_stop = self._on_auto_stop
        self.metrics_reporter = VoiceMetricsReporter(
            enabled=self.settings.metrics_enabled,
            output_path=self.settings.metrics_output_path,
            summary_path=self.settings.metrics_summary_path,
        )
        self.metrics_reporter.start_session()
        self.pipeline = pipeline
        self.last_transcript: Optional[TranscriptionResult] = None
        self._last_language: Optional[str] = self.settings.language_hint
        # Bumped on close and on each new recording so late results are dropped.
        self._epoch = 0
        self._tasks: set[asyncio.Task[None]] = set()
        self.on_closed: Optional[Callable[[], None]] = None

        self.ui.start_requested.connect(self._on_start_requested)
        self.ui.stop_requested.connect(self._on_stop_requested)
        self.ui.retry_requested.connect(self._on_retry_requested)
        self.ui.close_requested.connect(self._on_close_requested)
        self.ui.set_status(self.recorder.status)

    async def start_recording(self) -> None:
        self._epoch += 1
        epoch = self._epoch
        try:
            self._ensure_pipeline()
            self.recorder.reset()
            await self.recorder.start_recording()
        except VoiceServiceError as exc:
            if epoch == self._epoch:
                self._report_error(exc)

    async def stop_and_transcribe(self) -> None:
        epoch = self._epoch
        if self.pipeline is None:
            return
        try:
            result = await self.pipeline.transcribe_only()
        except VoiceServiceError as exc:
            if epoch == self._epoch:
                self._report_error(exc)
            return
        if result is not None and epoch == self._epoch:
            self._deliver(result)
            await self.reply_to(result, epoch)

    async def transcribe_session(self, session: RecordingSession) -> None:
        epoch = self._epoch
        if self.pipeline is None or session.payload is None:
            return
        try:
            result = await self.pipeline.transcribe_session_payload(session.payload)
        except VoiceServiceError as exc:
            if epoch == self._epoch:
                self._report_error(exc)
            return
        if epoch == self._epoch:
            self._deliver(result)
            await self.reply_to(result, epoch)

    async def reply_to(self, result: TranscriptionResult, epoch: int) -> None:
        if self.pipeline is None or not self.pipeline.has_chat:
            return
        try:
            turn = await self.pipeline.respond_to_transcript(result)
        except VoiceServiceError as exc:
            if epoch == self._epoch:
                logging.warning("overlay_reply_failed kind=%s error=%s", exc.kind.value, exc.message)
                self.ui.show_error(user_message(exc, result.detected_language))
            return
        if epoch == self._epoch:
            self.ui.show_reply(turn.reply)
            self.ui.reply_ready.emit(turn.reply)

    def open(self) -> None:
        self.ui.set_status(self.recorder.status)
        self.ui.set_elapsed(self.recorder.elapsed_seconds)
        self.ui.show()

    def shutdown_sync(self) -> None:
        self._dismiss()
        summary = self.metrics_reporter.finalize_session()
        if summary:
            logging.info("metrics_session_summary %s", summary)

    def _dismiss(self) -> None:
        self._epoch += 1
        self.recorder.cancel_recording()
        for task in list(self._tasks):
            if not task.done():
                task.cancel()

    def _ensure_pipeline(self) -> None:
        if self.pipeline is None:
            self.pipeline = VoicePipeline(
                build_transcriber(self.settings),
                build_chat(self.settings),
                packager=self.packager,
                controller=self.recorder,
                metrics=self.metrics_reporter,
                language_hint=self.settings.language_hint,
            )

    def _deliver(self, result: TranscriptionResult) -> None:
        self.last_transcript = result
        self._last_language = result.detected_language
        self.ui.show_transcript(result.text, language_name(result.detected_language))
        self.ui.transcription_ready.emit(result.text)

    def _report_error(self, error: VoiceServiceError) -> None:
        logging.warning("overlay_error kind=%s error=%s", error.kind.value, error.message)
        self.ui.set_status(RecordingStatus.ERROR)
        self.ui.show_error(user_message(error, self._last_language))

    def _schedule(self, coro: Awaitable[None], name: str) -> None:
        task = asyncio.ensure_future(coro)
        task.set_name(name)
        self._tasks.add(task)

        def _finalize(done_task: asyncio.Task[None]) -> None:
            self._tasks.discard(done_task)
            if done_task.cancelled():
                return
            exc = done_task.exception()
            if exc is not None:
                logging.error("overlay_task_failed name=%s error=%s", name, exc)
                self._report_error(
                    VoiceServiceError(VoiceErrorKind.TRANSCRIPTION_FAILED, f"Unexpected failure: {exc}", exc)
                )

        task.add_done_callback(_finalize)

    def _on_start_requested(self) -> None:
        self._schedule(self.start_recording(), "start-recording")

    def _on_stop_requested(self) -> None:
        if self.pipeline is None:
            return
        self._schedule(self.stop_and_transcribe(), "stop-recording")

    def _on_retry_requested(self) -> None:
        self.recorder.reset()
        self.ui.clear_messages()
        self.ui.set_elapsed(0)
        self.ui.set_status(self.recorder.status)

    def _on_close_requested(self) -> None:
        self._dismiss()
        self.ui.clear_messages()
        self.ui.set_elapsed(0)
        self.ui.hide()
        if self.on_closed is not None:
            self.on_closed()

    def _on_status_change(self, old_status: RecordingStatus, new_status: RecordingStatus) -> None:
        del old_status
        self.ui.set_status(new_status)

    def _on_tick(self, elapsed: float) -> None:
        self.ui.set_elapsed(elapsed)

    def _on_auto_stop(self, session: RecordingSession) -> None:
        self._schedule(self.transcribe_session(session), "auto-stop-transcription")


async def respond_to_file(path: str, settings: VoiceSettings) -> None:
    pipeline = VoicePipeline(
        build_transcriber(settings),
        build_chat(settings),
        language_hint=settings.language_hint,
    )
    turn = await pipeline.process_file(path)
    print(f"[{language_name(turn.language)} {turn.confidence:.2f}] {turn.transcript}")
    print(turn.reply)


async def enhance_profile_file(path: str, settings: VoiceSettings) -> dict:
    with open(path, "r", encoding="utf-8") as handle:
        profile = json.load(handle)
    enhancer = ProfileEnhancer(build_chat(settings))
    return await enhancer.enhance_and_merge(profile)


async def search_communities(query: str, settings: VoiceSettings) -> None:
    client = CommunitySearchClient(timeout_s=settings.http_timeout_s)
    for community in await client.search(query):
        print(f"r/{community.display_name} ({community.subscribers}) {community.description}")


def main() -> None:
    load_dotenv()
    log_level_name = (os.getenv("LOG_LEVEL", "INFO") or "INFO").upper()
    log_level = getattr(logging, log_level_name, logging.INFO)
    logging.basicConfig(level=log_level, format="%(asctime)s %(levelname)s %(message)s")

    parser = argparse.ArgumentParser(description="Voice career assistant overlay")
    parser.add_argument("--file", help="transcribe an existing audio file and print the assistant reply")
    parser.add_argument("--enhance-profile", help="enhance a career profile JSON file and print the result")
    parser.add_argument("--search-communities", metavar="QUERY", help="list career communities matching QUERY")
    args = parser.parse_args()
    settings = VoiceSettings.from_env()

    if args.enhance_profile:
        try:
            enhanced = asyncio.run(enhance_profile_file(args.enhance_profile, settings))
        except (OSError, ValueError, VoiceServiceError) as exc:
            logging.error("profile_enhancement_failed error=%s", exc)
            sys.exit(1)
        print(json.dumps(enhanced, ensure_ascii=False, indent=2))
        return

    if args.search_communities is not None:
        try:
            asyncio.run(search_communities(args.search_communities, settings))
        except (ValueError, CommunitySearchError) as exc:
            logging.error("community_search_failed error=%s", exc)
            sys.exit(1)
        return

    if args.file:
        try:
            asyncio.run(respond_to_file(args.file, settings))
        except VoiceServiceError as exc:
            logging.error("voice_file_failed kind=%s error=%s", exc.kind.value, exc.message)
            print(user_message(exc, settings.language_hint), file=sys.stderr)
            sys.exit(1)
        return

    app = QApplication(sys.argv)
    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)

    overlay = VoiceOverlayWindow()
    controller = VoiceOverlayController(overlay, settings)
    overlay.transcription_ready.connect(lambda text: logging.info("transcription_ready chars=%s", len(text)))
    overlay.reply_ready.connect(lambda text: logging.info("reply_ready chars=%s", len(text)))
    controller.on_closed = app.quit
    app.aboutToQuit.connect(controller.shutdown_sync)
    controller.open()

    with loop:
        loop.run_forever()


if __name__ == "__main__":
    main()
