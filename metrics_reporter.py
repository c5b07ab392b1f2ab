from __future__ import annotations

import json
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any, Optional


def _percentile(values: list[float], ratio: float) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    if len(ordered) == 1:
        return ordered[0]
    index = (len(ordered) - 1) * ratio
    lower = int(index)
    upper = min(lower + 1, len(ordered) - 1)
    weight = index - lower
    return ordered[lower] * (1.0 - weight) + ordered[upper] * weight


class VoiceMetricsReporter:
    """Appends one JSON line per voice turn or failure and writes a session summary."""

    def __init__(self, enabled: bool, output_path: str, summary_path: str) -> None:
        self._enabled = enabled
        self._output_path = Path(output_path)
        self._summary_path = Path(summary_path)
        self._session_started_at: Optional[datetime] = None
        self._transcription_latencies: list[float] = []
        self._chat_latencies: list[float] = []
        self._languages: Counter[str] = Counter()
        self._turns = 0
        self._errors: Counter[str] = Counter()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def start_session(self) -> None:
        if not self._enabled:
            return
        self._session_started_at = datetime.now()
        self._transcription_latencies.clear()
        self._chat_latencies.clear()
        self._languages.clear()
        self._errors.clear()
        self._turns = 0
        self._ensure_parent_dirs()
        self._output_path.write_text("", encoding="utf-8")

    def record_turn(
        self,
        language: str,
        confidence: float,
        transcription_latency_s: float,
        chat_latency_s: float = 0.0,
        transcript_chars: int = 0,
    ) -> None:
        if not self._enabled:
            return
        self._turns += 1
        self._languages[language] += 1
        self._transcription_latencies.append(transcription_latency_s)
        if chat_latency_s > 0:
            self._chat_latencies.append(chat_latency_s)
        self._append_jsonl(
            {
                "event_type": "turn",
                "recorded_at": datetime.now().isoformat(timespec="milliseconds"),
                "language": language,
                "language_confidence": confidence,
                "transcription_latency_s": transcription_latency_s,
                "chat_latency_s": chat_latency_s,
                "transcript_chars": transcript_chars,
            }
        )

    def record_error(self, stage: str, kind: str, message: str) -> None:
        if not self._enabled:
            return
        self._errors[kind] += 1
        self._append_jsonl(
            {
                "event_type": "error",
                "recorded_at": datetime.now().isoformat(timespec="milliseconds"),
                "stage": stage,
                "kind": kind,
                "message": message,
            }
        )

    def finalize_session(self) -> dict[str, Any]:
        if not self._enabled:
            return {}
        now = datetime.now()
        started = self._session_started_at or now
        error_events = sum(self._errors.values())
        summary = {
            "session_started_at": started.isoformat(timespec="milliseconds"),
            "session_ended_at": now.isoformat(timespec="milliseconds"),
            "session_duration_s": max(0.0, (now - started).total_seconds()),
            "turns": self._turns,
            "error_events": error_events,
            "errors_by_kind": dict(self._errors),
            "error_rate_pct": (error_events / max(1, self._turns + error_events)) * 100.0,
            "languages": dict(self._languages),
            "transcription_p50_s": _percentile(self._transcription_latencies, 0.50),
            "transcription_p95_s": _percentile(self._transcription_latencies, 0.95),
            "chat_p50_s": _percentile(self._chat_latencies, 0.50),
            "chat_p95_s": _percentile(self._chat_latencies, 0.95),
        }
        self._write_summary(summary)
        return summary

    def _ensure_parent_dirs(self) -> None:
        self._output_path.parent.mkdir(parents=True, exist_ok=True)
        self._summary_path.parent.mkdir(parents=True, exist_ok=True)

    def _append_jsonl(self, payload: dict[str, Any]) -> None:
        self._ensure_parent_dirs()
        with self._output_path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload, ensure_ascii=False))
            handle.write("\n")

    def _write_summary(self, summary: dict[str, Any]) -> None:
        self._ensure_parent_dirs()
        with self._summary_path.open("w", encoding="utf-8") as handle:
            json.dump(summary, handle, ensure_ascii=False, indent=2)
