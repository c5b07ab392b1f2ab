from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_API_BASE_URL = "https://api.groq.com/openai/v1"


def read_float_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def read_int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def read_bool_env(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    return default


def read_str_env(name: str, default: str) -> str:
    return (os.getenv(name) or "").strip() or default


def read_api_key() -> Optional[str]:
    key = (os.getenv("GROQ_API_KEY") or os.getenv("OPENAI_API_KEY") or "").strip()
    return key or None


@dataclass(frozen=True)
class VoiceSettings:
    api_key: Optional[str]
    api_base_url: str = DEFAULT_API_BASE_URL
    transcription_model: str = "whisper-large-v3"
    chat_model: str = "llama-3.1-8b-instant"
    language_hint: Optional[str] = None
    max_recording_s: float = 30.0
    tick_interval_s: float = 1.0
    http_timeout_s: float = 60.0
    cleanup_after_transcription: bool = True
    language_detection_enabled: bool = True
    chat_max_tokens: int = 1024
    metrics_enabled: bool = False
    metrics_output_path: str = "./reports/voice_metrics.jsonl"
    metrics_summary_path: str = "./reports/voice_summary.json"

    @classmethod
    def from_env(cls) -> "VoiceSettings":
        hint = read_str_env("TRANSCRIPTION_LANGUAGE_HINT", "auto").lower()
        return cls(
            api_key=read_api_key(),
            api_base_url=read_str_env("VOICE_API_BASE_URL", DEFAULT_API_BASE_URL),
            transcription_model=read_str_env("TRANSCRIPTION_MODEL", cls.transcription_model),
            chat_model=read_str_env("CHAT_MODEL", cls.chat_model),
            language_hint=None if hint == "auto" else hint,
            max_recording_s=read_float_env("RECORDING_MAX_SECONDS", cls.max_recording_s),
            tick_interval_s=read_float_env("RECORDING_TICK_SECONDS", cls.tick_interval_s),
            http_timeout_s=read_float_env("HTTP_TIMEOUT_SECONDS", cls.http_timeout_s),
            cleanup_after_transcription=read_bool_env("CLEANUP_AFTER_TRANSCRIPTION", True),
            language_detection_enabled=read_bool_env("LANGUAGE_DETECTION_ENABLED", True),
            chat_max_tokens=read_int_env("CHAT_MAX_TOKENS", cls.chat_max_tokens),
            metrics_enabled=read_bool_env("METRICS_ENABLED", False),
            metrics_output_path=read_str_env("METRICS_OUTPUT_PATH", cls.metrics_output_path),
            metrics_summary_path=read_str_env("METRICS_SUMMARY_PATH", cls.metrics_summary_path),
        )
