"""Script- and lexicon-based resolution of the spoken language of a transcript.

Whisper's own language tag is a useful hint but regularly confuses Indian
languages that share a script. ``disambiguate`` combines the tag with the
Unicode script of the transcript and small per-language word lists to settle
on one language code plus a confidence score. The function is pure: the same
``(text, upstream_tag)`` always yields the same ``LanguageDetection``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from language_tables import (
    BASE_LANGUAGE,
    DISPLAY_NAMES,
    LANGUAGE_NAME_ALIASES,
    LANGUAGE_PROFILES,
    SCRIPT_RANGES,
    SHARED_SCRIPT_CANDIDATES,
    SUPPORTED_LANGUAGES,
    LanguageProfile,
)

TRUSTED_TAG_CONFIDENCE = 0.9
SCRIPT_CONFIDENCE = 0.95
SHARED_SCRIPT_DEFAULT_CONFIDENCE = 0.7
SHARED_SCRIPT_BASE_CONFIDENCE = 0.6
SHARED_SCRIPT_STEP = 0.1
SHARED_SCRIPT_MAX_CONFIDENCE = 0.9
AMBIGUOUS_TAG_CONFIDENCE = 0.6
UNAMBIGUOUS_TAG_CONFIDENCE = 0.8
NO_SIGNAL_CONFIDENCE = 0.5


@dataclass(frozen=True)
class LanguageDetection:
    language: str
    confidence: float


def normalize_language_tag(tag: Optional[str]) -> Optional[str]:
    """Map ``hi``, ``hi-IN``, ``Hindi`` and similar spellings to a bare code."""
    raw = (tag or "").strip().lower().replace("_", "-")
    if not raw or raw in {"unknown", "auto"}:
        return None
    if raw in LANGUAGE_NAME_ALIASES:
        return LANGUAGE_NAME_ALIASES[raw]
    return raw.split("-", 1)[0]


def disambiguate(text: str, upstream_tag: Optional[str] = None) -> LanguageDetection:
    tag = normalize_language_tag(upstream_tag)
    if tag in SUPPORTED_LANGUAGES:
        return LanguageDetection(tag, TRUSTED_TAG_CONFIDENCE)

    content = text or ""
    for script in SCRIPT_RANGES:
        if not script.pattern.search(content):
            continue
        if script.name in SHARED_SCRIPT_CANDIDATES:
            return _score_shared_script(content, script.name)
        return LanguageDetection(script.language, SCRIPT_CONFIDENCE)

    if tag:
        return LanguageDetection(tag, _grade_unsupported_tag(tag))
    return LanguageDetection(BASE_LANGUAGE, NO_SIGNAL_CONFIDENCE)


def _score_shared_script(text: str, script_name: str) -> LanguageDetection:
    candidates = SHARED_SCRIPT_CANDIDATES[script_name]
    best_language, _ = candidates[0]
    best_score = 0
    for language, patterns in candidates:
        score = sum(1 for pattern in patterns if pattern.search(text))
        # Strictly greater keeps the earlier (more common) language on ties.
        if score > best_score:
            best_language, best_score = language, score
    if best_score == 0:
        return LanguageDetection(candidates[0][0], SHARED_SCRIPT_DEFAULT_CONFIDENCE)
    confidence = min(
        SHARED_SCRIPT_MAX_CONFIDENCE,
        SHARED_SCRIPT_BASE_CONFIDENCE + SHARED_SCRIPT_STEP * best_score,
    )
    return LanguageDetection(best_language, round(confidence, 2))


def _grade_unsupported_tag(tag: str) -> float:
    profile = LANGUAGE_PROFILES.get(tag)
    if profile is not None and profile.similar:
        return AMBIGUOUS_TAG_CONFIDENCE
    return UNAMBIGUOUS_TAG_CONFIDENCE


def get_language_info(code: Optional[str]) -> Optional[LanguageProfile]:
    normalized = normalize_language_tag(code)
    if normalized is None:
        return None
    return LANGUAGE_PROFILES.get(normalized)


def supported_languages() -> Mapping[str, LanguageProfile]:
    return SUPPORTED_LANGUAGES


def is_supported_language(code: Optional[str]) -> bool:
    return normalize_language_tag(code) in SUPPORTED_LANGUAGES


def language_name(code: Optional[str]) -> str:
    raw = (code or "").strip().lower()
    if not raw:
        return DISPLAY_NAMES["unknown"]
    if raw in DISPLAY_NAMES:
        return DISPLAY_NAMES[raw]
    normalized = normalize_language_tag(raw)
    if normalized and normalized in DISPLAY_NAMES:
        return DISPLAY_NAMES[normalized]
    return f"{raw.upper()} (Auto-detected)"
