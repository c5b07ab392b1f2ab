from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Protocol, TypeVar

from voice_errors import VoiceServiceError

T = TypeVar("T")

ENHANCER_SYSTEM_PROMPT = "You are a professional resume writer. Always respond with valid JSON only, no additional text or formatting."

ENHANCER_PROMPT_TEMPLATE = """\
You are a professional resume writer and career counselor. Based on the following profile information, enhance the profile with detailed, professional content. Generate realistic and relevant information based on the provided data.

Profile Data:
{profile_json}

Please respond with a JSON object following this exact structure:
{{
  "summary": "A 3-4 sentence professional summary highlighting key strengths, experience, and career goals",
  "strengths": ["Strength 1", "Strength 2", "Strength 3", "Strength 4", "Strength 5"],
  "enhanced_education": [
    {{
      "institution": "Same as input",
      "degree": "Same as input",
      "field_of_study": "Relevant field if not provided",
      "description": "2-3 sentences about what was studied and how it applies to career goals"
    }}
  ],
  "enhanced_experience": [
    {{
      "company": "Same as input",
      "position": "Same as input",
      "description": "2-3 sentences about key learnings, skills developed and impact made in this role",
      "skills_used": ["Skill 1", "Skill 2", "Skill 3"],
      "key_projects": ["Project 1", "Project 2"]
    }}
  ]
}}

Guidelines:
- Keep descriptions professional and concise
- Focus on transferable skills and learning outcomes
- If experience is limited, focus on potential, academic projects, and foundational skills
- Do not invent specific company details, dates, or unrealistic achievements
"""

DEFAULT_STRENGTHS = ("Problem Solving", "Communication", "Teamwork", "Adaptability", "Leadership")


class JsonCompleter(Protocol):
    async def complete_json(self, system_prompt: str, user_prompt: str, temperature: float = 0.7) -> str: ...


@dataclass
class ProfileEnhancement:
    summary: str
    strengths: list[str]
    enhanced_education: list[dict[str, Any]] = field(default_factory=list)
    enhanced_experience: list[dict[str, Any]] = field(default_factory=list)
    generated: bool = True


async def call_with_retries(
    operation: Callable[[], Awaitable[T]],
    attempts: int = 3,
    base_delay_s: float = 1.0,
) -> T:
    """Run ``operation`` until it succeeds, backing off linearly between tries.

    Only retryable ``VoiceServiceError`` kinds are retried; anything else
    propagates on the first failure.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except VoiceServiceError as exc:
            if not exc.retryable or attempt >= attempts:
                raise
            logging.info("retrying attempt=%s kind=%s error=%s", attempt, exc.kind.value, exc.message)
            await asyncio.sleep(base_delay_s * attempt)


def fallback_enhancement(profile: dict[str, Any]) -> ProfileEnhancement:
    skills = [str(skill) for skill in profile.get("skills") or [] if str(skill).strip()]
    focus = ", ".join(skills[:3]) or "various fields"
    name = str(profile.get("name") or "This candidate").strip()
    return ProfileEnhancement(
        summary=(
            f"{name} is a dedicated professional with experience in {focus}. "
            "Committed to continuous learning and delivering high-quality results."
        ),
        strengths=skills[:5] or list(DEFAULT_STRENGTHS),
        enhanced_education=list(profile.get("education") or []),
        enhanced_experience=list(profile.get("experience") or []),
        generated=False,
    )


def filter_valid_entries(entries: Any, required_fields: tuple[str, ...]) -> list[dict[str, Any]]:
    if not isinstance(entries, list):
        return []
    return [
        entry
        for entry in entries
        if isinstance(entry, dict) and any(str(entry.get(name) or "").strip() for name in required_fields)
    ]


def _dict_entries(entries: Any) -> list[dict[str, Any]]:
    if not isinstance(entries, list):
        return []
    return [entry if isinstance(entry, dict) else {} for entry in entries]


def merge_profile(profile: dict[str, Any], enhancement: ProfileEnhancement) -> dict[str, Any]:
    education = []
    for index, entry in enumerate(profile.get("education") or []):
        extra = enhancement.enhanced_education[index] if index < len(enhancement.enhanced_education) else {}
        education.append(
            {
                **entry,
                "description": extra.get("description") or entry.get("description"),
                "field_of_study": extra.get("field_of_study") or entry.get("field_of_study"),
            }
        )
    experience = []
    for index, entry in enumerate(profile.get("experience") or []):
        extra = enhancement.enhanced_experience[index] if index < len(enhancement.enhanced_experience) else {}
        experience.append(
            {
                **entry,
                "description": extra.get("description") or entry.get("description"),
                "skills_used": extra.get("skills_used") or entry.get("skills_used") or [],
                "key_projects": extra.get("key_projects") or entry.get("key_projects") or [],
            }
        )
    return {
        **profile,
        "education": filter_valid_entries(education, ("institution", "degree")),
        "experience": filter_valid_entries(experience, ("company", "position")),
        "skills": list(profile.get("skills") or []),
        "summary": enhancement.summary,
        "strengths": list(enhancement.strengths),
    }


class ProfileEnhancer:
    def __init__(self, completer: JsonCompleter, attempts: int = 3, base_delay_s: float = 1.0) -> None:
        self._completer = completer
        self._attempts = attempts
        self._base_delay_s = base_delay_s

    async def enhance(self, profile: dict[str, Any]) -> ProfileEnhancement:
        prompt = ENHANCER_PROMPT_TEMPLATE.format(profile_json=json.dumps(self._prompt_fields(profile), indent=2))
        try:
            raw = await call_with_retries(
                lambda: self._completer.complete_json(ENHANCER_SYSTEM_PROMPT, prompt),
                attempts=self._attempts,
                base_delay_s=self._base_delay_s,
            )
            return self._parse(raw)
        except (VoiceServiceError, ValueError) as exc:  # graceful fallback
            logging.warning("profile_enhancement_fallback error=%s", exc)
            return fallback_enhancement(profile)

    async def enhance_and_merge(self, profile: dict[str, Any]) -> dict[str, Any]:
        name = str(profile.get("name") or "").strip()
        email = str(profile.get("email") or "").strip()
        if not name or not email:
            raise ValueError("Name and email are required")
        enhancement = await self.enhance(profile)
        return merge_profile(profile, enhancement)

    @staticmethod
    def _prompt_fields(profile: dict[str, Any]) -> dict[str, Any]:
        return {
            "name": profile.get("name", ""),
            "education": profile.get("education") or [],
            "experience": profile.get("experience") or [],
            "skills": profile.get("skills") or [],
            "certifications": profile.get("certifications") or [],
        }

    @staticmethod
    def _parse(raw: str) -> ProfileEnhancement:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("Enhancement response is not a JSON object")
        summary = str(data.get("summary") or "").strip()
        strengths = [str(item) for item in data.get("strengths") or [] if str(item).strip()]
        if not summary or not strengths:
            raise ValueError("Enhancement response is missing summary or strengths")
        return ProfileEnhancement(
            summary=summary,
            strengths=strengths,
            enhanced_education=_dict_entries(data.get("enhanced_education")),
            enhanced_experience=_dict_entries(data.get("enhanced_experience")),
        )
