from __future__ import annotations

import logging
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Optional

from openai import AsyncOpenAI

from config_utils import DEFAULT_API_BASE_URL, read_api_key
from language_detection import normalize_language_tag
from language_tables import (
    BASE_LANGUAGE,
    CAREER_GUIDANCE_PROMPT,
    LOCALIZED_SYSTEM_PROMPTS,
    REPLY_LANGUAGE_INSTRUCTION,
    SUPPORTED_LANGUAGES,
)
from voice_errors import VoiceErrorKind, VoiceServiceError, classify_api_error


@dataclass
class ChatReply:
    message: str
    model: str
    usage: dict[str, Any] = field(default_factory=dict)
    response_language: Optional[str] = None
    latency_s: float = 0.0


def build_messages(
    message: str,
    language: Optional[str] = None,
    system_prompt: Optional[str] = None,
) -> list[dict[str, str]]:
    """System prompt(s) followed by the user turn.

    A caller-supplied prompt wins over the localized one, and English is the
    last resort. Any supported Indian language also gets an explicit
    reply-in-kind instruction, even when the prompt was custom.
    """
    code = normalize_language_tag(language) or BASE_LANGUAGE
    if system_prompt:
        prompt = system_prompt
    else:
        prompt = LOCALIZED_SYSTEM_PROMPTS.get(code, CAREER_GUIDANCE_PROMPT)
    messages = [{"role": "system", "content": prompt}]
    profile = SUPPORTED_LANGUAGES.get(code)
    if profile is not None:
        messages.append(
            {
                "role": "system",
                "content": REPLY_LANGUAGE_INSTRUCTION.format(name=profile.name, native_name=profile.native_name),
            }
        )
    messages.append({"role": "user", "content": message})
    return messages


class CareerChatService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "llama-3.1-8b-instant",
        base_url: str = DEFAULT_API_BASE_URL,
        timeout_s: float = 60.0,
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> None:
        key = api_key or read_api_key()
        if not key:
            raise VoiceServiceError(VoiceErrorKind.API_KEY_MISSING, "Chat API key not configured")
        self._client = AsyncOpenAI(api_key=key, base_url=base_url, timeout=timeout_s, max_retries=0)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    @property
    def model(self) -> str:
        return self._model

    async def respond(
        self,
        message: str,
        language: Optional[str] = None,
        system_prompt: Optional[str] = None,
    ) -> ChatReply:
        started = perf_counter()
        messages = build_messages(message, language, system_prompt)
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                top_p=1,
                stream=False,
            )
        except Exception as exc:  # noqa: BLE001 - API boundary
            raise classify_api_error(exc, VoiceErrorKind.CHAT_FAILED, service="chat") from exc

        choices = getattr(response, "choices", None) or []
        if not choices:
            raise VoiceServiceError(VoiceErrorKind.CHAT_FAILED, "No response generated")
        content = (getattr(choices[0].message, "content", None) or "").strip()
        if not content:
            raise VoiceServiceError(VoiceErrorKind.CHAT_FAILED, "No response generated")

        reply = ChatReply(
            message=content,
            model=str(getattr(response, "model", None) or self._model),
            usage=self._usage_dict(getattr(response, "usage", None)),
            response_language=language,
            latency_s=perf_counter() - started,
        )
        logging.info(
            "chat_done model=%s language=%s latency_s=%.2f chars=%s",
            reply.model,
            language,
            reply.latency_s,
            len(content),
        )
        return reply

    async def complete_json(self, system_prompt: str, user_prompt: str, temperature: float = 0.7) -> str:
        """Raw completion used by the profile enhancer; JSON mode on."""
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=self._max_tokens,
                response_format={"type": "json_object"},
            )
        except Exception as exc:  # noqa: BLE001 - API boundary
            raise classify_api_error(exc, VoiceErrorKind.CHAT_FAILED, service="chat") from exc
        choices = getattr(response, "choices", None) or []
        if not choices:
            raise VoiceServiceError(VoiceErrorKind.CHAT_FAILED, "No response generated")
        return (getattr(choices[0].message, "content", None) or "").strip()

    @staticmethod
    def _usage_dict(usage: Any) -> dict[str, Any]:
        if usage is None:
            return {}
        if isinstance(usage, dict):
            return dict(usage)
        if hasattr(usage, "model_dump"):
            return usage.model_dump()
        return {
            key: getattr(usage, key)
            for key in ("prompt_tokens", "completion_tokens", "total_tokens")
            if hasattr(usage, key)
        }
