from __future__ import annotations

import asyncio
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
from openai import APIStatusError

from chat_service import CareerChatService, build_messages
from language_tables import CAREER_GUIDANCE_PROMPT, LOCALIZED_SYSTEM_PROMPTS
from voice_errors import VoiceErrorKind, VoiceServiceError


def _api_status_error(status_code: int, message: str) -> APIStatusError:
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    response = httpx.Response(status_code=status_code, request=request)
    return APIStatusError(message, response=response, body={"error": {"message": message}})


def _completion(content: str | None, model: str = "llama-3.1-8b-instant") -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        model=model,
        usage={"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    )


class BuildMessagesTests(unittest.TestCase):
    def test_english_uses_career_prompt_only(self) -> None:
        messages = build_messages("How do I write a resume?", "en")
        self.assertEqual(len(messages), 2)
        self.assertEqual(messages[0], {"role": "system", "content": CAREER_GUIDANCE_PROMPT})
        self.assertEqual(messages[-1], {"role": "user", "content": "How do I write a resume?"})

    def test_missing_language_defaults_to_english(self) -> None:
        self.assertEqual(build_messages("hi there")[0]["content"], CAREER_GUIDANCE_PROMPT)

    def test_localized_prompt_and_reply_instruction(self) -> None:
        messages = build_messages("வேலை வேண்டும்", "ta-IN")
        self.assertEqual(messages[0]["content"], LOCALIZED_SYSTEM_PROMPTS["ta"])
        self.assertEqual(messages[1]["role"], "system")
        self.assertIn("Tamil", messages[1]["content"])
        self.assertIn("தமிழ்", messages[1]["content"])

    def test_supported_language_without_localized_prompt(self) -> None:
        messages = build_messages("job", "ml")
        self.assertEqual(messages[0]["content"], CAREER_GUIDANCE_PROMPT)
        self.assertIn("Malayalam", messages[1]["content"])
        self.assertEqual(len(messages), 3)

    def test_custom_prompt_wins(self) -> None:
        messages = build_messages("hello", "hi", system_prompt="Be brief.")
        self.assertEqual(messages[0]["content"], "Be brief.")
        self.assertIn("Hindi", messages[1]["content"])


class RespondTests(unittest.TestCase):
    def setUp(self) -> None:
        self.service = CareerChatService(api_key="test-key")

    def test_reply_is_returned_with_usage(self) -> None:
        create = AsyncMock(return_value=_completion("  Start with your skills.  "))
        self.service._client.chat.completions.create = create

        reply = asyncio.run(self.service.respond("Help me", "en"))

        self.assertEqual(reply.message, "Start with your skills.")
        self.assertEqual(reply.model, "llama-3.1-8b-instant")
        self.assertEqual(reply.usage["total_tokens"], 15)
        self.assertEqual(reply.response_language, "en")
        kwargs = create.await_args.kwargs
        self.assertEqual(kwargs["temperature"], 0.7)
        self.assertEqual(kwargs["max_tokens"], 1024)
        self.assertFalse(kwargs["stream"])

    def test_empty_choices_is_chat_failure(self) -> None:
        self.service._client.chat.completions.create = AsyncMock(
            return_value=SimpleNamespace(choices=[], model="m", usage=None)
        )
        with self.assertRaises(VoiceServiceError) as ctx:
            asyncio.run(self.service.respond("Help me"))
        self.assertEqual(ctx.exception.kind, VoiceErrorKind.CHAT_FAILED)
        self.assertEqual(ctx.exception.message, "No response generated")

    def test_blank_content_is_chat_failure(self) -> None:
        self.service._client.chat.completions.create = AsyncMock(return_value=_completion(None))
        with self.assertRaises(VoiceServiceError) as ctx:
            asyncio.run(self.service.respond("Help me"))
        self.assertEqual(ctx.exception.kind, VoiceErrorKind.CHAT_FAILED)

    def test_rate_limit(self) -> None:
        self.service._client.chat.completions.create = AsyncMock(side_effect=_api_status_error(429, "slow"))
        with self.assertRaises(VoiceServiceError) as ctx:
            asyncio.run(self.service.respond("Help me"))
        self.assertEqual(ctx.exception.kind, VoiceErrorKind.CHAT_FAILED)
        self.assertEqual(ctx.exception.message, "Rate limit exceeded")

    def test_complete_json_enables_json_mode(self) -> None:
        create = AsyncMock(return_value=_completion('{"summary": "x"}'))
        self.service._client.chat.completions.create = create

        raw = asyncio.run(self.service.complete_json("system", "user"))

        self.assertEqual(raw, '{"summary": "x"}')
        self.assertEqual(create.await_args.kwargs["response_format"], {"type": "json_object"})


if __name__ == "__main__":
    unittest.main()
