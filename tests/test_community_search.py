from __future__ import annotations

import asyncio
import os
import unittest
from unittest.mock import patch

import httpx

from community_search import (
    SEARCH_URL,
    TOKEN_URL,
    AccessTokenCache,
    Community,
    CommunitySearchClient,
    CommunitySearchError,
)

_SEARCH_BODY = {
    "data": {
        "children": [
            {
                "data": {
                    "id": "2qh1i",
                    "title": "Career Guidance",
                    "display_name": "careerguidance",
                    "public_description": "Ask for career advice",
                    "subscribers": 1200,
                    "icon_img": "",
                }
            },
            {"data": {"id": "abc", "display_name": "jobsindia"}},
        ]
    }
}


class _FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class AccessTokenCacheTests(unittest.TestCase):
    def test_token_goes_stale_before_expiry(self) -> None:
        clock = _FakeClock()
        cache = AccessTokenCache(margin_s=300, clock=clock)
        cache.store("tok", 3600)

        self.assertEqual(cache.get(), "tok")
        clock.now += 3299
        self.assertEqual(cache.get(), "tok")
        clock.now += 2
        self.assertIsNone(cache.get())

    def test_clear(self) -> None:
        cache = AccessTokenCache()
        cache.store("tok", 3600)
        cache.clear()
        self.assertIsNone(cache.get())


class CommunitySearchClientTests(unittest.TestCase):
    def setUp(self) -> None:
        self.requests: list[httpx.Request] = []
        self.search_status = 200

    def _handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url).split("?", 1)[0]
        if url == TOKEN_URL:
            return httpx.Response(200, json={"access_token": "tok-1", "expires_in": 3600})
        if url == SEARCH_URL:
            if self.search_status != 200:
                return httpx.Response(self.search_status)
            return httpx.Response(200, json=_SEARCH_BODY)
        return httpx.Response(404)

    def _run_searches(self, *queries: str, cache: AccessTokenCache | None = None) -> list[list[Community]]:
        async def run() -> list[list[Community]]:
            async with httpx.AsyncClient(transport=httpx.MockTransport(self._handler)) as http_client:
                client = CommunitySearchClient(
                    client_id="id", client_secret="secret", token_cache=cache, http_client=http_client
                )
                return [await client.search(query) for query in queries]

        return asyncio.run(run())

    def test_search_maps_results_and_reuses_token(self) -> None:
        results = self._run_searches("career", " jobs ")

        first = results[0]
        self.assertEqual(len(first), 2)
        self.assertEqual(first[0].title, "Career Guidance")
        self.assertEqual(first[0].description, "Ask for career advice")
        self.assertEqual(first[0].subscribers, 1200)
        self.assertEqual(first[1].title, "jobsindia")

        token_calls = [r for r in self.requests if str(r.url) == TOKEN_URL]
        search_calls = [r for r in self.requests if str(r.url).startswith(SEARCH_URL)]
        self.assertEqual(len(token_calls), 1)
        self.assertEqual(len(search_calls), 2)
        self.assertEqual(search_calls[0].headers["Authorization"], "Bearer tok-1")
        self.assertEqual(search_calls[1].url.params["q"], "jobs")
        self.assertEqual(search_calls[0].url.params["type"], "sr")
        self.assertIn(b"grant_type=client_credentials", token_calls[0].content)

    def test_upstream_error_raises(self) -> None:
        self.search_status = 500
        with self.assertRaises(CommunitySearchError):
            self._run_searches("career")

    def test_unauthorized_clears_cached_token(self) -> None:
        self.search_status = 401
        cache = AccessTokenCache()
        with self.assertRaises(CommunitySearchError):
            self._run_searches("career", cache=cache)
        self.assertIsNone(cache.get())

    def test_empty_query_is_rejected(self) -> None:
        client = CommunitySearchClient(client_id="id", client_secret="secret")
        with self.assertRaises(ValueError):
            asyncio.run(client.search("   "))

    def test_missing_credentials(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            client = CommunitySearchClient(
                http_client=httpx.AsyncClient(transport=httpx.MockTransport(self._handler))
            )
            with self.assertRaises(CommunitySearchError):
                asyncio.run(client.search("career"))
        self.assertEqual(self.requests, [])


if __name__ == "__main__":
    unittest.main()
