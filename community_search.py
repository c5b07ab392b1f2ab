from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from config_utils import read_float_env, read_str_env

TOKEN_URL = "https://www.reddit.com/api/v1/access_token"
SEARCH_URL = "https://oauth.reddit.com/subreddits/search"
USER_AGENT = "VoiceCareerAssistant/1.0"
TOKEN_REFRESH_MARGIN_S = 300.0
SEARCH_LIMIT = 25


class CommunitySearchError(RuntimeError):
    pass


@dataclass(frozen=True)
class Community:
    id: str
    title: str
    display_name: str
    description: str
    subscribers: int
    icon_img: str


class AccessTokenCache:
    """Holds one bearer token and reports it stale ``margin_s`` before expiry."""

    def __init__(self, margin_s: float = TOKEN_REFRESH_MARGIN_S, clock: Callable[[], float] = time.monotonic) -> None:
        self._margin_s = margin_s
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at = 0.0

    def get(self) -> Optional[str]:
        if self._token and self._clock() < self._expires_at - self._margin_s:
            return self._token
        return None

    def store(self, token: str, expires_in_s: float) -> None:
        self._token = token
        self._expires_at = self._clock() + expires_in_s

    def clear(self) -> None:
        self._token = None
        self._expires_at = 0.0


class CommunitySearchClient:
    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        token_cache: Optional[AccessTokenCache] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        self._client_id = client_id or read_str_env("REDDIT_CLIENT_ID", "")
        self._client_secret = client_secret or read_str_env("REDDIT_CLIENT_SECRET", "")
        self._token_cache = token_cache or AccessTokenCache()
        self._timeout_s = timeout_s or read_float_env("HTTP_TIMEOUT_SECONDS", 60.0)
        self._http_client = http_client

    @property
    def token_cache(self) -> AccessTokenCache:
        return self._token_cache

    async def search(self, query: str) -> list[Community]:
        if not isinstance(query, str) or not query.strip():
            raise ValueError("Search query must be a non-empty string")
        if self._http_client is not None:
            return await self._search(self._http_client, query.strip())
        async with httpx.AsyncClient(timeout=self._timeout_s) as client:
            return await self._search(client, query.strip())

    async def _search(self, client: httpx.AsyncClient, query: str) -> list[Community]:
        token = await self._access_token(client)
        try:
            response = await client.get(
                SEARCH_URL,
                params={"q": query, "type": "sr", "sort": "relevance", "limit": str(SEARCH_LIMIT)},
                headers={"Authorization": f"Bearer {token}", "User-Agent": USER_AGENT},
            )
        except httpx.HTTPError as exc:
            raise CommunitySearchError(f"Failed to search communities: {exc}") from exc
        if response.status_code == 401:
            # Token revoked early; the next call authenticates again.
            self._token_cache.clear()
        if response.is_error:
            raise CommunitySearchError(
                f"Community search request failed: {response.status_code} {response.reason_phrase}"
            )
        communities = [self._to_community(child.get("data") or {}) for child in self._children(response)]
        logging.info("community_search_done query=%s results=%s", query, len(communities))
        return communities

    async def _access_token(self, client: httpx.AsyncClient) -> str:
        cached = self._token_cache.get()
        if cached:
            return cached
        if not self._client_id or not self._client_secret:
            raise CommunitySearchError("Community search credentials are not configured")
        try:
            response = await client.post(
                TOKEN_URL,
                auth=(self._client_id, self._client_secret),
                data={"grant_type": "client_credentials"},
                headers={"User-Agent": USER_AGENT},
            )
        except httpx.HTTPError as exc:
            raise CommunitySearchError(f"Failed to authenticate with community API: {exc}") from exc
        if response.is_error:
            raise CommunitySearchError(
                f"Community authentication failed: {response.status_code} {response.reason_phrase}"
            )
        try:
            body = response.json()
            token = str(body["access_token"])
            expires_in = float(body.get("expires_in", 3600))
        except (ValueError, KeyError, TypeError) as exc:
            raise CommunitySearchError("Community authentication returned an unexpected payload") from exc
        self._token_cache.store(token, expires_in)
        return token

    @staticmethod
    def _children(response: httpx.Response) -> list[dict[str, Any]]:
        try:
            body = response.json()
            children = body["data"]["children"]
        except (ValueError, KeyError, TypeError) as exc:
            raise CommunitySearchError("Community search returned an unexpected payload") from exc
        return [child for child in children if isinstance(child, dict)]

    @staticmethod
    def _to_community(data: dict[str, Any]) -> Community:
        display_name = str(data.get("display_name") or "")
        return Community(
            id=str(data.get("id") or ""),
            title=str(data.get("title") or display_name),
            display_name=display_name,
            description=str(data.get("public_description") or ""),
            subscribers=int(data.get("subscribers") or 0),
            icon_img=str(data.get("icon_img") or ""),
        )
