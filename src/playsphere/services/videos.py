"""Recent gameplay videos for a game, looked up on YouTube.

Lookups are best effort: without an API key, or when YouTube fails, the
result is an empty list rather than an error.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from playsphere.core.settings import settings

logger = logging.getLogger(__name__)

YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v="

SEARCH_WINDOW = timedelta(days=30)
# Ask for more than we return since short-form clips are filtered out afterwards.
SEARCH_RESULTS = 8
MAX_VIDEOS = 6
EXCLUDED_TITLE_MARKERS = ("shorts", "#short", "tiktok")


@dataclass(frozen=True)
class Video:
    id: str
    title: str
    thumbnail: str
    channel_title: str
    published_at: str
    platform: str
    url: str


def _is_short_form(title: str) -> bool:
    lowered = title.lower()
    return any(marker in lowered for marker in EXCLUDED_TITLE_MARKERS)


def _video_from_item(item: Mapping[str, Any]) -> Video:
    snippet = item.get("snippet") or {}
    video_id = (item.get("id") or {}).get("videoId") or ""
    thumbnail = ((snippet.get("thumbnails") or {}).get("high") or {}).get("url") or ""
    return Video(
        id=video_id,
        title=snippet.get("title") or "",
        thumbnail=thumbnail,
        channel_title=snippet.get("channelTitle") or "",
        published_at=snippet.get("publishedAt") or "",
        platform="youtube",
        url=f"{YOUTUBE_WATCH_URL}{video_id}",
    )


class VideoSearchClient:
    """Search YouTube for recent medium-length gameplay videos."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str = YOUTUBE_SEARCH_URL,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.youtube_api_key
        self.base_url = base_url
        self.timeout_seconds = (
            timeout_seconds
            if timeout_seconds is not None
            else settings.video_search_timeout_seconds
        )
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _search_params(self, game_name: str) -> dict[str, Any]:
        published_after = datetime.now(UTC) - SEARCH_WINDOW
        return {
            "part": "snippet",
            "q": f"{game_name} gameplay -shorts",
            "type": "video",
            "order": "date",
            "publishedAfter": published_after.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "maxResults": SEARCH_RESULTS,
            "videoDuration": "medium",
            "key": self.api_key,
        }

    async def search(self, game_name: str) -> list[Video]:
        """Return up to six recent videos about ``game_name``."""
        if not self.enabled:
            logger.debug("Video search skipped for %r: no YouTube API key", game_name)
            return []

        client = await self._ensure_client()
        try:
            response = await client.get(self.base_url, params=self._search_params(game_name))
            response.raise_for_status()
            items = response.json().get("items") or []
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("YouTube search for %r failed: %s", game_name, exc)
            return []

        videos = [
            _video_from_item(item)
            for item in items
            if not _is_short_form((item.get("snippet") or {}).get("title") or "")
        ]
        logger.debug("YouTube search for %r returned %d video(s)", game_name, len(videos))
        return videos[:MAX_VIDEOS]
