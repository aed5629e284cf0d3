"""Tests for the game video endpoint."""

import httpx
import pytest
from fastapi import status

from playsphere.api.v1.dependencies import get_video_client
from playsphere.services.videos import VideoSearchClient


@pytest.fixture()
def video_client(app):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "items": [
                    {
                        "id": {"videoId": "abc"},
                        "snippet": {
                            "title": "Ascent retakes",
                            "channelTitle": "Pro Plays",
                            "publishedAt": "2026-10-01T12:00:00Z",
                            "thumbnails": {"high": {"url": "https://img.example/abc.jpg"}},
                        },
                    }
                ]
            },
        )

    client = VideoSearchClient("test-key", transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_video_client] = lambda: client
    try:
        yield client
    finally:
        app.dependency_overrides.pop(get_video_client, None)


def test_game_videos(client, video_client) -> None:
    response = client.get("/api/v1/videos/Valorant")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == [
        {
            "id": "abc",
            "title": "Ascent retakes",
            "thumbnail": "https://img.example/abc.jpg",
            "channelTitle": "Pro Plays",
            "publishedAt": "2026-10-01T12:00:00Z",
            "platform": "youtube",
            "url": "https://www.youtube.com/watch?v=abc",
        }
    ]


def test_game_videos_without_api_key(client, monkeypatch) -> None:
    monkeypatch.setattr(client.app.state.videos, "api_key", None)

    response = client.get("/api/v1/videos/Valorant")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == []
