"""Game video endpoints for the PlaySphere API."""

from __future__ import annotations

from fastapi import APIRouter

from playsphere.schemas import VideoResponse
from playsphere.services.videos import Video

from ..dependencies import VideoClientDep

router = APIRouter(prefix="/videos", tags=["videos"])


@router.get("/{game_name}", response_model=list[VideoResponse])
async def game_videos(game_name: str, videos: VideoClientDep) -> list[Video]:
    """List recent gameplay videos for a game; empty when none can be fetched."""
    return await videos.search(game_name)
