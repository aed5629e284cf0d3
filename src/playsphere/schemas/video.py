"""Game video schemas."""

from .common import CamelModel


class VideoResponse(CamelModel):
    """A recent video about a game."""

    id: str
    title: str
    thumbnail: str
    channel_title: str
    published_at: str
    platform: str
    url: str
