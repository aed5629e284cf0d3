"""Idea board schemas."""

from datetime import datetime

from pydantic import Field

from .common import CamelModel


class IdeaCreate(CamelModel):
    """Schema for submitting a new idea."""

    game_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)


class IdeaResponse(CamelModel):
    """An idea with its game, creator and the caller's vote status."""

    id: int
    game_id: int
    game_name: str
    game_contact: str | None
    title: str
    description: str
    votes: int
    has_voted: bool
    creator_username: str
    created_at: datetime


class IdeaPage(CamelModel):
    """One page of ideas ordered by votes then recency."""

    ideas: list[IdeaResponse]
    total: int
    page: int
    total_pages: int
