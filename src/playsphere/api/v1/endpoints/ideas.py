"""Idea board endpoints for the PlaySphere API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from playsphere.core.settings import settings
from playsphere.schemas import IdeaCreate, IdeaPage, IdeaResponse
from playsphere.services.storage import IdeaView, total_pages

from ..dependencies import AdminUserDep, CurrentUserDep, StorageDep

router = APIRouter(prefix="/ideas", tags=["ideas"])


def _to_response(view: IdeaView) -> IdeaResponse:
    idea = view.idea
    return IdeaResponse(
        id=idea.id,
        game_id=idea.game_id,
        game_name=view.game_name,
        game_contact=view.game_contact,
        title=idea.title,
        description=idea.description,
        votes=idea.votes,
        has_voted=view.has_voted,
        creator_username=view.creator_username,
        created_at=idea.created_at,
    )


@router.get("/", response_model=IdeaPage)
async def list_ideas(
    current_user: CurrentUserDep,
    storage: StorageDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> IdeaPage:
    """Return one page of ideas, most voted first."""
    page_size = min(limit or settings.ideas_default_page_size, settings.ideas_max_page_size)
    views, total = storage.list_ideas(current_user.id, page, page_size)
    return IdeaPage(
        ideas=[_to_response(view) for view in views],
        total=total,
        page=page,
        total_pages=total_pages(total, page_size),
    )


@router.post("/", response_model=IdeaResponse, status_code=status.HTTP_201_CREATED)
async def create_idea(
    payload: IdeaCreate,
    current_user: CurrentUserDep,
    storage: StorageDep,
) -> IdeaResponse:
    """Submit an idea for a game."""
    view = storage.create_idea(
        game_id=payload.game_id,
        user_id=current_user.id,
        title=payload.title,
        description=payload.description,
    )
    return _to_response(view)


@router.post("/{idea_id}/vote", response_model=IdeaResponse)
async def toggle_vote(
    idea_id: int,
    current_user: CurrentUserDep,
    storage: StorageDep,
) -> IdeaResponse:
    """Vote for an idea, or withdraw the caller's vote."""
    return _to_response(storage.toggle_idea_vote(idea_id, current_user.id))


@router.delete(
    "/{idea_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_idea(idea_id: int, _admin: AdminUserDep, storage: StorageDep) -> Response:
    """Delete an idea and its votes (admin only)."""
    storage.delete_idea(idea_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
