"""Game catalog endpoints for the PlaySphere API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from playsphere.models import Game
from playsphere.schemas import GameResponse

from ..dependencies import StorageDep

router = APIRouter(prefix="/games", tags=["games"])


@router.get("/", response_model=list[GameResponse])
async def list_games(storage: StorageDep) -> list[Game]:
    """List the whole catalog."""
    return storage.list_games()


@router.get("/category", response_model=list[GameResponse])
async def games_by_category(
    storage: StorageDep,
    categories: Annotated[str, Query(description="Comma separated category names")] = "",
) -> list[Game]:
    """List games tagged with any of the given categories."""
    wanted = [category for category in categories.split(",") if category.strip()]
    if not wanted:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No categories specified",
        )
    return storage.get_games_by_category(wanted)


@router.get("/{game_id}", response_model=GameResponse)
async def get_game(game_id: int, storage: StorageDep) -> Game:
    """Get a specific game by ID."""
    game = storage.get_game(game_id)
    if game is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Game not found",
        )
    return game
