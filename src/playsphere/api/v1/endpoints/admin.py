"""Administrative endpoints for the PlaySphere API."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Response, status

from playsphere.models import Game
from playsphere.schemas import GameCreate, GameResponse

from ..dependencies import AdminUserDep, RelayDep, StorageDep

router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger(__name__)


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_user(
    user_id: int,
    admin: AdminUserDep,
    storage: StorageDep,
    relay: RelayDep,
) -> Response:
    """Delete a user and everything they own.

    A live socket belonging to the user is closed so it cannot keep sending.
    """
    if user_id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admins cannot delete their own account",
        )
    storage.delete_user(user_id)
    connection = relay.registry.lookup(user_id)
    if connection is not None:
        await connection.close(code=status.WS_1008_POLICY_VIOLATION, reason="account deleted")
        relay.disconnect(connection)
    logger.info("Admin %s deleted user %s", admin.id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/games", response_model=GameResponse, status_code=status.HTTP_201_CREATED)
async def add_game(payload: GameCreate, _admin: AdminUserDep, storage: StorageDep) -> Game:
    """Add a game to the catalog."""
    return storage.create_game(
        name=payload.name,
        categories=payload.categories,
        platforms=payload.platforms,
        contact=payload.contact,
        downloads=payload.downloads,
    )


@router.delete(
    "/games/{game_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_game(game_id: int, _admin: AdminUserDep, storage: StorageDep) -> Response:
    """Remove a game and the ideas filed against it."""
    storage.delete_game(game_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/user-stats")
async def user_stats(_admin: AdminUserDep, storage: StorageDep) -> dict[str, Any]:
    """Users per region and language plus activity counts.

    Activity windows:
      - daily: active within 1 day
      - weekly: 7 days
      - monthly: 30 days
      - quarterly: 90 days
    """
    return {
        "users": storage.user_stats_by_region_and_language(),
        "activeUsers": storage.active_user_counts(),
    }


@router.get("/games-by-region")
async def games_by_region(_admin: AdminUserDep, storage: StorageDep) -> dict[str, dict[str, int]]:
    """How many players in each region list each game."""
    return storage.games_played_by_region()
