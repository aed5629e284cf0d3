"""User profile endpoints for the PlaySphere API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from playsphere.models import Group, User
from playsphere.schemas import (
    GroupResponse,
    PasswordChangeRequest,
    StatusMessage,
    UserResponse,
    UserUpdate,
)
from playsphere.services.errors import PermissionDeniedError

from ..dependencies import CurrentUserDep, RegistryDep, StorageDep

router = APIRouter(prefix="/users", tags=["users"])


def _require_self(current_user: User, user_id: int, detail: str) -> None:
    if current_user.id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


@router.get("/", response_model=list[UserResponse])
async def list_users(_current_user: CurrentUserDep, storage: StorageDep) -> list[User]:
    """List every player, most recently active first."""
    return storage.list_active_users()


@router.get("/online", response_model=list[int])
async def list_online_users(_current_user: CurrentUserDep, registry: RegistryDep) -> list[int]:
    """Return ids of users with a live socket."""
    return registry.online_user_ids()


@router.post("/me/heartbeat", response_model=StatusMessage)
async def heartbeat(current_user: CurrentUserDep, storage: StorageDep) -> StatusMessage:
    """Refresh the caller's last-active timestamp."""
    storage.touch_user(current_user.id)
    return StatusMessage(message="Activity recorded")


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, _current_user: CurrentUserDep, storage: StorageDep) -> User:
    """Get one player's profile."""
    return storage.require_user(user_id)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    payload: UserUpdate,
    current_user: CurrentUserDep,
    storage: StorageDep,
) -> User:
    """Update the caller's own profile.

    ``gamesPlayed`` is merged into the stored list rather than replacing it.
    """
    _require_self(current_user, user_id, "You can only update your own profile")
    return storage.update_user(user_id, payload.model_dump(exclude_unset=True))


@router.post("/{user_id}/change-password", response_model=StatusMessage)
async def change_password(
    user_id: int,
    payload: PasswordChangeRequest,
    current_user: CurrentUserDep,
    storage: StorageDep,
) -> StatusMessage:
    """Replace the caller's password after verifying the current one."""
    _require_self(current_user, user_id, "You can only change your own password")
    try:
        storage.change_password(user_id, payload.old_password, payload.new_password)
    except PermissionDeniedError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.message) from exc
    return StatusMessage(message="Password updated successfully")


@router.get("/{user_id}/groups", response_model=list[GroupResponse])
async def get_user_groups(
    user_id: int,
    current_user: CurrentUserDep,
    storage: StorageDep,
) -> list[Group]:
    """List the groups a user belongs to; callers may only list their own."""
    _require_self(current_user, user_id, "You can only list your own groups")
    return storage.get_user_groups(user_id)
