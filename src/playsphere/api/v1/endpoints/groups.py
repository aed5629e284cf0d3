"""Group chat endpoints for the PlaySphere API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Response, status

from playsphere.models import Group, User
from playsphere.schemas import (
    GroupCreate,
    GroupResponse,
    MemberAdd,
    MessageRead,
    OwnershipTransfer,
    StatusMessage,
    UserResponse,
)

from ..dependencies import CurrentUserDep, StorageDep

router = APIRouter(prefix="/groups", tags=["groups"])


@router.post("/", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    payload: GroupCreate,
    current_user: CurrentUserDep,
    storage: StorageDep,
) -> Group:
    """Create a group owned by the caller."""
    return storage.create_group(payload.name, current_user.id)


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(group_id: int, _current_user: CurrentUserDep, storage: StorageDep) -> Group:
    """Get a specific group by ID."""
    return storage.require_group(group_id)


@router.delete(
    "/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_group(
    group_id: int,
    current_user: CurrentUserDep,
    storage: StorageDep,
) -> Response:
    """Delete a group with its members and messages (owner only)."""
    storage.delete_group(group_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{group_id}/members", response_model=list[UserResponse])
async def list_members(group_id: int, _current_user: CurrentUserDep, storage: StorageDep) -> list[User]:
    """List members in the order they joined."""
    storage.require_group(group_id)
    return storage.get_group_members(group_id)


@router.post(
    "/{group_id}/members",
    response_model=StatusMessage,
    status_code=status.HTTP_201_CREATED,
)
async def add_member(
    group_id: int,
    payload: MemberAdd,
    current_user: CurrentUserDep,
    storage: StorageDep,
) -> StatusMessage:
    """Add a user to the group (owner only)."""
    storage.add_group_member(group_id, payload.user_id, current_user.id)
    return StatusMessage(message="Member added successfully")


@router.delete(
    "/{group_id}/members/{member_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def remove_member(
    group_id: int,
    member_id: int,
    current_user: CurrentUserDep,
    storage: StorageDep,
) -> Response:
    """Remove a member, or leave the group when ``member_id`` is the caller."""
    storage.remove_group_member(group_id, member_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{group_id}/transfer-ownership", response_model=GroupResponse)
async def transfer_ownership(
    group_id: int,
    payload: OwnershipTransfer,
    current_user: CurrentUserDep,
    storage: StorageDep,
) -> Group:
    """Hand the group to another member (owner only)."""
    return storage.transfer_group_ownership(group_id, current_user.id, payload.new_owner_id)


@router.get("/{group_id}/messages", response_model=list[MessageRead])
async def get_group_messages(
    group_id: int,
    current_user: CurrentUserDep,
    storage: StorageDep,
) -> list[MessageRead]:
    """Return a group's history, oldest first (members only)."""
    storage.require_group(group_id)
    if not storage.is_group_member(group_id, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to view these messages",
        )
    return [MessageRead.from_message(message) for message in storage.get_group_messages(group_id)]
