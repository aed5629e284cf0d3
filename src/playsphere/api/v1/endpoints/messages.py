"""Message history and receipt endpoints for the PlaySphere API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Response, status

from playsphere.schemas import MessageRead

from ..dependencies import CurrentUserDep, RelayDep, StorageDep

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/{from_user_id}/{to_user_id}", response_model=list[MessageRead])
async def get_conversation(
    from_user_id: int,
    to_user_id: int,
    current_user: CurrentUserDep,
    storage: StorageDep,
) -> list[MessageRead]:
    """Return the direct conversation between two users, oldest first."""
    if current_user.id not in (from_user_id, to_user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to view these messages",
        )
    messages = storage.get_conversation(from_user_id, to_user_id)
    return [MessageRead.from_message(message) for message in messages]


@router.put("/{message_id}/read", response_model=MessageRead)
async def mark_read(
    message_id: int,
    current_user: CurrentUserDep,
    storage: StorageDep,
    relay: RelayDep,
) -> MessageRead:
    """Mark a received message as read and notify its sender if online."""
    message = storage.mark_message_read(message_id, current_user.id)
    await relay.notify_read(message)
    return MessageRead.from_message(message)


@router.delete(
    "/{message_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_message(
    message_id: int,
    current_user: CurrentUserDep,
    storage: StorageDep,
) -> Response:
    """Delete a message the caller sent."""
    storage.delete_message(message_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
