"""Socket frame schemas for the realtime relay.

Every frame is one JSON object tagged by ``type``. Inbound frames are parsed
through :data:`inbound_frame_adapter`; outbound frames are plain dicts built by
the helpers below so they can be pushed with ``send_json`` unchanged.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import Field, TypeAdapter

from playsphere.models import Message

from .common import CamelModel
from .message import MessageRead

FRAME_MESSAGE = "message"
FRAME_GROUP_MESSAGE = "groupMessage"
FRAME_TYPING = "typing"
FRAME_GROUP_TYPING = "groupTyping"
FRAME_READ = "read"
FRAME_ERROR = "error"


class _InboundFrame(CamelModel):
    # Optional on the wire; when present it must match the authenticated user.
    from_user_id: int | None = None


class DirectMessageFrame(_InboundFrame):
    """Client request to send a direct message."""

    type: Literal["message"]
    to_user_id: int
    content: str


class GroupMessageFrame(_InboundFrame):
    """Client request to send a message to a group."""

    type: Literal["groupMessage"]
    group_id: int
    content: str


class TypingFrame(_InboundFrame):
    """Client typing state towards one user."""

    type: Literal["typing"]
    to_user_id: int
    is_typing: bool


class GroupTypingFrame(_InboundFrame):
    """Client typing state inside a group."""

    type: Literal["groupTyping"]
    group_id: int
    is_typing: bool


InboundFrame = Annotated[
    DirectMessageFrame | GroupMessageFrame | TypingFrame | GroupTypingFrame,
    Field(discriminator="type"),
]

inbound_frame_adapter: TypeAdapter[InboundFrame] = TypeAdapter(InboundFrame)


def parse_frame(raw: str | bytes) -> InboundFrame:
    """Parse one raw socket payload.

    Raises:
        pydantic.ValidationError: on invalid JSON, an unknown ``type`` or a
            missing/ill-typed field.
    """
    return inbound_frame_adapter.validate_json(raw)


def message_frame(message: Message, frame_type: str) -> dict[str, Any]:
    """Return the outbound frame for a persisted message."""
    payload = MessageRead.from_message(message).model_dump(mode="json", by_alias=True)
    return {"type": frame_type, **payload}


def typing_frame(
    frame_type: str,
    *,
    from_user_id: int,
    is_typing: bool,
    to_user_id: int | None = None,
    group_id: int | None = None,
) -> dict[str, Any]:
    """Return the outbound typing frame for a direct or group conversation."""
    frame: dict[str, Any] = {"type": frame_type, "fromUserId": from_user_id}
    if group_id is not None:
        frame["groupId"] = group_id
    else:
        frame["toUserId"] = to_user_id
    frame["isTyping"] = is_typing
    return frame


def read_frame(message: Message) -> dict[str, Any]:
    """Return the receipt pushed to a sender once the recipient read a message."""
    read_at: datetime | None = message.read_at
    return {
        "type": FRAME_READ,
        "id": message.id,
        "fromUserId": message.from_user_id,
        "toUserId": message.to_user_id,
        "readAt": read_at.isoformat() if read_at else None,
    }


def error_frame(message: str) -> dict[str, Any]:
    """Return an error frame addressed to the sender only."""
    return {"type": FRAME_ERROR, "message": message}
