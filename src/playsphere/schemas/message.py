"""Message-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from playsphere.models import Message

from .common import CamelModel


class MessageRead(CamelModel):
    """A persisted message as returned by the API and pushed over sockets."""

    id: int
    from_user_id: int
    to_user_id: int | None
    group_id: int | None
    content: str
    timestamp: datetime
    is_read: bool
    read_at: datetime | None
    content_type: str

    @classmethod
    def from_message(cls, message: Message) -> MessageRead:
        """Build the schema from an ORM row (the content tag lives in ``type``)."""
        return cls(
            id=message.id,
            from_user_id=message.from_user_id,
            to_user_id=message.to_user_id,
            group_id=message.group_id,
            content=message.content,
            timestamp=message.timestamp,
            is_read=message.is_read,
            read_at=message.read_at,
            content_type=message.type,
        )
