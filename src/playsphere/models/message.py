# src/playsphere/models/message.py
"""Models describing chat messages between users and inside groups."""

from __future__ import annotations

import re
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from playsphere.db.session import Base
from playsphere.db.time import utcnow

CONTENT_TYPE_TEXT = "text"
CONTENT_TYPE_IMAGE = "image"

# Images are sent as markdown, e.g. ``![screenshot](https://host/uploads/a.png)``.
IMAGE_MARKDOWN_PATTERN = re.compile(r"^\s*!\[[^\]]*\]\([^)\s]+\)\s*$")


def detect_content_type(content: str) -> str:
    """Return the content tag for a message body."""
    if IMAGE_MARKDOWN_PATTERN.match(content):
        return CONTENT_TYPE_IMAGE
    return CONTENT_TYPE_TEXT


class Message(Base):
    """A chat message addressed either to one user or to one group.

    Exactly one of ``to_user_id`` and ``group_id`` is set.
    """

    __tablename__ = "messages"
    __table_args__ = (
        CheckConstraint(
            "(to_user_id IS NULL) <> (group_id IS NULL)",
            name="ck_messages_single_target",
        ),
        Index("ix_messages_group_id", "group_id"),
        Index("ix_messages_pair", "from_user_id", "to_user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    from_user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    to_user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    group_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("group_chats.id"), nullable=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    type: Mapped[str] = mapped_column(Text, nullable=False, default=CONTENT_TYPE_TEXT)

    @property
    def is_group_message(self) -> bool:
        """Return True when the message belongs to a group conversation."""
        return self.group_id is not None
