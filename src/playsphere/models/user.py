# src/playsphere/models/user.py
"""SQLAlchemy model for player accounts."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from playsphere.db.session import Base
from playsphere.db.time import utcnow


class User(Base):
    """A registered player profile."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    profile_picture: Mapped[str | None] = mapped_column(Text, nullable=True)
    language: Mapped[str] = mapped_column(Text, nullable=False)
    region: Mapped[str] = mapped_column(Text, nullable=False)
    games_played: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    current_game: Mapped[str] = mapped_column(Text, nullable=False)
    current_game_id: Mapped[str] = mapped_column(Text, nullable=False)
    last_active: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def touch(self) -> None:
        """Refresh the last-active timestamp."""
        self.last_active = utcnow()
