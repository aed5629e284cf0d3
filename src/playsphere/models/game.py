"""Game catalog model."""

from sqlalchemy import JSON, BigInteger, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from playsphere.db.session import Base


class Game(Base):
    """A game players can list in their profile and attach ideas to."""

    __tablename__ = "games"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    platforms: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    contact: Mapped[str | None] = mapped_column(Text, nullable=True)
    downloads: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
