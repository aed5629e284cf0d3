# src/playsphere/models/__init__.py
"""SQLAlchemy models for the PlaySphere application."""

from .game import Game
from .group import Group, GroupMember
from .idea import Idea, IdeaVote
from .message import CONTENT_TYPE_IMAGE, CONTENT_TYPE_TEXT, Message
from .user import User

__all__ = [
    "Game",
    "Group", "GroupMember",
    "Idea", "IdeaVote",
    "Message", "CONTENT_TYPE_IMAGE", "CONTENT_TYPE_TEXT",
    "User",
]
