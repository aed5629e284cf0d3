# src/playsphere/schemas/__init__.py
"""
Pydantic schemas for API request/response models and socket frames.

These schemas define the structure of API data for serialization and validation.
"""

from .common import CamelModel, StatusMessage
from .game import GameCreate, GameResponse
from .group import GroupCreate, GroupResponse, MemberAdd, OwnershipTransfer
from .idea import IdeaCreate, IdeaPage, IdeaResponse
from .message import MessageRead
from .user import (
    LoginRequest,
    LoginResponse,
    PasswordChangeRequest,
    SignupRequest,
    UserResponse,
    UserUpdate,
)
from .video import VideoResponse

__all__ = [
    "CamelModel", "StatusMessage",
    "GameCreate", "GameResponse",
    "GroupCreate", "GroupResponse", "MemberAdd", "OwnershipTransfer",
    "IdeaCreate", "IdeaPage", "IdeaResponse",
    "MessageRead",
    "LoginRequest", "LoginResponse", "PasswordChangeRequest",
    "SignupRequest", "UserResponse", "UserUpdate",
    "VideoResponse",
]
