"""User-related Pydantic schemas."""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, ConfigDict, Field, StringConstraints

from .common import CamelModel


def _clean_games(value: list[str]) -> list[str]:
    return [game.strip() for game in value if game.strip()]


# Profile text fields are trimmed before the emptiness check.
ProfileText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
GamesPlayed = Annotated[list[str], AfterValidator(_clean_games)]


class SignupRequest(CamelModel):
    """Schema for creating a player account."""

    username: ProfileText = Field(..., description="Unique, immutable handle")
    password: str = Field(..., min_length=6, description="Plain password (hashed server side)")
    language: ProfileText
    region: ProfileText
    current_game: ProfileText
    current_game_id: ProfileText = Field(..., description="In-game identifier")
    games_played: GamesPlayed = Field(default_factory=list)
    profile_picture: str | None = None


class LoginRequest(CamelModel):
    """Schema for username/password login."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(CamelModel):
    """Public profile of a user; never carries the password hash."""

    id: int
    username: str
    profile_picture: str | None
    language: str
    region: str
    games_played: list[str]
    current_game: str
    current_game_id: str
    last_active: datetime
    is_admin: bool


class LoginResponse(CamelModel):
    """Response returned after a successful login."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class UserUpdate(CamelModel):
    """Partial profile update.

    Username and password are not part of this schema and are ignored if sent.
    """

    model_config = ConfigDict(extra="ignore")

    profile_picture: str | None = None
    language: ProfileText | None = None
    region: ProfileText | None = None
    current_game: ProfileText | None = None
    current_game_id: ProfileText | None = None
    games_played: GamesPlayed | None = None


class PasswordChangeRequest(CamelModel):
    """Request to replace the caller's password."""

    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)
