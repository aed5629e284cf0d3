"""Authentication endpoints for the PlaySphere API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response, status

from playsphere.core.security import create_access_token
from playsphere.core.settings import settings
from playsphere.models import User
from playsphere.schemas import (
    LoginRequest,
    LoginResponse,
    SignupRequest,
    StatusMessage,
    UserResponse,
)

from ..dependencies import CurrentUserDep, StorageDep

router = APIRouter(prefix="/auth", tags=["authentication"])
logger = logging.getLogger(__name__)


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupRequest, storage: StorageDep) -> User:
    """Create a new player account."""
    user = storage.create_user(
        username=payload.username,
        password=payload.password,
        language=payload.language,
        region=payload.region,
        current_game=payload.current_game,
        current_game_id=payload.current_game_id,
        games_played=payload.games_played,
        profile_picture=payload.profile_picture,
    )
    return user


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, response: Response, storage: StorageDep) -> LoginResponse:
    """Exchange credentials for an access token.

    The token is returned in the body and also set as an HTTP-only cookie so
    browsers can open the socket without passing it in the query string.
    """
    user = storage.authenticate(payload.username, payload.password)
    if user is None:
        logger.info("Failed login for %s", payload.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    token = create_access_token(user.id)
    response.set_cookie(
        key=settings.access_token_cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60,
    )
    return LoginResponse(access_token=token, user=UserResponse.model_validate(user))


@router.post("/logout", response_model=StatusMessage)
async def logout(response: Response) -> StatusMessage:
    """Clear the login cookie."""
    response.delete_cookie(settings.access_token_cookie_name)
    return StatusMessage(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
async def me(current_user: CurrentUserDep) -> User:
    """Return the authenticated user's profile."""
    return current_user
