"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from starlette.requests import HTTPConnection

from playsphere.core.security import decode_access_token
from playsphere.core.settings import settings
from playsphere.db.session import get_db
from playsphere.models import User
from playsphere.realtime import ConnectionRegistry, MessageRelay
from playsphere.services.storage import Storage
from playsphere.services.videos import VideoSearchClient

# Bearer header is optional; the login cookie is accepted as a fallback.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_storage(db: SessionDep) -> Storage:
    """Wrap the request's session in the persistence gateway."""
    return Storage(db)


StorageDep = Annotated[Storage, Depends(get_storage)]


def get_relay(conn: HTTPConnection) -> MessageRelay:
    """Return the relay created at application startup."""
    relay: MessageRelay = conn.app.state.relay
    return relay


def get_registry(conn: HTTPConnection) -> ConnectionRegistry:
    """Return the connection registry created at application startup."""
    registry: ConnectionRegistry = conn.app.state.registry
    return registry


RelayDep = Annotated[MessageRelay, Depends(get_relay)]
RegistryDep = Annotated[ConnectionRegistry, Depends(get_registry)]


def get_video_client(conn: HTTPConnection) -> VideoSearchClient:
    """Return the video search client created at application startup."""
    videos: VideoSearchClient = conn.app.state.videos
    return videos


VideoClientDep = Annotated[VideoSearchClient, Depends(get_video_client)]


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    storage: StorageDep,
) -> User:
    """Get the current authenticated user from a bearer token or the login cookie.

    Raises:
        HTTPException: 401 if no token is supplied, it is invalid, or the user
            no longer exists.
    """
    token = credentials.credentials if credentials else None
    if token is None:
        token = request.cookies.get(settings.access_token_cookie_name)
    if not token:
        raise _unauthorized("Not authenticated")

    user_id = decode_access_token(token)
    if user_id is None:
        raise _unauthorized()

    user = storage.get_user(user_id)
    if user is None:
        raise _unauthorized("User not found")
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]


def get_admin_user(current_user: CurrentUserDep) -> User:
    """Require the caller to carry the admin flag."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


AdminUserDep = Annotated[User, Depends(get_admin_user)]
