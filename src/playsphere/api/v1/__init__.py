"""Version 1 API endpoints."""

from .endpoints import (
    admin_router,
    auth_router,
    games_router,
    groups_router,
    ideas_router,
    messages_router,
    realtime_router,
    uploads_router,
    users_router,
    videos_router,
)

__all__ = [
    "auth_router",
    "users_router",
    "messages_router",
    "groups_router",
    "games_router",
    "ideas_router",
    "admin_router",
    "uploads_router",
    "realtime_router",
    "videos_router",
]
