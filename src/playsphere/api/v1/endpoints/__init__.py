"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .auth import router as auth_router
from .games import router as games_router
from .groups import router as groups_router
from .ideas import router as ideas_router
from .messages import router as messages_router
from .realtime import router as realtime_router
from .uploads import router as uploads_router
from .users import router as users_router
from .videos import router as videos_router

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
