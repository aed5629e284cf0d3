"""Service layer shared by the HTTP API and the socket relay."""

from .errors import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
)
from .storage import IdeaView, Storage
from .videos import Video, VideoSearchClient

__all__ = [
    "ConflictError",
    "IdeaView",
    "InvalidOperationError",
    "NotFoundError",
    "PermissionDeniedError",
    "Storage",
    "StorageError",
    "Video",
    "VideoSearchClient",
]
