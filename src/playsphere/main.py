"""Main entry point for the PlaySphere application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles

from playsphere.api.v1 import (
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
from playsphere.core.exceptions import register_exception_handlers
from playsphere.core.logging import setup_logging
from playsphere.core.settings import settings
from playsphere.realtime import ConnectionRegistry, MessageRelay
from playsphere.services.videos import VideoSearchClient

setup_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=f"{settings.app_name} API",
    description="Social network for gamers with realtime chat",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

register_exception_handlers(app)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(messages_router, prefix="/api/v1")
app.include_router(groups_router, prefix="/api/v1")
app.include_router(games_router, prefix="/api/v1")
app.include_router(ideas_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(uploads_router, prefix="/api/v1")
app.include_router(videos_router, prefix="/api/v1")
app.include_router(realtime_router)

settings.upload_dir.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")


@app.on_event("startup")
async def on_startup() -> None:
    registry = ConnectionRegistry()
    app.state.registry = registry
    app.state.relay = MessageRelay(registry)
    app.state.videos = VideoSearchClient()
    logger.info("%s %s started", settings.app_name, settings.app_version)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    relay: MessageRelay | None = getattr(app.state, "relay", None)
    if relay:
        await relay.shutdown()
    videos: VideoSearchClient | None = getattr(app.state, "videos", None)
    if videos:
        await videos.aclose()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": f"{settings.app_name} API",
        "version": settings.app_version,
        "description": "Social network for gamers with realtime chat",
        "websocket": settings.websocket_path,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("playsphere.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
