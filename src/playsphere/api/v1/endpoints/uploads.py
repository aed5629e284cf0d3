"""Image upload endpoint for chat pictures and avatars."""

from __future__ import annotations

import logging
import uuid
from typing import Annotated, Any

from fastapi import APIRouter, File, HTTPException, Request, UploadFile, status

from playsphere.core.settings import settings

from ..dependencies import CurrentUserDep

router = APIRouter(prefix="/upload", tags=["uploads"])
logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}

# Read in slices so an oversized body is rejected without buffering all of it.
_CHUNK_SIZE = 64 * 1024


@router.post("/image")
async def upload_image(
    request: Request,
    current_user: CurrentUserDep,
    image: Annotated[UploadFile | None, File()] = None,
) -> dict[str, Any]:
    """Store an uploaded image and return its public URL."""
    if image is None or not image.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")
    if image.content_type not in settings.allowed_image_types:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only JPEG, PNG and GIF images are allowed",
        )

    data = bytearray()
    while chunk := await image.read(_CHUNK_SIZE):
        data.extend(chunk)
        if len(data) > settings.max_upload_bytes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="File size must be less than 2MB",
            )

    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    filename = f"{uuid.uuid4().hex}{_EXTENSIONS.get(image.content_type or '', '')}"
    (settings.upload_dir / filename).write_bytes(bytes(data))
    logger.info("User %s uploaded %s (%d bytes)", current_user.id, filename, len(data))

    url = str(request.base_url).rstrip("/") + f"/uploads/{filename}"
    return {"url": url, "success": True}
