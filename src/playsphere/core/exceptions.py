"""Translate exceptions into ``{"message": ...}`` JSON responses."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from playsphere.services.errors import StorageError

logger = logging.getLogger(__name__)

# Starlette's name for 422 differs between releases.
HTTP_UNPROCESSABLE_CONTENT = 422


def _error_payload(message: str, errors: Any | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"message": message}
    if errors is not None:
        payload["errors"] = errors
    return payload


def register_exception_handlers(app: FastAPI) -> None:
    """Register the API's exception handlers on a FastAPI app."""

    @app.exception_handler(StorageError)
    async def _storage_error_handler(_request: Request, exc: StorageError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=_error_payload(exc.message))

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=HTTP_UNPROCESSABLE_CONTENT,
            content=_error_payload("Invalid request", errors),
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(
        _request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        detail = getattr(exc, "detail", None)
        message = detail if isinstance(detail, str) else "Request failed"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_payload(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_payload("Internal server error"),
        )
