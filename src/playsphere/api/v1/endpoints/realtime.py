"""Socket endpoint feeding the realtime message relay."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.exc import SQLAlchemyError

from playsphere.core.security import decode_access_token
from playsphere.core.settings import settings
from playsphere.realtime import Connection

from ..dependencies import RelayDep, StorageDep

router = APIRouter(tags=["realtime"])
logger = logging.getLogger(__name__)


async def _receive_frame(websocket: WebSocket) -> str | bytes | None:
    """Return the payload of the next text or binary frame.

    Raises:
        WebSocketDisconnect: once the client has gone away.
    """
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(
            code=message.get("code", status.WS_1000_NORMAL_CLOSURE),
            reason=message.get("reason"),
        )
    if message.get("text") is not None:
        return message["text"]
    return message.get("bytes")


@router.websocket(settings.websocket_path)
async def relay_socket(
    websocket: WebSocket,
    storage: StorageDep,
    relay: RelayDep,
    token: Annotated[str | None, Query()] = None,
) -> None:
    """Authenticate, register and then relay frames until the client leaves.

    The token comes from ``?token=`` or the login cookie. Sockets without a
    valid token are closed with 1008 before they are registered. Text and
    binary frames are both accepted and must carry one JSON object.
    """
    token = token or websocket.cookies.get(settings.access_token_cookie_name)
    user_id = decode_access_token(token) if token else None
    if user_id is None or storage.get_user(user_id) is None:
        logger.warning("Rejected socket from %s: authentication failed", websocket.client)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Authentication failed")
        return

    await websocket.accept()
    connection = Connection(websocket, user_id)

    try:
        await relay.connect(connection)
        try:
            storage.touch_user(user_id)
        except SQLAlchemyError:
            storage.rollback()
            logger.exception("Could not record activity for user %s", user_id)

        while True:
            raw = await _receive_frame(websocket)
            if raw is None:
                continue
            await relay.handle_frame(connection, raw, storage)
    except WebSocketDisconnect as exc:
        logger.debug("Socket for user %s closed with code %s", user_id, exc.code)
    finally:
        relay.disconnect(connection)
