"""In-memory map of connected users to their live socket."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)


class Connection:
    """One authenticated socket bound to a user id."""

    def __init__(self, websocket: WebSocket, user_id: int) -> None:
        self.websocket = websocket
        self.user_id = user_id

    def __repr__(self) -> str:
        return f"Connection(user_id={self.user_id})"

    @property
    def is_open(self) -> bool:
        """Return True while both sides of the socket are connected."""
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send(self, frame: dict[str, Any]) -> bool:
        """Push one JSON frame; return False instead of raising on failure."""
        if not self.is_open:
            return False
        try:
            await self.websocket.send_json(frame)
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            logger.warning("Failed to push frame to user %s: %s", self.user_id, exc)
            return False
        return True

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        """Close the socket if it is still open."""
        if not self.is_open:
            return
        try:
            await self.websocket.close(code=code, reason=reason)
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            logger.debug("Ignoring close failure for user %s: %s", self.user_id, exc)


class ConnectionRegistry:
    """Live map from user id to that user's single current connection.

    Every method is synchronous, so on one event loop no locking is needed.
    Presence is defined by :meth:`lookup` alone.
    """

    def __init__(self) -> None:
        self._connections: dict[int, Connection] = {}

    def register(self, user_id: int, connection: Connection) -> Connection | None:
        """Make ``connection`` current for ``user_id``.

        Returns the connection it replaced, if any, so the caller can close it.
        """
        previous = self._connections.get(user_id)
        self._connections[user_id] = connection
        if previous is connection:
            return None
        return previous

    def lookup(self, user_id: int) -> Connection | None:
        """Return the current connection for ``user_id``, or None when offline."""
        return self._connections.get(user_id)

    def unregister(self, user_id: int, connection: Connection) -> bool:
        """Remove ``user_id`` only if its entry still points at ``connection``.

        A socket closing after a reconnect must not evict its replacement.
        """
        if self._connections.get(user_id) is not connection:
            return False
        del self._connections[user_id]
        return True

    def online_user_ids(self) -> list[int]:
        """Return ids of all registered users."""
        return sorted(self._connections)

    def connections(self) -> Iterator[Connection]:
        """Iterate over a snapshot of registered connections."""
        return iter(list(self._connections.values()))

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._connections
