"""Routing of chat and typing frames between connected users.

The relay owns no state of its own besides the :class:`ConnectionRegistry`.
Messages are persisted through :class:`~playsphere.services.storage.Storage`
before they are pushed, so a recipient who is offline finds them in history.
Delivery is fire-and-forget: there is no retry and no acknowledgement beyond
the echo sent back to the author.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from playsphere.core.settings import settings
from playsphere.models import Message
from playsphere.schemas.frames import (
    FRAME_GROUP_MESSAGE,
    FRAME_GROUP_TYPING,
    FRAME_MESSAGE,
    FRAME_TYPING,
    DirectMessageFrame,
    GroupMessageFrame,
    GroupTypingFrame,
    TypingFrame,
    error_frame,
    message_frame,
    parse_frame,
    read_frame,
    typing_frame,
)
from playsphere.services.errors import PermissionDeniedError, StorageError
from playsphere.services.storage import Storage

from .registry import Connection, ConnectionRegistry

logger = logging.getLogger(__name__)

NOT_A_MEMBER = "You are not a member of this group"
SENDER_MISMATCH = "Sender does not match the authenticated user"

# 1001 "going away" is what browsers expect on a server restart.
SHUTDOWN_CLOSE_CODE = 1001


class MessageRelay:
    """Route inbound frames to the right sockets."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        superseded_close_code: int | None = None,
    ) -> None:
        self.registry = registry
        self.superseded_close_code = (
            superseded_close_code
            if superseded_close_code is not None
            else settings.superseded_close_code
        )
        self._handlers: dict[str, Callable[[int, Any, Storage], Awaitable[Any]]] = {
            FRAME_MESSAGE: self._on_direct_message,
            FRAME_GROUP_MESSAGE: self._on_group_message,
            FRAME_TYPING: self._on_typing,
            FRAME_GROUP_TYPING: self._on_group_typing,
        }

    # ------------------------------------------------------------- lifecycle

    async def connect(self, connection: Connection) -> None:
        """Register an accepted socket, closing any socket it replaces."""
        previous = self.registry.register(connection.user_id, connection)
        logger.info("User %s connected (%d online)", connection.user_id, len(self.registry))
        if previous is not None:
            logger.info("Closing superseded socket for user %s", connection.user_id)
            await previous.close(code=self.superseded_close_code, reason="superseded")

    def disconnect(self, connection: Connection) -> None:
        """Forget a socket that has closed."""
        if self.registry.unregister(connection.user_id, connection):
            logger.info(
                "User %s disconnected (%d online)", connection.user_id, len(self.registry)
            )

    async def shutdown(self) -> None:
        """Close every registered socket."""
        for connection in self.registry.connections():
            await connection.close(code=SHUTDOWN_CLOSE_CODE, reason="server shutdown")
            self.registry.unregister(connection.user_id, connection)

    # ---------------------------------------------------------------- inbound

    async def handle_frame(self, connection: Connection, raw: str | bytes, storage: Storage) -> None:
        """Process one raw frame read from ``connection``.

        Nothing raised here reaches the socket loop: malformed frames and
        persistence failures are logged, authorization failures answered
        with an error frame.
        """
        try:
            frame = parse_frame(raw)
        except ValidationError as exc:
            logger.warning(
                "Dropping malformed frame from user %s: %s",
                connection.user_id,
                exc.errors(include_url=False, include_input=False),
            )
            return

        if frame.from_user_id is not None and frame.from_user_id != connection.user_id:
            logger.warning(
                "User %s sent a frame claiming to be user %s",
                connection.user_id,
                frame.from_user_id,
            )
            await connection.send(error_frame(SENDER_MISMATCH))
            return

        handler = self._handlers[frame.type]
        try:
            await handler(connection.user_id, frame, storage)
        except PermissionDeniedError as exc:
            await connection.send(error_frame(str(exc)))
        except StorageError as exc:
            logger.warning("Frame %s from user %s rejected: %s", frame.type, connection.user_id, exc)
        except SQLAlchemyError:
            storage.rollback()
            logger.exception("Failed to persist %s from user %s", frame.type, connection.user_id)
        except Exception:
            logger.exception("Unexpected error handling %s from user %s", frame.type, connection.user_id)

    async def _on_direct_message(self, user_id: int, frame: DirectMessageFrame, storage: Storage) -> None:
        await self.send_direct_message(storage, user_id, frame.to_user_id, frame.content)

    async def _on_group_message(self, user_id: int, frame: GroupMessageFrame, storage: Storage) -> None:
        await self.send_group_message(storage, user_id, frame.group_id, frame.content)

    async def _on_typing(self, user_id: int, frame: TypingFrame, storage: Storage) -> None:
        await self.relay_typing(user_id, frame.to_user_id, frame.is_typing)

    async def _on_group_typing(self, user_id: int, frame: GroupTypingFrame, storage: Storage) -> None:
        await self.relay_group_typing(storage, user_id, frame.group_id, frame.is_typing)

    # -------------------------------------------------------------- operations

    async def send_direct_message(
        self, storage: Storage, from_user_id: int, to_user_id: int, content: str
    ) -> Message:
        """Persist a direct message, push it to the recipient and echo it to the sender."""
        message = storage.create_direct_message(from_user_id, to_user_id, content)
        storage.touch_user(from_user_id)

        frame = message_frame(message, FRAME_MESSAGE)
        delivered = await self._push(to_user_id, frame)
        await self._push(from_user_id, frame)
        logger.debug(
            "Message %s from %s to %s %s",
            message.id,
            from_user_id,
            to_user_id,
            "delivered" if delivered else "stored for later",
        )
        return message

    async def send_group_message(
        self, storage: Storage, from_user_id: int, group_id: int, content: str
    ) -> Message:
        """Persist a group message and fan it out to every online member.

        Raises:
            PermissionDeniedError: if the sender is not a member.
        """
        if not storage.is_group_member(group_id, from_user_id):
            raise PermissionDeniedError(NOT_A_MEMBER)

        message = storage.create_group_message(from_user_id, group_id, content)
        storage.touch_user(from_user_id)

        frame = message_frame(message, FRAME_GROUP_MESSAGE)
        delivered = 0
        for member_id in storage.get_group_member_ids(group_id):
            if member_id == from_user_id:
                continue
            if await self._push(member_id, frame):
                delivered += 1
        await self._push(from_user_id, frame)
        logger.debug(
            "Group message %s in group %s reached %d online member(s)",
            message.id,
            group_id,
            delivered,
        )
        return message

    async def relay_typing(self, from_user_id: int, to_user_id: int, is_typing: bool) -> bool:
        """Forward a typing state to one user; dropped when they are offline."""
        frame = typing_frame(
            FRAME_TYPING, from_user_id=from_user_id, to_user_id=to_user_id, is_typing=is_typing
        )
        return await self._push(to_user_id, frame)

    async def relay_group_typing(
        self, storage: Storage, from_user_id: int, group_id: int, is_typing: bool
    ) -> int:
        """Forward a typing state to the other online members of a group.

        Returns how many members received it.

        Raises:
            PermissionDeniedError: if the sender is not a member.
        """
        if not storage.is_group_member(group_id, from_user_id):
            raise PermissionDeniedError(NOT_A_MEMBER)

        frame = typing_frame(
            FRAME_GROUP_TYPING, from_user_id=from_user_id, group_id=group_id, is_typing=is_typing
        )
        delivered = 0
        for member_id in storage.get_group_member_ids(group_id):
            if member_id != from_user_id and await self._push(member_id, frame):
                delivered += 1
        return delivered

    async def notify_read(self, message: Message) -> bool:
        """Tell the author of a direct message that it has been read."""
        return await self._push(message.from_user_id, read_frame(message))

    async def _push(self, user_id: int, frame: dict[str, Any]) -> bool:
        connection = self.registry.lookup(user_id)
        if connection is None:
            return False
        return await connection.send(frame)
