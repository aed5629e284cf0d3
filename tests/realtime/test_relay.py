"""Tests for frame routing in the message relay."""

import json
import logging

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from playsphere.models import Message
from playsphere.realtime import Connection, ConnectionRegistry, MessageRelay
from playsphere.realtime.relay import NOT_A_MEMBER, SENDER_MISMATCH

from .fakes import FakeWebSocket


@pytest.fixture()
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture()
def relay(registry: ConnectionRegistry) -> MessageRelay:
    return MessageRelay(registry)


async def _online(relay: MessageRelay, user_id: int) -> Connection:
    conn = Connection(FakeWebSocket(), user_id)
    await relay.connect(conn)
    return conn


def _frame(**fields) -> str:
    return json.dumps(fields)


def _messages(db_session) -> list[Message]:
    return list(db_session.scalars(select(Message).order_by(Message.id)))


class TestConnectLifecycle:
    @pytest.mark.asyncio
    async def test_second_socket_supersedes_first(self, relay, registry) -> None:
        first = await _online(relay, 1)
        second = await _online(relay, 1)

        assert registry.lookup(1) is second
        assert first.websocket.closed_with == (4000, "superseded")
        assert second.websocket.closed_with is None

    @pytest.mark.asyncio
    async def test_disconnect_of_superseded_socket_keeps_new_one(self, relay, registry) -> None:
        first = await _online(relay, 1)
        second = await _online(relay, 1)

        relay.disconnect(first)

        assert registry.lookup(1) is second

    @pytest.mark.asyncio
    async def test_shutdown_closes_everything(self, relay, registry) -> None:
        a = await _online(relay, 1)
        b = await _online(relay, 2)

        await relay.shutdown()

        assert len(registry) == 0
        assert a.websocket.closed_with[0] == 1001
        assert b.websocket.closed_with[0] == 1001


class TestDirectMessages:
    @pytest.mark.asyncio
    async def test_online_recipient_gets_frame_and_sender_gets_echo(
        self, relay, storage, db_session, test_user, other_user
    ) -> None:
        sender = await _online(relay, test_user.id)
        recipient = await _online(relay, other_user.id)

        await relay.handle_frame(
            sender,
            _frame(type="message", fromUserId=test_user.id, toUserId=other_user.id, content="gg"),
            storage,
        )

        [stored] = _messages(db_session)
        assert stored.to_user_id == other_user.id
        assert stored.group_id is None
        assert stored.is_read is False
        assert stored.read_at is None
        assert stored.type == "text"

        [delivered] = recipient.websocket.sent
        [echo] = sender.websocket.sent
        assert delivered == echo
        assert delivered["type"] == "message"
        assert delivered["id"] == stored.id
        assert delivered["fromUserId"] == test_user.id
        assert delivered["toUserId"] == other_user.id
        assert delivered["groupId"] is None
        assert delivered["content"] == "gg"
        assert delivered["isRead"] is False
        assert delivered["contentType"] == "text"

    @pytest.mark.asyncio
    async def test_offline_recipient_message_is_stored_and_echoed(
        self, relay, storage, db_session, test_user, other_user
    ) -> None:
        sender = await _online(relay, test_user.id)

        await relay.handle_frame(
            sender, _frame(type="message", toUserId=other_user.id, content="later"), storage
        )

        assert len(_messages(db_session)) == 1
        assert len(sender.websocket.frames_of("message")) == 1

    @pytest.mark.asyncio
    async def test_image_markdown_is_tagged(
        self, relay, storage, db_session, test_user, other_user
    ) -> None:
        sender = await _online(relay, test_user.id)

        await relay.handle_frame(
            sender,
            _frame(type="message", toUserId=other_user.id, content="![clip](/uploads/a.png)"),
            storage,
        )

        assert _messages(db_session)[0].type == "image"
        assert sender.websocket.sent[0]["contentType"] == "image"

    @pytest.mark.asyncio
    async def test_same_content_twice_creates_two_rows(
        self, relay, storage, db_session, test_user, other_user
    ) -> None:
        sender = await _online(relay, test_user.id)
        raw = _frame(type="message", toUserId=other_user.id, content="hi")

        await relay.handle_frame(sender, raw, storage)
        await relay.handle_frame(sender, raw, storage)

        first, second = _messages(db_session)
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_sender_mismatch_is_rejected(
        self, relay, storage, db_session, test_user, other_user
    ) -> None:
        sender = await _online(relay, test_user.id)
        victim = await _online(relay, other_user.id)

        await relay.handle_frame(
            sender,
            _frame(type="message", fromUserId=other_user.id, toUserId=other_user.id, content="x"),
            storage,
        )

        assert _messages(db_session) == []
        assert sender.websocket.sent == [{"type": "error", "message": SENDER_MISMATCH}]
        assert victim.websocket.sent == []

    @pytest.mark.asyncio
    async def test_unknown_recipient_is_logged_without_frame(
        self, relay, storage, db_session, test_user, caplog
    ) -> None:
        sender = await _online(relay, test_user.id)

        with caplog.at_level(logging.WARNING, logger="playsphere.realtime.relay"):
            await relay.handle_frame(
                sender, _frame(type="message", toUserId=9999, content="hello?"), storage
            )

        assert _messages(db_session) == []
        assert sender.websocket.sent == []
        assert "Recipient not found" in caplog.text

    @pytest.mark.asyncio
    async def test_sending_refreshes_last_active(
        self, relay, storage, db_session, test_user, other_user
    ) -> None:
        before = test_user.last_active
        sender = await _online(relay, test_user.id)

        await relay.handle_frame(
            sender, _frame(type="message", toUserId=other_user.id, content="ping"), storage
        )

        db_session.refresh(test_user)
        assert test_user.last_active >= before


class TestGroupMessages:
    @pytest.mark.asyncio
    async def test_fan_out_to_online_members_except_sender(
        self, relay, storage, db_session, group, test_user, other_user, third_user
    ) -> None:
        storage.add_group_member(group.id, third_user.id, test_user.id)
        owner = await _online(relay, test_user.id)
        member = await _online(relay, other_user.id)
        # third_user stays offline

        await relay.handle_frame(
            owner, _frame(type="groupMessage", groupId=group.id, content="raid at 9"), storage
        )

        [stored] = _messages(db_session)
        assert stored.group_id == group.id
        assert stored.to_user_id is None

        assert len(member.websocket.frames_of("groupMessage")) == 1
        assert len(owner.websocket.frames_of("groupMessage")) == 1
        frame = member.websocket.sent[0]
        assert frame["groupId"] == group.id
        assert frame["toUserId"] is None
        assert frame["content"] == "raid at 9"

    @pytest.mark.asyncio
    async def test_non_member_gets_error_and_nothing_is_stored(
        self, relay, storage, db_session, group, other_user, third_user
    ) -> None:
        outsider = await _online(relay, third_user.id)
        member = await _online(relay, other_user.id)

        await relay.handle_frame(
            outsider, _frame(type="groupMessage", groupId=group.id, content="let me in"), storage
        )

        assert _messages(db_session) == []
        assert outsider.websocket.sent == [{"type": "error", "message": NOT_A_MEMBER}]
        assert member.websocket.sent == []

    @pytest.mark.asyncio
    async def test_membership_changes_apply_to_next_send(
        self, relay, storage, group, test_user, other_user, third_user
    ) -> None:
        owner = await _online(relay, test_user.id)
        newcomer = await _online(relay, third_user.id)
        leaver = await _online(relay, other_user.id)

        storage.add_group_member(group.id, third_user.id, test_user.id)
        storage.remove_group_member(group.id, other_user.id, other_user.id)
        await relay.handle_frame(
            owner, _frame(type="groupMessage", groupId=group.id, content="roster"), storage
        )

        assert len(newcomer.websocket.frames_of("groupMessage")) == 1
        assert leaver.websocket.sent == []

    @pytest.mark.asyncio
    async def test_superseded_socket_receives_nothing(
        self, relay, storage, group, test_user, other_user
    ) -> None:
        owner = await _online(relay, test_user.id)
        old_tab = await _online(relay, other_user.id)
        new_tab = await _online(relay, other_user.id)

        await relay.handle_frame(
            owner, _frame(type="groupMessage", groupId=group.id, content="hi"), storage
        )

        assert old_tab.websocket.sent == []
        assert len(new_tab.websocket.frames_of("groupMessage")) == 1


class TestTyping:
    @pytest.mark.asyncio
    async def test_direct_typing_is_forwarded_not_stored(
        self, relay, storage, db_session, test_user, other_user
    ) -> None:
        sender = await _online(relay, test_user.id)
        recipient = await _online(relay, other_user.id)

        await relay.handle_frame(
            sender, _frame(type="typing", toUserId=other_user.id, isTyping=True), storage
        )

        assert recipient.websocket.sent == [
            {"type": "typing", "fromUserId": test_user.id, "toUserId": other_user.id, "isTyping": True}
        ]
        assert sender.websocket.sent == []
        assert _messages(db_session) == []

    @pytest.mark.asyncio
    async def test_typing_to_offline_user_is_dropped(self, relay, storage, test_user, other_user) -> None:
        sender = await _online(relay, test_user.id)

        await relay.handle_frame(
            sender, _frame(type="typing", toUserId=other_user.id, isTyping=True), storage
        )

        assert sender.websocket.sent == []

    @pytest.mark.asyncio
    async def test_group_typing_reaches_other_members(
        self, relay, storage, group, test_user, other_user
    ) -> None:
        owner = await _online(relay, test_user.id)
        member = await _online(relay, other_user.id)

        await relay.handle_frame(
            member, _frame(type="groupTyping", groupId=group.id, isTyping=False), storage
        )

        assert owner.websocket.sent == [
            {"type": "groupTyping", "fromUserId": other_user.id, "groupId": group.id, "isTyping": False}
        ]
        assert member.websocket.sent == []

    @pytest.mark.asyncio
    async def test_group_typing_from_non_member_gets_error(
        self, relay, storage, group, test_user, third_user
    ) -> None:
        owner = await _online(relay, test_user.id)
        outsider = await _online(relay, third_user.id)

        await relay.handle_frame(
            outsider, _frame(type="groupTyping", groupId=group.id, isTyping=True), storage
        )

        assert outsider.websocket.sent == [{"type": "error", "message": NOT_A_MEMBER}]
        assert owner.websocket.sent == []


class TestFrameBoundary:
    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            json.dumps({"type": "unknown"}),
            json.dumps({"type": "message", "content": "missing recipient"}),
            json.dumps({"type": "typing", "toUserId": "abc", "isTyping": True}),
        ],
    )
    @pytest.mark.asyncio
    async def test_malformed_frames_are_logged_and_ignored(
        self, relay, storage, test_user, caplog, raw
    ) -> None:
        conn = await _online(relay, test_user.id)

        with caplog.at_level(logging.WARNING, logger="playsphere.realtime.relay"):
            await relay.handle_frame(conn, raw, storage)

        assert conn.websocket.sent == []
        assert "malformed frame" in caplog.text

    @pytest.mark.asyncio
    async def test_persistence_failure_rolls_back_and_keeps_going(
        self, relay, storage, db_session, test_user, other_user, mocker
    ) -> None:
        conn = await _online(relay, test_user.id)
        mocker.patch.object(
            storage,
            "create_direct_message",
            side_effect=OperationalError("INSERT", {}, Exception("disk full")),
        )
        rollback = mocker.spy(storage, "rollback")

        await relay.handle_frame(
            conn, _frame(type="message", toUserId=other_user.id, content="lost"), storage
        )

        rollback.assert_called_once()
        assert conn.websocket.sent == []
        assert _messages(db_session) == []

    @pytest.mark.asyncio
    async def test_notify_read_pushes_receipt_to_sender(
        self, relay, storage, test_user, other_user
    ) -> None:
        sender = await _online(relay, test_user.id)
        message = storage.create_direct_message(test_user.id, other_user.id, "seen?")
        message = storage.mark_message_read(message.id, other_user.id)

        assert await relay.notify_read(message) is True

        [receipt] = sender.websocket.sent
        assert receipt["type"] == "read"
        assert receipt["id"] == message.id
        assert receipt["readAt"] is not None
