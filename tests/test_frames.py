"""Tests for socket frame parsing and construction."""

import pytest
from pydantic import ValidationError

from playsphere.models import Message
from playsphere.models.message import detect_content_type
from playsphere.schemas.frames import (
    DirectMessageFrame,
    GroupMessageFrame,
    GroupTypingFrame,
    TypingFrame,
    error_frame,
    message_frame,
    parse_frame,
    typing_frame,
)


class TestParseFrame:
    def test_direct_message(self) -> None:
        frame = parse_frame('{"type":"message","fromUserId":1,"toUserId":2,"content":"hi"}')
        assert isinstance(frame, DirectMessageFrame)
        assert (frame.from_user_id, frame.to_user_id, frame.content) == (1, 2, "hi")

    def test_sender_is_optional(self) -> None:
        frame = parse_frame('{"type":"groupMessage","groupId":7,"content":"yo"}')
        assert isinstance(frame, GroupMessageFrame)
        assert frame.from_user_id is None

    def test_typing_frames(self) -> None:
        assert isinstance(
            parse_frame('{"type":"typing","toUserId":2,"isTyping":true}'), TypingFrame
        )
        assert isinstance(
            parse_frame('{"type":"groupTyping","groupId":3,"isTyping":false}'), GroupTypingFrame
        )

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "[]",
            '{"content":"no type"}',
            '{"type":"read","id":1}',
            '{"type":"groupMessage","content":"no group"}',
            '{"type":"typing","toUserId":2}',
        ],
    )
    def test_invalid_frames_raise(self, raw: str) -> None:
        with pytest.raises(ValidationError):
            parse_frame(raw)


def test_detect_content_type() -> None:
    assert detect_content_type("![pic](https://cdn.example/a.png)") == "image"
    assert detect_content_type("look ![pic](https://cdn.example/a.png)") == "text"
    assert detect_content_type("plain text") == "text"


def test_typing_frame_shapes() -> None:
    assert typing_frame("typing", from_user_id=1, to_user_id=2, is_typing=True) == {
        "type": "typing",
        "fromUserId": 1,
        "toUserId": 2,
        "isTyping": True,
    }
    assert typing_frame("groupTyping", from_user_id=1, group_id=9, is_typing=False) == {
        "type": "groupTyping",
        "fromUserId": 1,
        "groupId": 9,
        "isTyping": False,
    }


def test_message_frame_carries_every_field(storage, test_user, other_user) -> None:
    message: Message = storage.create_direct_message(test_user.id, other_user.id, "hello")

    frame = message_frame(message, "message")

    assert set(frame) == {
        "type", "id", "fromUserId", "toUserId", "groupId", "content",
        "timestamp", "isRead", "readAt", "contentType",
    }
    assert isinstance(frame["timestamp"], str)


def test_error_frame() -> None:
    assert error_frame("nope") == {"type": "error", "message": "nope"}
