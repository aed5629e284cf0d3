"""Tests for the connection registry and connection wrapper."""

import pytest
from starlette.websockets import WebSocketState

from playsphere.realtime import Connection, ConnectionRegistry

from .fakes import FakeWebSocket


def _connection(user_id: int, **kwargs) -> Connection:
    return Connection(FakeWebSocket(**kwargs), user_id)


class TestConnectionRegistry:
    def test_lookup_unknown_user_is_none(self) -> None:
        registry = ConnectionRegistry()
        assert registry.lookup(42) is None
        assert 42 not in registry
        assert len(registry) == 0

    def test_register_then_lookup(self) -> None:
        registry = ConnectionRegistry()
        conn = _connection(1)

        assert registry.register(1, conn) is None
        assert registry.lookup(1) is conn
        assert 1 in registry
        assert registry.online_user_ids() == [1]

    def test_register_returns_replaced_connection(self) -> None:
        registry = ConnectionRegistry()
        first, second = _connection(1), _connection(1)

        registry.register(1, first)
        previous = registry.register(1, second)

        assert previous is first
        assert registry.lookup(1) is second
        assert len(registry) == 1

    def test_reregistering_same_connection_returns_none(self) -> None:
        registry = ConnectionRegistry()
        conn = _connection(1)
        registry.register(1, conn)
        assert registry.register(1, conn) is None

    def test_unregister_removes_current_entry(self) -> None:
        registry = ConnectionRegistry()
        conn = _connection(1)
        registry.register(1, conn)

        assert registry.unregister(1, conn) is True
        assert registry.lookup(1) is None

    def test_stale_unregister_keeps_replacement(self) -> None:
        """A late close from an old socket must not evict the new one."""
        registry = ConnectionRegistry()
        old, new = _connection(1), _connection(1)
        registry.register(1, old)
        registry.register(1, new)

        assert registry.unregister(1, old) is False
        assert registry.lookup(1) is new

    def test_online_user_ids_sorted(self) -> None:
        registry = ConnectionRegistry()
        for user_id in (3, 1, 2):
            registry.register(user_id, _connection(user_id))
        assert registry.online_user_ids() == [1, 2, 3]


class TestConnection:
    @pytest.mark.asyncio
    async def test_send_pushes_frame(self) -> None:
        conn = _connection(1)
        assert await conn.send({"type": "typing"}) is True
        assert conn.websocket.sent == [{"type": "typing"}]

    @pytest.mark.asyncio
    async def test_send_on_closed_socket_returns_false(self) -> None:
        conn = _connection(1)
        conn.websocket.application_state = WebSocketState.DISCONNECTED

        assert conn.is_open is False
        assert await conn.send({"type": "typing"}) is False
        assert conn.websocket.sent == []

    @pytest.mark.asyncio
    async def test_send_failure_does_not_raise(self) -> None:
        conn = _connection(1, fail_on_send=True)
        assert await conn.send({"type": "message"}) is False

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self) -> None:
        conn = _connection(1)
        await conn.close(code=4000, reason="superseded")
        await conn.close(code=1000)
        assert conn.websocket.closed_with == (4000, "superseded")
