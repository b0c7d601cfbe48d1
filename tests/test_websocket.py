"""
WebSocket Tests

- ConnectionManager subscription bookkeeping and broadcasting
- /ws/{channel} endpoint: welcome message, ping/pong, channel validation
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from bibliobuzz.services.websocket import ConnectionManager, book_channel, is_valid_channel


def make_socket(fail: bool = False) -> AsyncMock:
    websocket = AsyncMock()
    if fail:
        websocket.send_json.side_effect = RuntimeError("connection closed")
    return websocket


# =============================================================================
# Channel Names
# =============================================================================


class TestChannels:

    @pytest.mark.parametrize("channel", ["books", "book:1", "book:42"])
    def test_valid(self, channel):
        assert is_valid_channel(channel)

    @pytest.mark.parametrize("channel", ["reviews", "book:", "book:abc", "user:1", "books2"])
    def test_invalid(self, channel):
        assert not is_valid_channel(channel)

    def test_book_channel(self):
        assert book_channel(7) == "book:7"


# =============================================================================
# ConnectionManager Unit Tests
# =============================================================================


class TestConnectionManager:

    def test_initial_state(self):
        manager = ConnectionManager()
        assert manager.get_total_connections() == 0
        assert manager.get_stats() == {"total_connections": 0, "channels": {}}

    @pytest.mark.asyncio
    async def test_connect_accepts_and_tracks(self):
        manager = ConnectionManager()
        websocket = make_socket()

        assert await manager.connect(websocket, "book:1") is True

        websocket.accept.assert_awaited_once()
        assert manager.get_channel_count("book:1") == 1

    @pytest.mark.asyncio
    async def test_connect_rejects_unknown_channel(self):
        manager = ConnectionManager()
        websocket = make_socket()

        assert await manager.connect(websocket, "reviews") is False

        websocket.accept.assert_not_awaited()
        assert manager.get_total_connections() == 0

    @pytest.mark.asyncio
    async def test_disconnect(self):
        manager = ConnectionManager()
        websocket = make_socket()
        await manager.connect(websocket, "books")

        manager.disconnect(websocket, "books")

        assert manager.get_stats()["channels"] == {}

    @pytest.mark.asyncio
    async def test_broadcast_only_to_channel(self):
        manager = ConnectionManager()
        subscriber, bystander = make_socket(), make_socket()
        await manager.connect(subscriber, "book:1")
        await manager.connect(bystander, "book:2")

        sent = await manager.broadcast("book:1", {"type": "review.created"})

        assert sent == 1
        subscriber.send_json.assert_awaited_once_with({"type": "review.created"})
        bystander.send_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_broadcast_drops_dead_sockets(self):
        manager = ConnectionManager()
        alive, dead = make_socket(), make_socket(fail=True)
        await manager.connect(alive, "books")
        await manager.connect(dead, "books")

        sent = await manager.broadcast("books", {"type": "book.created"})

        assert sent == 1
        assert manager.get_channel_count("books") == 1


# =============================================================================
# WebSocket Endpoint Tests
# =============================================================================


class TestWebSocketEndpoint:

    def test_connect_to_books_channel(self, client: TestClient):
        with client.websocket_connect("/ws/books") as websocket:
            data = websocket.receive_json()
            assert data["type"] == "connected"
            assert data["channel"] == "books"

    def test_connect_to_book_channel(self, client: TestClient):
        with client.websocket_connect("/ws/book:1") as websocket:
            data = websocket.receive_json()
            assert data["channel"] == "book:1"

    def test_unknown_channel_rejected(self, client: TestClient):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/ws/reviews"):
                pass

        assert exc_info.value.code == 1008

    def test_ping_pong(self, client: TestClient):
        with client.websocket_connect("/ws/books") as websocket:
            websocket.receive_json()

            websocket.send_json({"type": "ping", "timestamp": "2024-01-20T12:00:00Z"})

            data = websocket.receive_json()
            assert data == {"type": "pong", "timestamp": "2024-01-20T12:00:00Z"}

    def test_unknown_message_type(self, client: TestClient):
        with client.websocket_connect("/ws/books") as websocket:
            websocket.receive_json()

            websocket.send_json({"type": "subscribe"})

            data = websocket.receive_json()
            assert data["type"] == "error"
            assert "Unknown message type" in data["message"]
