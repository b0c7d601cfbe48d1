"""
WebSocket Connection Manager

Tracks WebSocket subscribers per channel and broadcasts messages to them.

Channels:
- "books": catalog and rating events for every book
- "book:{id}": events for one book (rating updates, reviews, likes)

All channels are public; events carry only data already visible through
the public read endpoints.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)

BOOKS_CHANNEL = "books"
BOOK_CHANNEL_PATTERN = re.compile(r"^book:\d+$")


def book_channel(book_id: int) -> str:
    return f"book:{book_id}"


def is_valid_channel(channel: str) -> bool:
    return channel == BOOKS_CHANNEL or bool(BOOK_CHANNEL_PATTERN.match(channel))


@dataclass
class Connection:
    """A subscribed WebSocket with metadata."""

    websocket: WebSocket
    connected_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class ConnectionManager:
    """
    Manages WebSocket connections across channels.

    Usage:
        manager = get_connection_manager()
        await manager.connect(websocket, "book:1")
        await manager.broadcast("book:1", {"type": "book.rating_updated", ...})
        manager.disconnect(websocket, "book:1")
    """

    def __init__(self) -> None:
        self.active_connections: dict[str, list[Connection]] = {}

    async def connect(self, websocket: WebSocket, channel: str) -> bool:
        """
        Accept a WebSocket and subscribe it to a channel.

        Returns:
            False (without accepting) if the channel name is invalid
        """
        if not is_valid_channel(channel):
            logger.warning(f"Rejected subscription to unknown channel '{channel}'")
            return False

        await websocket.accept()
        self.active_connections.setdefault(channel, []).append(Connection(websocket))
        logger.info(
            f"WebSocket joined '{channel}' ({self.get_channel_count(channel)} subscribers)"
        )
        return True

    def disconnect(self, websocket: WebSocket, channel: str) -> None:
        """Remove a WebSocket from a channel."""
        connections = self.active_connections.get(channel, [])
        self.active_connections[channel] = [
            c for c in connections if c.websocket is not websocket
        ]
        if not self.active_connections[channel]:
            del self.active_connections[channel]

    async def broadcast(self, channel: str, message: dict[str, Any]) -> int:
        """
        Send a JSON message to every subscriber of a channel.

        Subscribers whose socket fails are dropped.

        Returns:
            Number of subscribers the message was delivered to
        """
        sent = 0
        dead: list[WebSocket] = []

        for connection in list(self.active_connections.get(channel, [])):
            try:
                await connection.websocket.send_json(message)
                sent += 1
            except Exception as e:
                logger.warning(f"Dropping WebSocket on '{channel}': {e}")
                dead.append(connection.websocket)

        for websocket in dead:
            self.disconnect(websocket, channel)

        return sent

    def get_channel_count(self, channel: str) -> int:
        return len(self.active_connections.get(channel, []))

    def get_total_connections(self) -> int:
        return sum(len(c) for c in self.active_connections.values())

    def get_stats(self) -> dict[str, Any]:
        return {
            "total_connections": self.get_total_connections(),
            "channels": {
                channel: len(connections)
                for channel, connections in self.active_connections.items()
            },
        }


_manager = ConnectionManager()


def get_connection_manager() -> ConnectionManager:
    """Process-wide connection manager."""
    return _manager
