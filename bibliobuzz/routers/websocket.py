"""
WebSocket Router

Endpoints:
- /ws/{channel}: Subscribe to a channel for real-time updates

Channels:
- "books": Catalog events and rating updates for every book
- "book:{id}": Rating, review and like events for one book

Both channels are public. Unknown channel names are refused with close
code 1008 (policy violation).

Message format (received):
    {
        "type": "book.rating_updated",
        "data": {"book_id": 1, "average_rating": 4.5, "review_count": 2},
        "timestamp": "2024-01-20T12:00:00+00:00"
    }
"""

import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from bibliobuzz.services.websocket import get_connection_manager

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["WebSocket"],
)


@router.websocket("/ws/{channel}")
async def websocket_endpoint(websocket: WebSocket, channel: str):
    """
    Subscribe to a channel and keep the socket open until the client leaves.

    Clients may send {"type": "ping"} to keep the connection alive.
    """
    manager = get_connection_manager()

    connected = await manager.connect(websocket, channel)
    if not connected:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Unknown channel")
        return

    try:
        await websocket.send_json({
            "type": "connected",
            "channel": channel,
            "message": f"Connected to channel '{channel}'",
        })

        while True:
            data = await websocket.receive_json()
            await handle_message(websocket, data)

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected from channel '{channel}'")
    except Exception as e:
        logger.error(f"WebSocket error on '{channel}': {e}")
    finally:
        manager.disconnect(websocket, channel)


async def handle_message(websocket: WebSocket, data: dict[str, Any]) -> None:
    """Answer client messages. Only keep-alive pings are understood."""
    message_type = data.get("type", "") if isinstance(data, dict) else ""

    if message_type == "ping":
        await websocket.send_json({
            "type": "pong",
            "timestamp": data.get("timestamp"),
        })
    else:
        await websocket.send_json({
            "type": "error",
            "message": f"Unknown message type: {message_type}",
        })
