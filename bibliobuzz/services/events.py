"""
Event System for Real-Time Updates

Publishes book, review, rating and like events to WebSocket subscribers.

Events are published from FastAPI background tasks after the response has
been sent, so delivery never delays or fails a mutation. Publishing is best
effort: a client that misses an event re-reads the book.

Usage:
    background_tasks.add_task(
        publish_rating_update, book.id, book.average_rating, book.review_count
    )
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any

from bibliobuzz.services.websocket import BOOKS_CHANNEL, book_channel, get_connection_manager

logger = logging.getLogger(__name__)


class EventType(StrEnum):
    """Types of events that can be published."""

    BOOK_CREATED = "book.created"
    BOOK_UPDATED = "book.updated"
    BOOK_DELETED = "book.deleted"
    BOOK_RATING_UPDATED = "book.rating_updated"

    REVIEW_CREATED = "review.created"
    REVIEW_UPDATED = "review.updated"
    REVIEW_DELETED = "review.deleted"
    REVIEW_LIKES_UPDATED = "review.likes_updated"


@dataclass
class Event:
    """An event bound for one or more channels."""

    type: EventType
    data: dict[str, Any]
    channels: list[str]
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }


async def publish(event: Event) -> int:
    """
    Broadcast an event to all of its channels.

    Returns:
        Total number of deliveries
    """
    manager = get_connection_manager()
    message = event.to_dict()
    total = 0
    for channel in event.channels:
        sent = await manager.broadcast(channel, message)
        logger.debug(f"Published {event.type.value} to '{channel}': {sent} clients")
        total += sent
    return total


async def publish_book_event(event_type: EventType, book_id: int, data: dict[str, Any]) -> int:
    """Catalog change, sent to "books" and "book:{id}"."""
    return await publish(Event(
        type=event_type,
        data={"book_id": book_id, **data},
        channels=[BOOKS_CHANNEL, book_channel(book_id)],
    ))


async def publish_review_event(
    event_type: EventType,
    book_id: int,
    review_id: int,
    data: dict[str, Any] | None = None,
) -> int:
    """Review created/updated/deleted, sent to "book:{id}"."""
    return await publish(Event(
        type=event_type,
        data={"book_id": book_id, "review_id": review_id, **(data or {})},
        channels=[book_channel(book_id)],
    ))


async def publish_rating_update(
    book_id: int,
    average_rating: Decimal | float,
    review_count: int,
) -> int:
    """New aggregate for a book, sent to "books" and "book:{id}"."""
    return await publish(Event(
        type=EventType.BOOK_RATING_UPDATED,
        data={
            "book_id": book_id,
            "average_rating": float(average_rating),
            "review_count": review_count,
        },
        channels=[BOOKS_CHANNEL, book_channel(book_id)],
    ))


async def publish_likes_update(book_id: int, review_id: int, likes: int) -> int:
    """New like count for a review, sent to "book:{id}"."""
    return await publish(Event(
        type=EventType.REVIEW_LIKES_UPDATED,
        data={"book_id": book_id, "review_id": review_id, "likes": likes},
        channels=[book_channel(book_id)],
    ))
