"""
Event Publishing Tests

- Event serialization and channel routing
- Mutations schedule the matching events after the response
"""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from bibliobuzz.models import Book, Review, User
from bibliobuzz.services.events import (
    Event,
    EventType,
    publish_book_event,
    publish_likes_update,
    publish_rating_update,
    publish_review_event,
)
from bibliobuzz.services.security import create_session_token


def get_auth_header(user: User) -> dict:
    token = create_session_token(user.id, user.session_version)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def mock_manager():
    with patch("bibliobuzz.services.events.get_connection_manager") as mock_get_manager:
        manager = MagicMock()
        manager.broadcast = AsyncMock(return_value=1)
        mock_get_manager.return_value = manager
        yield manager


def broadcast_channels(manager: MagicMock) -> list[str]:
    return [c.args[0] for c in manager.broadcast.call_args_list]


# =============================================================================
# Event Tests
# =============================================================================


class TestEvent:

    def test_event_type_values(self):
        assert EventType.BOOK_RATING_UPDATED == "book.rating_updated"
        assert EventType.REVIEW_LIKES_UPDATED == "review.likes_updated"

    def test_to_dict(self):
        event = Event(
            type=EventType.BOOK_CREATED,
            data={"book_id": 1},
            channels=["books"],
            timestamp=datetime(2024, 1, 20, 12, 0, 0, tzinfo=UTC),
        )

        assert event.to_dict() == {
            "type": "book.created",
            "data": {"book_id": 1},
            "timestamp": "2024-01-20T12:00:00+00:00",
        }


# =============================================================================
# Publishing
# =============================================================================


class TestPublish:

    @pytest.mark.asyncio
    async def test_rating_update_channels_and_payload(self, mock_manager):
        sent = await publish_rating_update(3, Decimal("4.5"), 2)

        assert sent == 2
        assert broadcast_channels(mock_manager) == ["books", "book:3"]
        message = mock_manager.broadcast.call_args.args[1]
        assert message["type"] == "book.rating_updated"
        assert message["data"] == {"book_id": 3, "average_rating": 4.5, "review_count": 2}

    @pytest.mark.asyncio
    async def test_review_event_goes_to_book_channel(self, mock_manager):
        await publish_review_event(EventType.REVIEW_DELETED, book_id=3, review_id=9)

        assert broadcast_channels(mock_manager) == ["book:3"]

    @pytest.mark.asyncio
    async def test_likes_update(self, mock_manager):
        await publish_likes_update(book_id=3, review_id=9, likes=4)

        message = mock_manager.broadcast.call_args.args[1]
        assert message["data"] == {"book_id": 3, "review_id": 9, "likes": 4}

    @pytest.mark.asyncio
    async def test_book_event_without_subscribers(self, mock_manager):
        mock_manager.broadcast.return_value = 0

        sent = await publish_book_event(EventType.BOOK_DELETED, 3, {})

        assert sent == 0
        assert broadcast_channels(mock_manager) == ["books", "book:3"]


# =============================================================================
# Mutations Schedule Events
# =============================================================================


class TestEventsFromEndpoints:

    def test_create_review_publishes_rating_update(
        self, client: TestClient, sample_book: Book, sample_user: User
    ):
        with patch("bibliobuzz.routers.reviews.publish_rating_update", new=AsyncMock()) as publish:
            client.post(
                "/api/reviews",
                json={"book": sample_book.id, "rating": 5, "title": "Superb", "content": "Loved it."},
                headers=get_auth_header(sample_user),
            )

        publish.assert_awaited_once_with(sample_book.id, Decimal("5.0"), 1)

    def test_text_edit_does_not_publish_rating_update(self, client: TestClient, sample_review: Review):
        with patch("bibliobuzz.routers.reviews.publish_rating_update", new=AsyncMock()) as publish:
            client.put(
                f"/api/reviews/{sample_review.id}",
                json={"title": "Still great"},
                headers=get_auth_header(sample_review.user),
            )

        publish.assert_not_awaited()

    def test_repeated_like_publishes_once(
        self, client: TestClient, sample_review: Review, second_user: User
    ):
        headers = get_auth_header(second_user)
        with patch("bibliobuzz.routers.reviews.publish_likes_update", new=AsyncMock()) as publish:
            client.put(f"/api/reviews/{sample_review.id}/like", headers=headers)
            client.put(f"/api/reviews/{sample_review.id}/like", headers=headers)

        publish.assert_awaited_once_with(sample_review.book_id, sample_review.id, 1)
