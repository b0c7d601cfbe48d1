"""
Rating Aggregate Tests

mean_rating rounding and RatingAggregator recompute/repair behaviour.
"""

from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from bibliobuzz.exceptions import NotFoundError
from bibliobuzz.models import Book, Review, User
from bibliobuzz.services.ratings import RatingAggregator, mean_rating


class TestMeanRating:

    @pytest.mark.parametrize(
        ("total", "count", "expected"),
        [
            (0, 0, Decimal("0")),
            (5, 1, Decimal("5.0")),
            (8, 2, Decimal("4.0")),
            (11, 3, Decimal("3.7")),
            (7, 3, Decimal("2.3")),
            (9, 2, Decimal("4.5")),
            # 4.25 rounds half-up, not to even
            (85, 20, Decimal("4.3")),
        ],
    )
    def test_rounding(self, total, count, expected):
        assert mean_rating(total, count) == expected


class TestRatingAggregator:

    def test_recompute_without_reviews(self, db_session: Session, sample_book: Book):
        book = RatingAggregator(db_session).recompute(sample_book.id)

        assert book.average_rating == Decimal("0")
        assert book.review_count == 0

    def test_recompute_missing_book(self, db_session: Session):
        assert RatingAggregator(db_session).recompute(99999) is None

    def test_recompute_all_repairs_stale_aggregate(
        self,
        db_session: Session,
        sample_book: Book,
        second_book: Book,
        sample_user: User,
        second_user: User,
    ):
        # Rows written behind the aggregator's back
        db_session.add_all([
            Review(book_id=sample_book.id, user_id=sample_user.id, rating=5, title="a", content="a"),
            Review(book_id=sample_book.id, user_id=second_user.id, rating=2, title="b", content="b"),
        ])
        db_session.commit()
        db_session.refresh(sample_book)
        assert sample_book.review_count == 0

        assert RatingAggregator(db_session).recompute_all() == 2

        db_session.refresh(sample_book)
        db_session.refresh(second_book)
        assert sample_book.review_count == 2
        assert sample_book.average_rating == Decimal("3.5")
        assert second_book.review_count == 0

    def test_stats_distribution(self, db_session: Session, sample_review: Review):
        stats = RatingAggregator(db_session).stats(sample_review.book_id)

        assert stats["average_rating"] == 4.0
        assert stats["review_count"] == 1
        assert stats["rating_distribution"] == {1: 0, 2: 0, 3: 0, 4: 1, 5: 0}

    def test_stats_missing_book(self, db_session: Session):
        with pytest.raises(NotFoundError):
            RatingAggregator(db_session).stats(99999)
