"""
Ratings Service

Maintains the derived rating fields on Book:
- average_rating: mean of the book's review ratings, one decimal, 0 if none
- review_count: number of reviews

RatingAggregator.recompute is the only writer of these fields. It rescans
the book's reviews on every call instead of applying deltas, so a missed or
duplicated call can never leave the aggregate permanently wrong: the next
recompute repairs it.

recompute() runs inside the caller's transaction and does not commit. The
triggering review write and the aggregate refresh are committed together.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bibliobuzz.exceptions import NotFoundError
from bibliobuzz.models.book import Book
from bibliobuzz.models.review import Review

logger = logging.getLogger(__name__)

ONE_DECIMAL = Decimal("0.1")


def mean_rating(total: int, count: int) -> Decimal:
    """
    Exact mean rounded half-up to one decimal; 0 when count is 0.

    Example:
        >>> mean_rating(8, 2)
        Decimal('4.0')
        >>> mean_rating(11, 3)
        Decimal('3.7')
    """
    if count == 0:
        return Decimal("0")
    return (Decimal(total) / Decimal(count)).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)


class RatingAggregator:
    """Recomputes and reports book rating statistics."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def recompute(self, book_id: int) -> Book | None:
        """
        Recalculate a book's average_rating and review_count.

        The book row is locked (SELECT ... FOR UPDATE) on backends that
        support it, so concurrent recomputes of one book are serialized.
        SQLite ignores the lock clause.

        Args:
            book_id: ID of the book to refresh

        Returns:
            The refreshed book, or None if the book no longer exists
        """
        book = self.db.execute(
            select(Book).where(Book.id == book_id).with_for_update()
        ).scalar_one_or_none()
        if book is None:
            return None

        # Make pending review inserts/updates/deletes visible to the aggregate
        self.db.flush()

        count, total = self.db.execute(
            select(
                func.count(Review.id),
                func.coalesce(func.sum(Review.rating), 0),
            ).where(Review.book_id == book_id)
        ).one()

        book.review_count = count
        book.average_rating = mean_rating(int(total), count)
        self.db.flush()

        logger.debug(
            f"Recomputed rating for book {book_id}: "
            f"avg={book.average_rating} count={book.review_count}"
        )
        return book

    def recompute_all(self) -> int:
        """
        Recalculate rating aggregations for all books and commit.

        Useful for repairing aggregates after manual data changes.

        Returns:
            Number of books updated
        """
        book_ids = self.db.execute(select(Book.id)).scalars().all()

        for book_id in book_ids:
            self.recompute(book_id)
        self.db.commit()

        logger.info(f"Recomputed ratings for {len(book_ids)} books")
        return len(book_ids)

    def stats(self, book_id: int) -> dict:
        """
        Rating statistics for a book: stored aggregate plus distribution.

        Raises:
            NotFoundError: If the book does not exist
        """
        book = self.db.get(Book, book_id)
        if book is None:
            raise NotFoundError(f"Book with id {book_id} not found")

        distribution = {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}
        rows = self.db.execute(
            select(Review.rating, func.count(Review.id))
            .where(Review.book_id == book_id)
            .group_by(Review.rating)
        ).all()
        for rating, count in rows:
            distribution[rating] = count

        return {
            "book_id": book.id,
            "average_rating": float(book.average_rating),
            "review_count": book.review_count,
            "rating_distribution": distribution,
        }
