"""
Review Repository

Owns review creation, editing and deletion, and keeps the book's rating
aggregate in step with every change.

Business Rules:
- One review per user per book; a duplicate raises ConflictError
- Rating is an integer 1-5; title and content must be non-empty
- Only the author may edit; the author or an admin may delete
- Deleting a review removes its likes
- Every create, rating change and delete recomputes the book aggregate in
  the same transaction as the write

Review lifecycle: absent -> created -> (edited)* -> deleted. A create after
a delete produces a new review with a new id.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from bibliobuzz.exceptions import ConflictError, NotFoundError, ValidationError
from bibliobuzz.models.book import Book
from bibliobuzz.models.like import ReviewLike
from bibliobuzz.models.review import Review
from bibliobuzz.models.user import User
from bibliobuzz.services import authorization
from bibliobuzz.services.authorization import Action
from bibliobuzz.services.ratings import RatingAggregator

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5
EDITABLE_FIELDS = {"rating", "title", "content"}


# =============================================================================
# Validation Helpers
# =============================================================================


def validate_rating(rating: Any) -> int:
    # bool is an int subclass; True is not a rating
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be an integer between 1 and 5")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError("Rating must be between 1 and 5")
    return rating


def validate_text(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Review {name} must not be empty")
    return value.strip()


class ReviewRepository:
    """
    Review persistence with uniqueness and aggregate maintenance.

    Usage:
        repo = ReviewRepository(db)
        review = repo.create(user, book_id=1, rating=5, title="...", content="...")
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.ratings = RatingAggregator(db)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------
    def _select(self):
        return select(Review).options(selectinload(Review.user))

    def get(self, review_id: int) -> Review:
        """
        Fetch a review with its owner loaded.

        Raises:
            NotFoundError: If the review does not exist
        """
        review = self.db.execute(
            self._select().where(Review.id == review_id)
        ).scalar_one_or_none()

        if review is None:
            raise NotFoundError(f"Review with id {review_id} not found")
        return review

    def list_by_book(self, book_id: int) -> Sequence[Review]:
        """Reviews of a book, newest first."""
        stmt = (
            self._select()
            .where(Review.book_id == book_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        return self.db.execute(stmt).scalars().all()

    def list_by_user(self, user_id: int) -> Sequence[Review]:
        """Reviews written by a user, newest first."""
        stmt = (
            self._select()
            .options(selectinload(Review.book))
            .where(Review.user_id == user_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        return self.db.execute(stmt).scalars().all()

    def count_by_user(self, user_id: int) -> int:
        return self.db.execute(
            select(func.count(Review.id)).where(Review.user_id == user_id)
        ).scalar_one()

    def _existing_review_id(self, user_id: int, book_id: int) -> int | None:
        return self.db.execute(
            select(Review.id).where(
                Review.book_id == book_id,
                Review.user_id == user_id,
            )
        ).scalar_one_or_none()

    def liked_ids(self, user: User | None, reviews: Iterable[Review]) -> set[int]:
        """Subset of the given reviews' ids that user currently likes."""
        review_ids = [review.id for review in reviews]
        if user is None or not review_ids:
            return set()

        stmt = select(ReviewLike.review_id).where(
            ReviewLike.user_id == user.id,
            ReviewLike.review_id.in_(review_ids),
        )
        return set(self.db.execute(stmt).scalars().all())

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------
    def create(
        self,
        user: User,
        book_id: int,
        rating: int,
        title: str,
        content: str,
    ) -> Review:
        """
        Create a review and refresh the book aggregate.

        Raises:
            ValidationError: rating out of range or empty text
            NotFoundError: book does not exist
            ConflictError: user already reviewed this book
        """
        rating = validate_rating(rating)
        title = validate_text("title", title)
        content = validate_text("content", content)

        if self.db.get(Book, book_id) is None:
            raise NotFoundError(f"Book with id {book_id} not found")

        if self._existing_review_id(user.id, book_id) is not None:
            raise ConflictError("You have already reviewed this book")

        review = Review(
            book_id=book_id,
            user_id=user.id,
            rating=rating,
            title=title,
            content=content,
            likes=0,
        )
        self.db.add(review)

        try:
            self.db.flush()
        except IntegrityError:
            # A concurrent create for the same (user, book) won the race
            self.db.rollback()
            raise ConflictError("You have already reviewed this book")

        self.ratings.recompute(book_id)
        self.db.commit()

        logger.info(f"User {user.id} reviewed book {book_id} (rating={rating})")
        return self.get(review.id)

    def update(
        self,
        actor: User,
        review_id: int,
        fields: dict[str, Any],
    ) -> tuple[Review, bool]:
        """
        Apply a partial update to a review. Owner only.

        Args:
            actor: The caller
            review_id: Review to edit
            fields: Subset of rating/title/content; other keys are rejected

        Returns:
            The updated review and whether its rating changed

        Raises:
            NotFoundError: review does not exist
            UnauthenticatedError / ForbiddenError: caller is not the owner
            ValidationError: invalid field values
        """
        review = self.get(review_id)
        authorization.check(actor, Action.REVIEW_UPDATE, review.user_id)

        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        changes: dict[str, Any] = {}
        if "rating" in fields:
            changes["rating"] = validate_rating(fields["rating"])
        for name in ("title", "content"):
            if name in fields:
                changes[name] = validate_text(name, fields[name])

        rating_changed = "rating" in changes and changes["rating"] != review.rating
        for name, value in changes.items():
            setattr(review, name, value)

        self.db.flush()
        if rating_changed:
            self.ratings.recompute(review.book_id)
        self.db.commit()

        logger.info(f"User {actor.id} updated review {review_id}")
        return self.get(review_id), rating_changed

    def delete(self, actor: User, review_id: int) -> int:
        """
        Delete a review, its likes, and refresh the book aggregate.

        Owner or admin only.

        Returns:
            ID of the book the review belonged to

        Raises:
            NotFoundError: review does not exist
            UnauthenticatedError / ForbiddenError: caller may not delete it
        """
        review = self.get(review_id)
        authorization.check(actor, Action.REVIEW_DELETE, review.user_id)

        book_id = review.book_id
        self.db.execute(delete(ReviewLike).where(ReviewLike.review_id == review_id))
        self.db.delete(review)
        self.db.flush()

        self.ratings.recompute(book_id)
        self.db.commit()

        logger.info(f"User {actor.id} deleted review {review_id} of book {book_id}")
        return book_id
