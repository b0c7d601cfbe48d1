"""
Like Ledger

Tracks which users like which reviews.

The review_likes table is the source of truth. After every membership
change Review.likes is re-derived by counting the relation, never by
incrementing or decrementing, so repeated or racing calls cannot make the
counter drift from the relation.

toggle() is the only mutating entry point. The like/unlike endpoints both
call it with the state they want; calling it without a desired state flips
the current membership.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bibliobuzz.exceptions import NotFoundError
from bibliobuzz.models.like import ReviewLike
from bibliobuzz.models.review import Review
from bibliobuzz.models.user import User
from bibliobuzz.services import authorization
from bibliobuzz.services.authorization import Action

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LikeResult:
    """Like state of one review as seen by one user."""

    review_id: int
    book_id: int
    likes: int
    has_liked: bool


class LikeLedger:
    """Idempotent like/unlike over the review_likes relation."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _get_review(self, review_id: int) -> Review:
        review = self.db.get(Review, review_id)
        if review is None:
            raise NotFoundError(f"Review with id {review_id} not found")
        return review

    def _is_member(self, user_id: int, review_id: int) -> bool:
        return self.db.execute(
            select(ReviewLike.user_id).where(
                ReviewLike.user_id == user_id,
                ReviewLike.review_id == review_id,
            )
        ).first() is not None

    def _count(self, review_id: int) -> int:
        return self.db.execute(
            select(func.count()).select_from(ReviewLike).where(
                ReviewLike.review_id == review_id
            )
        ).scalar_one()

    def status(self, user: User | None, review_id: int) -> LikeResult:
        """
        Current like state without changing anything.

        Raises:
            NotFoundError: If the review does not exist
        """
        review = self._get_review(review_id)
        has_liked = user is not None and self._is_member(user.id, review_id)
        return LikeResult(review.id, review.book_id, review.likes, has_liked)

    def toggle(
        self,
        user: User,
        review_id: int,
        desired: bool | None = None,
    ) -> LikeResult:
        """
        Change the user's like on a review.

        Args:
            user: The caller (must be authenticated)
            review_id: Target review
            desired: True to like, False to unlike, None to flip

        Returns:
            LikeResult with the settled like count and membership

        Raises:
            UnauthenticatedError: user is None
            NotFoundError: review does not exist
        """
        authorization.check(user, Action.REVIEW_LIKE)
        review = self._get_review(review_id)

        liked = self._is_member(user.id, review_id)
        target = (not liked) if desired is None else desired

        if target == liked:
            return LikeResult(review.id, review.book_id, review.likes, liked)

        if target:
            self.db.add(ReviewLike(user_id=user.id, review_id=review_id))
        else:
            like = self.db.get(ReviewLike, (user.id, review_id))
            if like is not None:
                self.db.delete(like)

        try:
            self.db.flush()
        except IntegrityError:
            # Another request from the same user inserted the row first;
            # membership is already what this call wanted.
            self.db.rollback()
            logger.info(f"Concurrent like on review {review_id} by user {user.id}")
            return self.status(user, review_id)

        review.likes = self._count(review_id)
        self.db.commit()

        logger.info(
            f"User {user.id} {'liked' if target else 'unliked'} review {review_id} "
            f"(likes={review.likes})"
        )
        return LikeResult(review.id, review.book_id, review.likes, target)
