"""
ReviewLike Model

The like relation between users and reviews, one row per active like.

This table is the source of truth for likes. Review.likes is a cached count
of the rows for that review and User.liked_review_ids is read from it, so
the two views cannot diverge.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bibliobuzz.database import Base


class ReviewLike(Base):
    """
    A single (user, review) like.

    The composite primary key makes a duplicate like impossible at the
    database level; both columns are indexed for membership and count
    lookups from either side.
    """

    __tablename__ = "review_likes"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    review_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("reviews.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    user = relationship("User", back_populates="likes")
    review = relationship("Review", back_populates="like_rows")

    def __repr__(self) -> str:
        return f"<ReviewLike(user_id={self.user_id}, review_id={self.review_id})>"
