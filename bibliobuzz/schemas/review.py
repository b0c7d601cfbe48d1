"""
Review Pydantic Schemas

Schemas:
- ReviewCreate: New review for a book
- ReviewUpdate: Partial edit of an own review
- ReviewResponse: Review with owner info and the caller's like state
- LikeResponse: Result of a like/unlike call

Title and content are required and must not be blank. The repository
re-checks the same rules so non-HTTP callers get identical behaviour.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bibliobuzz.schemas.book import BookResponse
from bibliobuzz.schemas.user import UserPublicResponse


def _not_blank(v: str | None) -> str | None:
    if v is not None:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
    return v


class ReviewCreate(BaseModel):
    """
    Schema for creating a review.

    Example request body:
    {
        "book": 42,
        "rating": 5,
        "title": "A must-read classic!",
        "content": "This book completely changed my perspective on..."
    }
    """

    book: int = Field(..., ge=1, description="ID of the book being reviewed")
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5 stars")
    title: str = Field(..., max_length=200, description="Review headline")
    content: str = Field(..., max_length=5000, description="Review text")

    @field_validator("title", "content")
    @classmethod
    def text_must_not_be_blank(cls, v: str) -> str:
        return _not_blank(v)


class ReviewUpdate(BaseModel):
    """All fields optional; only supplied fields change."""

    rating: int | None = Field(default=None, ge=1, le=5)
    title: str | None = Field(default=None, max_length=200)
    content: str | None = Field(default=None, max_length=5000)

    model_config = ConfigDict(extra="forbid")

    @field_validator("title", "content")
    @classmethod
    def text_must_not_be_blank(cls, v: str | None) -> str | None:
        return _not_blank(v)


class ReviewResponse(BaseModel):
    """
    Review as returned by the API.

    has_liked is computed for the caller; anonymous callers always see
    False.
    """

    id: int
    book_id: int
    user_id: int
    rating: int
    title: str
    content: str
    likes: int = Field(..., ge=0)
    has_liked: bool = False
    created_at: datetime
    updated_at: datetime
    user: UserPublicResponse

    model_config = ConfigDict(from_attributes=True)


class UserReviewResponse(ReviewResponse):
    """Own review with the reviewed book embedded (GET /reviews/user)."""

    book: BookResponse


class LikeResponse(BaseModel):
    """Settled like state after a like/unlike call."""

    review_id: int
    likes: int = Field(..., ge=0)
    has_liked: bool

    model_config = ConfigDict(from_attributes=True)
