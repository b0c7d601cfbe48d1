"""
Book Pydantic Schemas

Schemas:
- BookCreate: New catalog entry (admin)
- BookUpdate: Partial update (admin)
- BookResponse: Book including the derived rating fields
- BookListResponse: Paginated list
- BookRatingStats: Aggregate plus rating distribution

average_rating and review_count appear only in responses. They cannot be
set through BookCreate or BookUpdate (extra fields are rejected).
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

ISBN_CHARS = set("0123456789X-")


def _normalize_isbn(v: str) -> str:
    v = v.strip().upper()
    if not set(v) <= ISBN_CHARS:
        raise ValueError("ISBN may only contain digits, hyphens and X")
    return v


class BookBase(BaseModel):
    """Shared catalog fields."""

    title: str = Field(..., min_length=1, max_length=500, examples=["1984"])
    author: str = Field(..., min_length=1, max_length=255, examples=["George Orwell"])
    description: str = Field(..., min_length=1)
    cover_image: str | None = Field(default=None, max_length=500)
    genres: list[str] = Field(..., min_length=1, examples=[["Dystopian", "Classic"]])
    publication_year: int = Field(..., ge=0, le=9999, examples=[1949])
    publisher: str = Field(..., min_length=1, max_length=255)
    isbn: str = Field(..., min_length=10, max_length=20, examples=["9780451524935"])
    featured: bool = False

    @field_validator("isbn")
    @classmethod
    def isbn_must_be_valid(cls, v: str) -> str:
        return _normalize_isbn(v)


class BookCreate(BookBase):
    """Schema for creating a book."""

    model_config = ConfigDict(extra="forbid")


class BookUpdate(BaseModel):
    """All fields optional for partial updates."""

    title: str | None = Field(default=None, min_length=1, max_length=500)
    author: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1)
    cover_image: str | None = Field(default=None, max_length=500)
    genres: list[str] | None = Field(default=None, min_length=1)
    publication_year: int | None = Field(default=None, ge=0, le=9999)
    publisher: str | None = Field(default=None, min_length=1, max_length=255)
    isbn: str | None = Field(default=None, min_length=10, max_length=20)
    featured: bool | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("isbn")
    @classmethod
    def isbn_must_be_valid(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _normalize_isbn(v)


class BookResponse(BookBase):
    """Book as returned by the API."""

    id: int
    cover_image: str
    average_rating: Decimal = Field(..., ge=0, le=5, description="Mean rating, 0 without reviews")
    review_count: int = Field(..., ge=0)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("average_rating")
    def serialize_average_rating(self, v: Decimal) -> float:
        return float(v)


class BookListResponse(BaseModel):
    """Paginated list of books."""

    items: list[BookResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1, le=100)
    pages: int = Field(..., ge=0)


class BookRatingStats(BaseModel):
    """Aggregated rating statistics for a book."""

    book_id: int
    average_rating: float = Field(..., ge=0, le=5)
    review_count: int = Field(..., ge=0)
    rating_distribution: dict[int, int]
