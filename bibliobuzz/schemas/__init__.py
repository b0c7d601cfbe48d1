"""
Pydantic Schemas Package

Request/response validation, kept separate from the SQLAlchemy models so
the API controls exactly what is exposed (no password hashes, no writable
derived fields).

Schema Naming Convention:
- XxxCreate: Fields required when creating a record
- XxxUpdate: Fields allowed when updating (all optional)
- XxxResponse: Fields returned in API responses
"""

from bibliobuzz.schemas.book import (
    BookCreate,
    BookListResponse,
    BookRatingStats,
    BookResponse,
    BookUpdate,
)
from bibliobuzz.schemas.review import (
    LikeResponse,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
    UserReviewResponse,
)
from bibliobuzz.schemas.user import (
    LoginRequest,
    ProfileUpdate,
    SessionResponse,
    UserCreate,
    UserPublicResponse,
    UserResponse,
)

__all__ = [
    # Book schemas
    "BookCreate",
    "BookUpdate",
    "BookResponse",
    "BookListResponse",
    "BookRatingStats",
    # Review schemas
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewResponse",
    "UserReviewResponse",
    "LikeResponse",
    # User / session schemas
    "UserCreate",
    "LoginRequest",
    "ProfileUpdate",
    "UserResponse",
    "UserPublicResponse",
    "SessionResponse",
]
