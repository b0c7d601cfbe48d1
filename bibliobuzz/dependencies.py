"""
FastAPI Dependencies Module

Reusable components injected into route handlers with Depends().

- DbSession: per-request SQLAlchemy session
- CurrentUser: authenticated caller (401 otherwise)
- OptionalUser: authenticated caller or None
- Pagination: page/per_page query parameters
"""

from typing import Annotated

from fastapi import Depends, Query, Request
from sqlalchemy.orm import Session

from bibliobuzz.database import get_db
from bibliobuzz.exceptions import NotFoundError
from bibliobuzz.models.book import Book
from bibliobuzz.models.user import User
from bibliobuzz.services.session import SessionAuthenticator

DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Pagination Parameters
# =============================================================================
class PaginationParams:
    """
    Common pagination parameters for list endpoints.

        GET /books?page=2&per_page=12
    """

    def __init__(
        self,
        page: int = Query(
            default=1,
            ge=1,
            description="Page number (1-indexed)",
        ),
        per_page: int = Query(
            default=12,
            ge=1,
            le=100,
            description="Number of items per page (max 100)",
        ),
    ) -> None:
        self.page = page
        self.per_page = per_page

    @property
    def skip(self) -> int:
        """Number of records to skip for the current page."""
        return (self.page - 1) * self.per_page


Pagination = Annotated[PaginationParams, Depends()]


# =============================================================================
# Session Authentication
# =============================================================================
def get_current_user(request: Request, db: DbSession) -> User:
    """
    Resolve the caller from the session cookie or bearer header.

    Raises:
        UnauthenticatedError: 401 if the credential is missing or invalid
    """
    return SessionAuthenticator(db).authenticate(request)


def get_optional_current_user(request: Request, db: DbSession) -> User | None:
    """
    Resolve the caller if a valid credential is present, else None.

    Used by public reads that personalise their output (has_liked).
    """
    return SessionAuthenticator(db).authenticate_optional(request)


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_current_user)]


# =============================================================================
# Lookup Helpers
# =============================================================================
def get_book_or_404(db: Session, book_id: int) -> Book:
    """Get a book by ID or raise NotFoundError."""
    book = db.get(Book, book_id)
    if book is None:
        raise NotFoundError(f"Book with id {book_id} not found")
    return book
