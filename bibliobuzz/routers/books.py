"""
Books Router

Endpoints:
- GET /books - List books (optional featured/genre filter)
- GET /books/featured - Featured books, best rated first
- GET /books/{book_id} - Get one book
- GET /books/{book_id}/rating - Rating aggregate and distribution
- POST /books - Create a book (admin)
- PUT /books/{book_id} - Update a book (admin)
- DELETE /books/{book_id} - Delete a book and its reviews (admin)

average_rating and review_count are never taken from the request; they are
maintained by RatingAggregator.
"""

import logging
import math

from fastapi import APIRouter, BackgroundTasks, Query, Request, status
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from bibliobuzz.config import get_settings
from bibliobuzz.dependencies import CurrentUser, DbSession, Pagination, get_book_or_404
from bibliobuzz.exceptions import ConflictError
from bibliobuzz.models.book import DEFAULT_COVER_IMAGE, Book
from bibliobuzz.models.like import ReviewLike
from bibliobuzz.models.review import Review
from bibliobuzz.schemas.book import (
    BookCreate,
    BookListResponse,
    BookRatingStats,
    BookResponse,
    BookUpdate,
)
from bibliobuzz.services import authorization
from bibliobuzz.services.authorization import Action
from bibliobuzz.services.events import EventType, publish_book_event
from bibliobuzz.services.rate_limiter import limiter
from bibliobuzz.services.ratings import RatingAggregator

logger = logging.getLogger(__name__)
settings = get_settings()

FEATURED_LIMIT = 6

router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={404: {"description": "Book not found"}},
)


def _ensure_isbn_free(db: Session, isbn: str, exclude_id: int | None = None) -> None:
    stmt = select(Book.id).where(Book.isbn == isbn)
    if exclude_id is not None:
        stmt = stmt.where(Book.id != exclude_id)
    if db.execute(stmt).first() is not None:
        raise ConflictError("Book with this ISBN already exists")


# =============================================================================
# Public Reads
# =============================================================================


@router.get(
    "",
    response_model=BookListResponse,
    summary="List books",
)
@limiter.limit(settings.rate_limit_default)
def list_books(
    request: Request,
    db: DbSession,
    pagination: Pagination,
    featured: bool | None = Query(default=None, description="Only featured/non-featured books"),
    genre: str | None = Query(default=None, description="Only books with this genre"),
) -> BookListResponse:
    """List books ordered by title."""
    stmt = select(Book)
    if featured is not None:
        stmt = stmt.where(Book.featured == featured)
    stmt = stmt.order_by(Book.title, Book.id)

    if genre:
        # genres is a JSON list; matching is case-insensitive on the names
        wanted = genre.lower()
        matches = [
            b for b in db.execute(stmt).scalars().all()
            if any(g.lower() == wanted for g in b.genres)
        ]
        total = len(matches)
        books = matches[pagination.skip:pagination.skip + pagination.per_page]
    else:
        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = db.execute(count_stmt).scalar() or 0
        books = db.execute(
            stmt.offset(pagination.skip).limit(pagination.per_page)
        ).scalars().all()

    pages = math.ceil(total / pagination.per_page) if total > 0 else 0

    return BookListResponse(
        items=[BookResponse.model_validate(b) for b in books],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pages,
    )


@router.get(
    "/featured",
    response_model=list[BookResponse],
    summary="Featured books",
)
@limiter.limit(settings.rate_limit_default)
def list_featured_books(request: Request, db: DbSession) -> list[BookResponse]:
    """Up to six featured books, highest average rating first."""
    stmt = (
        select(Book)
        .where(Book.featured.is_(True))
        .order_by(Book.average_rating.desc(), Book.review_count.desc(), Book.id)
        .limit(FEATURED_LIMIT)
    )
    return [BookResponse.model_validate(b) for b in db.execute(stmt).scalars().all()]


@router.get(
    "/{book_id}",
    response_model=BookResponse,
    summary="Get a book by ID",
)
@limiter.limit(settings.rate_limit_default)
def get_book(request: Request, book_id: int, db: DbSession) -> BookResponse:
    return BookResponse.model_validate(get_book_or_404(db, book_id))


@router.get(
    "/{book_id}/rating",
    response_model=BookRatingStats,
    summary="Get book rating statistics",
)
@limiter.limit(settings.rate_limit_default)
def get_book_rating_stats(request: Request, book_id: int, db: DbSession) -> BookRatingStats:
    """Stored aggregate plus the count of each rating 1-5."""
    return BookRatingStats(**RatingAggregator(db).stats(book_id))


# =============================================================================
# Admin Writes
# =============================================================================


@router.post(
    "",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a book (admin)",
)
@limiter.limit(settings.rate_limit_write)
def create_book(
    request: Request,
    book_data: BookCreate,
    db: DbSession,
    current_user: CurrentUser,
    background_tasks: BackgroundTasks,
) -> BookResponse:
    authorization.check(current_user, Action.BOOK_CREATE)
    _ensure_isbn_free(db, book_data.isbn)

    data = book_data.model_dump()
    data["cover_image"] = data["cover_image"] or DEFAULT_COVER_IMAGE
    book = Book(**data)
    db.add(book)
    db.commit()
    db.refresh(book)

    logger.info(f"Book created: {book.id} '{book.title}' by admin {current_user.id}")
    background_tasks.add_task(
        publish_book_event, EventType.BOOK_CREATED, book.id, {"title": book.title}
    )
    return BookResponse.model_validate(book)


@router.put(
    "/{book_id}",
    response_model=BookResponse,
    summary="Update a book (admin)",
)
@limiter.limit(settings.rate_limit_write)
def update_book(
    request: Request,
    book_id: int,
    book_data: BookUpdate,
    db: DbSession,
    current_user: CurrentUser,
    background_tasks: BackgroundTasks,
) -> BookResponse:
    authorization.check(current_user, Action.BOOK_UPDATE)
    book = get_book_or_404(db, book_id)

    update_data = book_data.model_dump(exclude_unset=True)
    if update_data.get("isbn") is not None:
        _ensure_isbn_free(db, update_data["isbn"], exclude_id=book_id)

    if "cover_image" in update_data and update_data["cover_image"] is None:
        update_data["cover_image"] = DEFAULT_COVER_IMAGE
    for field, value in update_data.items():
        # Explicit nulls on required columns leave the value unchanged
        if value is not None:
            setattr(book, field, value)

    db.commit()
    db.refresh(book)

    logger.info(f"Book updated: {book.id} by admin {current_user.id}")
    background_tasks.add_task(
        publish_book_event, EventType.BOOK_UPDATED, book.id, {"title": book.title}
    )
    return BookResponse.model_validate(book)


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a book (admin)",
)
@limiter.limit(settings.rate_limit_write)
def delete_book(
    request: Request,
    book_id: int,
    db: DbSession,
    current_user: CurrentUser,
    background_tasks: BackgroundTasks,
) -> None:
    """Delete a book together with its reviews and their likes."""
    authorization.check(current_user, Action.BOOK_DELETE)
    book = get_book_or_404(db, book_id)

    review_ids = select(Review.id).where(Review.book_id == book_id)
    db.execute(delete(ReviewLike).where(ReviewLike.review_id.in_(review_ids)))
    db.delete(book)
    db.commit()

    logger.info(f"Book deleted: {book_id} by admin {current_user.id}")
    background_tasks.add_task(publish_book_event, EventType.BOOK_DELETED, book_id, {})
