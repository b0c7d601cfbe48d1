"""
Reviews Router

Endpoints:
- GET /reviews?book={book_id} - List reviews for a book
- GET /reviews/user - Reviews written by the caller
- GET /reviews/{review_id} - Get a specific review
- POST /reviews - Create a review (authenticated)
- PUT /reviews/{review_id} - Update a review (owner only)
- DELETE /reviews/{review_id} - Delete a review (owner or admin)
- PUT /reviews/{review_id}/like - Like a review
- PUT /reviews/{review_id}/unlike - Remove a like

Business Rules:
- One review per user per book
- Only the review author can update their review
- The review author or an admin can delete a review
- Like and unlike are idempotent; repeating either leaves the count unchanged

Every mutation that moves a book's aggregate schedules a
book.rating_updated event with the committed values.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Query, Request, status

from bibliobuzz.config import get_settings
from bibliobuzz.dependencies import CurrentUser, DbSession, OptionalUser, get_book_or_404
from bibliobuzz.models.book import Book
from bibliobuzz.models.review import Review
from bibliobuzz.schemas.review import (
    LikeResponse,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
    UserReviewResponse,
)
from bibliobuzz.services.events import (
    EventType,
    publish_likes_update,
    publish_rating_update,
    publish_review_event,
)
from bibliobuzz.services.likes import LikeLedger
from bibliobuzz.services.rate_limiter import limiter
from bibliobuzz.services.reviews import ReviewRepository

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter(
    prefix="/reviews",
    tags=["Reviews"],
    responses={
        404: {"description": "Review or book not found"},
    },
)


# =============================================================================
# Helper Functions
# =============================================================================


def _to_response(review: Review, liked_ids: set[int]) -> ReviewResponse:
    return ReviewResponse.model_validate(review).model_copy(
        update={"has_liked": review.id in liked_ids}
    )


def _schedule_rating_update(background_tasks: BackgroundTasks, book: Book | None) -> None:
    if book is None:
        return
    background_tasks.add_task(
        publish_rating_update, book.id, book.average_rating, book.review_count
    )


# =============================================================================
# Read Endpoints
# =============================================================================


@router.get(
    "",
    response_model=list[ReviewResponse],
    summary="List reviews for a book",
)
@limiter.limit(settings.rate_limit_default)
def list_book_reviews(
    request: Request,
    db: DbSession,
    current_user: OptionalUser,
    book: int = Query(..., ge=1, description="ID of the book"),
) -> list[ReviewResponse]:
    """
    All reviews of a book, newest first.

    has_liked reflects the caller's like state and is always False for
    anonymous callers.
    """
    get_book_or_404(db, book)

    repo = ReviewRepository(db)
    reviews = repo.list_by_book(book)
    liked = repo.liked_ids(current_user, reviews)
    return [_to_response(r, liked) for r in reviews]


@router.get(
    "/user",
    response_model=list[UserReviewResponse],
    summary="List my reviews",
)
def list_my_reviews(db: DbSession, current_user: CurrentUser) -> list[UserReviewResponse]:
    """The caller's reviews with the reviewed book embedded."""
    repo = ReviewRepository(db)
    reviews = repo.list_by_user(current_user.id)
    liked = repo.liked_ids(current_user, reviews)
    return [
        UserReviewResponse.model_validate(r).model_copy(update={"has_liked": r.id in liked})
        for r in reviews
    ]


@router.get(
    "/{review_id}",
    response_model=ReviewResponse,
    summary="Get a review by ID",
)
@limiter.limit(settings.rate_limit_default)
def get_review(
    request: Request,
    review_id: int,
    db: DbSession,
    current_user: OptionalUser,
) -> ReviewResponse:
    repo = ReviewRepository(db)
    review = repo.get(review_id)
    return _to_response(review, repo.liked_ids(current_user, [review]))


# =============================================================================
# Write Endpoints
# =============================================================================


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a review",
    responses={409: {"description": "Already reviewed this book"}},
)
@limiter.limit(settings.rate_limit_write)
def create_review(
    request: Request,
    review_data: ReviewCreate,
    db: DbSession,
    current_user: CurrentUser,
    background_tasks: BackgroundTasks,
) -> ReviewResponse:
    """
    Create a review for a book.

    The book's average rating and review count are updated before the
    response is returned.
    """
    review = ReviewRepository(db).create(
        current_user,
        book_id=review_data.book,
        rating=review_data.rating,
        title=review_data.title,
        content=review_data.content,
    )

    background_tasks.add_task(
        publish_review_event,
        EventType.REVIEW_CREATED,
        review.book_id,
        review.id,
        {"rating": review.rating, "user_id": review.user_id},
    )
    _schedule_rating_update(background_tasks, db.get(Book, review.book_id))

    return _to_response(review, set())


@router.put(
    "/{review_id}",
    response_model=ReviewResponse,
    summary="Update a review",
    responses={403: {"description": "Not the review author"}},
)
@limiter.limit(settings.rate_limit_write)
def update_review(
    request: Request,
    review_id: int,
    review_data: ReviewUpdate,
    db: DbSession,
    current_user: CurrentUser,
    background_tasks: BackgroundTasks,
) -> ReviewResponse:
    """Partial update of the caller's own review."""
    fields = {k: v for k, v in review_data.model_dump(exclude_unset=True).items() if v is not None}

    repo = ReviewRepository(db)
    review, rating_changed = repo.update(current_user, review_id, fields)

    background_tasks.add_task(
        publish_review_event, EventType.REVIEW_UPDATED, review.book_id, review.id
    )
    if rating_changed:
        _schedule_rating_update(background_tasks, db.get(Book, review.book_id))

    return _to_response(review, repo.liked_ids(current_user, [review]))


@router.delete(
    "/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a review",
    responses={403: {"description": "Not allowed to delete this review"}},
)
@limiter.limit(settings.rate_limit_write)
def delete_review(
    request: Request,
    review_id: int,
    db: DbSession,
    current_user: CurrentUser,
    background_tasks: BackgroundTasks,
) -> None:
    """Delete a review and its likes. Author or admin."""
    book_id = ReviewRepository(db).delete(current_user, review_id)

    background_tasks.add_task(
        publish_review_event, EventType.REVIEW_DELETED, book_id, review_id
    )
    _schedule_rating_update(background_tasks, db.get(Book, book_id))


# =============================================================================
# Like Endpoints
# =============================================================================


def _set_like(
    db: DbSession,
    current_user: CurrentUser,
    review_id: int,
    desired: bool,
    background_tasks: BackgroundTasks,
) -> LikeResponse:
    ledger = LikeLedger(db)
    before = ledger.status(current_user, review_id)
    result = ledger.toggle(current_user, review_id, desired=desired)

    if result.likes != before.likes:
        background_tasks.add_task(
            publish_likes_update, result.book_id, result.review_id, result.likes
        )
    return LikeResponse(
        review_id=result.review_id, likes=result.likes, has_liked=result.has_liked
    )


@router.put(
    "/{review_id}/like",
    response_model=LikeResponse,
    summary="Like a review",
)
@limiter.limit(settings.rate_limit_write)
def like_review(
    request: Request,
    review_id: int,
    db: DbSession,
    current_user: CurrentUser,
    background_tasks: BackgroundTasks,
) -> LikeResponse:
    """Like a review. Liking an already liked review changes nothing."""
    return _set_like(db, current_user, review_id, True, background_tasks)


@router.put(
    "/{review_id}/unlike",
    response_model=LikeResponse,
    summary="Remove a like from a review",
)
@limiter.limit(settings.rate_limit_write)
def unlike_review(
    request: Request,
    review_id: int,
    db: DbSession,
    current_user: CurrentUser,
    background_tasks: BackgroundTasks,
) -> LikeResponse:
    """Remove the caller's like. Unliking a review not liked changes nothing."""
    return _set_like(db, current_user, review_id, False, background_tasks)
