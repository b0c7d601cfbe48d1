"""
Authentication Router

Endpoints:
- POST /auth/register - Create an account and start a session
- POST /auth/login - Start a session with email and password
- POST /auth/logout - Revoke every session of the caller
- GET /auth/me - The caller's identity
- PUT /auth/profile - Update username/email/password (rotates the session)

Security:
=========
- Passwords are hashed with bcrypt before storage and never logged
- The session credential is set as an HTTP-only cookie and also returned
  in the body for non-browser clients
- Every successful register/login/profile update issues a new credential
  that supersedes all earlier ones
"""

import logging

from fastapi import APIRouter, Request, Response, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bibliobuzz.config import get_settings
from bibliobuzz.dependencies import CurrentUser, DbSession
from bibliobuzz.exceptions import ConflictError, UnauthenticatedError
from bibliobuzz.models.user import Role, User
from bibliobuzz.schemas.user import (
    LoginRequest,
    ProfileUpdate,
    SessionResponse,
    UserCreate,
    UserResponse,
)
from bibliobuzz.services.rate_limiter import limiter
from bibliobuzz.services.reviews import ReviewRepository
from bibliobuzz.services.security import hash_password, verify_password
from bibliobuzz.services.session import (
    SessionAuthenticator,
    clear_session_cookie,
    set_session_cookie,
)

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        401: {"description": "Not authenticated"},
        409: {"description": "Email or username already in use"},
    },
)


# -------------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------------
def _user_response(db: Session, user: User) -> UserResponse:
    review_count = ReviewRepository(db).count_by_user(user.id)
    return UserResponse.model_validate(user).model_copy(update={"review_count": review_count})


def _ensure_unique(db: Session, email: str | None, username: str | None, exclude_id: int | None = None) -> None:
    """Raise ConflictError if email or username belongs to another user."""
    if email is not None:
        stmt = select(User.id).where(func.lower(User.email) == email.lower())
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        if db.execute(stmt).first() is not None:
            raise ConflictError("Email already registered")

    if username is not None:
        stmt = select(User.id).where(User.username == username)
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        if db.execute(stmt).first() is not None:
            raise ConflictError("Username already taken")


def _start_session(db: Session, response: Response, user: User) -> SessionResponse:
    """Issue a fresh credential, commit, and attach it to the response."""
    token = SessionAuthenticator(db).issue(user)
    db.commit()
    db.refresh(user)
    set_session_cookie(response, token)

    return SessionResponse(
        user=_user_response(db, user),
        access_token=token,
        expires_in=settings.session_max_age,
    )


# -------------------------------------------------------------------------
# Registration
# -------------------------------------------------------------------------
@router.post(
    "/register",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
@limiter.limit(settings.rate_limit_auth)
def register(
    request: Request,
    response: Response,
    user_data: UserCreate,
    db: DbSession,
) -> SessionResponse:
    """Create a reader account and log it in."""
    _ensure_unique(db, user_data.email, user_data.username)

    user = User(
        username=user_data.username,
        email=user_data.email.lower(),
        hashed_password=hash_password(user_data.password),
        role=Role.READER.value,
        session_version=0,
    )
    db.add(user)
    db.flush()

    logger.info(f"New user registered: {user.username} (id={user.id})")
    return _start_session(db, response, user)


# -------------------------------------------------------------------------
# Login
# -------------------------------------------------------------------------
@router.post(
    "/login",
    response_model=SessionResponse,
    summary="Login with email and password",
)
@limiter.limit(settings.rate_limit_auth)
def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: DbSession,
) -> SessionResponse:
    """
    Authenticate with email and password.

    The same error is returned for an unknown email and a wrong password.
    """
    user = db.execute(
        select(User).where(func.lower(User.email) == credentials.email.lower())
    ).scalar_one_or_none()

    if user is None or not verify_password(credentials.password, user.hashed_password):
        logger.warning(f"Login failed for {credentials.email}")
        raise UnauthenticatedError("Invalid email or password")

    logger.info(f"User logged in: {user.username} (id={user.id})")
    return _start_session(db, response, user)


# -------------------------------------------------------------------------
# Logout
# -------------------------------------------------------------------------
@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout user",
)
def logout(
    response: Response,
    current_user: CurrentUser,
    db: DbSession,
) -> None:
    """Revoke all credentials of the caller and clear the cookie."""
    SessionAuthenticator(db).revoke(current_user)
    db.commit()
    clear_session_cookie(response)

    logger.info(f"User logged out: {current_user.username} (id={current_user.id})")
    return None


# -------------------------------------------------------------------------
# Current User
# -------------------------------------------------------------------------
@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
)
def get_me(current_user: CurrentUser, db: DbSession) -> UserResponse:
    """Return the resolved identity of the caller with its review count."""
    return _user_response(db, current_user)


@router.put(
    "/profile",
    response_model=SessionResponse,
    summary="Update profile",
)
@limiter.limit(settings.rate_limit_write)
def update_profile(
    request: Request,
    response: Response,
    profile: ProfileUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> SessionResponse:
    """
    Update username, email and/or password.

    A new credential is issued; the credential used for this call stops
    working.
    """
    _ensure_unique(db, profile.email, profile.username, exclude_id=current_user.id)

    if profile.username is not None:
        current_user.username = profile.username
    if profile.email is not None:
        current_user.email = profile.email.lower()
    if profile.password is not None:
        current_user.hashed_password = hash_password(profile.password)

    logger.info(f"Profile updated for user {current_user.id}")
    return _start_session(db, response, current_user)
