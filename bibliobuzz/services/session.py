"""
Session Authenticator

Resolves the caller of a request from its session credential.

Credential Transport:
=====================
1. HTTP-only cookie (primary, set by login/register/profile update)
2. "Authorization: Bearer <token>" header (fallback for non-browser clients)

When both are present the cookie wins. Extraction happens in exactly one
place (extract_token) and produces a single optional token.

Rotation:
=========
issue() bumps the user's session_version before signing, so every
credential issued earlier stops validating. revoke() bumps it without
issuing a new one (logout).
"""

import logging

from fastapi import Request, Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from bibliobuzz.config import get_settings
from bibliobuzz.exceptions import UnauthenticatedError
from bibliobuzz.models.user import User
from bibliobuzz.services.security import create_session_token, decode_session_token

logger = logging.getLogger(__name__)
settings = get_settings()

BEARER_PREFIX = "bearer "


def extract_token(request: Request) -> str | None:
    """
    Locate the session credential on a request.

    Returns:
        The cookie value if set, else the bearer token if set, else None
    """
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token

    authorization = request.headers.get("Authorization", "")
    if authorization.lower().startswith(BEARER_PREFIX):
        token = authorization[len(BEARER_PREFIX):].strip()
        return token or None

    return None


class SessionAuthenticator:
    """
    Verifies session credentials and resolves them to users.

    Every failure, including a subject that no longer exists, surfaces as
    UnauthenticatedError so callers cannot probe for account existence.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def resolve_token(self, token: str | None) -> User:
        """
        Verify a credential and load its user.

        Raises:
            UnauthenticatedError: missing, invalid, expired or superseded
                credential, or unknown subject
        """
        if not token:
            raise UnauthenticatedError("Not authorized, no token")

        payload = decode_session_token(token)
        if payload is None:
            raise UnauthenticatedError("Not authorized, token failed")

        try:
            user_id = int(payload.get("sub"))
        except (TypeError, ValueError):
            raise UnauthenticatedError("Not authorized, token failed")

        user = self.db.execute(
            select(User).where(User.id == user_id)
        ).scalar_one_or_none()
        if user is None:
            logger.warning(f"Session token for unknown user id {user_id}")
            raise UnauthenticatedError("Not authorized, token failed")

        if payload.get("ver") != user.session_version:
            logger.warning(f"Superseded session token for user {user_id}")
            raise UnauthenticatedError("Not authorized, session expired")

        return user

    def authenticate(self, request: Request) -> User:
        """
        Resolve the caller of a request and attach it to request.state.user.

        Raises:
            UnauthenticatedError: see resolve_token
        """
        user = self.resolve_token(extract_token(request))
        request.state.user = user
        return user

    def authenticate_optional(self, request: Request) -> User | None:
        """Like authenticate, but an anonymous or invalid caller yields None."""
        token = extract_token(request)
        if token is None:
            return None
        try:
            return self.authenticate(request)
        except UnauthenticatedError:
            return None

    # -------------------------------------------------------------------------
    # Issuing / Revoking
    # -------------------------------------------------------------------------
    def issue(self, user: User) -> str:
        """
        Rotate the user's session and return a fresh credential.

        The new session_version is flushed but not committed; the caller's
        commit makes the rotation durable together with its own changes.
        """
        user.session_version = (user.session_version or 0) + 1
        self.db.flush()
        return create_session_token(user.id, user.session_version)

    def revoke(self, user: User) -> None:
        """Invalidate every outstanding credential of the user."""
        user.session_version = (user.session_version or 0) + 1
        self.db.flush()
        logger.info(f"Sessions revoked for user {user.id}")


# -------------------------------------------------------------------------
# Cookie Helpers
# -------------------------------------------------------------------------
def set_session_cookie(response: Response, token: str) -> None:
    """Attach a session credential as an HTTP-only cookie."""
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        max_age=settings.session_max_age,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    """Expire the session cookie on the client."""
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        path="/",
    )
