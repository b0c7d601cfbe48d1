"""
Security Service

Password hashing and session-credential signing.

Security Features:
==================
1. Password hashing with bcrypt (passlib)
2. Signed JWT session credentials (python-jose, HS256)
3. Every credential carries the user's session_version so that a newer
   credential supersedes all older ones

Usage:
    from bibliobuzz.services.security import hash_password, verify_password

    hashed = hash_password("SecurePass123")
    is_valid = verify_password("SecurePass123", hashed)
"""

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from bibliobuzz.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# -------------------------------------------------------------------------
# Password Hashing Configuration
# -------------------------------------------------------------------------
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Hash a plain text password using bcrypt.

    Example:
        >>> hashed = hash_password("SecurePass123")
        >>> hashed.startswith("$2b$")
        True
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a bcrypt hash.

    Uses constant-time comparison to prevent timing attacks.
    """
    return pwd_context.verify(plain_password, hashed_password)


# -------------------------------------------------------------------------
# Session Credential Configuration
# -------------------------------------------------------------------------

ALGORITHM = "HS256"
SESSION_TOKEN_TYPE = "session"


def create_session_token(
    user_id: int,
    session_version: int,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed session credential.

    Claims:
        sub: user id (string, per JWT convention)
        ver: the user's session_version at issue time
        type: always "session"
        iat / exp: issue and expiry times

    Args:
        user_id: Subject of the credential
        session_version: Current session version of the user
        expires_delta: Optional custom lifetime (defaults to settings)

    Returns:
        Encoded JWT string
    """
    now = datetime.now(UTC)
    if expires_delta is None:
        expires_delta = timedelta(days=settings.session_expire_days)

    to_encode = {
        "sub": str(user_id),
        "ver": session_version,
        "type": SESSION_TOKEN_TYPE,
        "iat": now,
        "exp": now + expires_delta,
    }

    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=ALGORITHM,
    )


def decode_session_token(token: str) -> dict | None:
    """
    Decode and validate a session credential.

    Signature, expiry and token type are all checked.

    Returns:
        Decoded payload if valid, None if invalid, expired or of another type
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
        )
    except JWTError as e:
        logger.warning(f"Session token rejected: {e}")
        return None

    if payload.get("type") != SESSION_TOKEN_TYPE:
        logger.warning("Session token rejected: wrong token type")
        return None

    return payload
