"""
User Pydantic Schemas

Schemas:
- UserCreate: Registration data (username, email, password)
- LoginRequest: Email and password
- ProfileUpdate: Partial profile update (username, email, password)
- UserResponse: The caller's own identity (never exposes the password hash)
- UserPublicResponse: Minimal owner info embedded in reviews
- SessionResponse: Identity plus the issued credential for non-browser clients
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

USERNAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*$")


def _check_username(v: str) -> str:
    if not USERNAME_PATTERN.match(v):
        raise ValueError(
            "Username must start with a letter and contain only "
            "letters, numbers, and underscores"
        )
    return v.lower()


def _check_password(v: str) -> str:
    if not re.search(r"[A-Za-z]", v):
        raise ValueError("Password must contain at least one letter")
    if not re.search(r"\d", v):
        raise ValueError("Password must contain at least one number")
    return v


class UserCreate(BaseModel):
    """
    Schema for user registration.

    Example request body:
    {
        "username": "booklover",
        "email": "reader@example.com",
        "password": "SecurePass123"
    }
    """

    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        description="Unique username (letters, numbers, underscores)",
        examples=["booklover"],
    )
    email: EmailStr = Field(..., description="Email address", examples=["reader@example.com"])
    password: str = Field(
        ...,
        min_length=8,
        max_length=72,
        description="Password (8-72 chars, at least one letter and one number)",
        examples=["SecurePass123"],
    )

    @field_validator("username")
    @classmethod
    def username_must_be_valid(cls, v: str) -> str:
        return _check_username(v)

    @field_validator("password")
    @classmethod
    def password_must_be_strong(cls, v: str) -> str:
        return _check_password(v)


class LoginRequest(BaseModel):
    """Email/password login body."""

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, description="Password")


class ProfileUpdate(BaseModel):
    """
    Partial profile update. Any change rotates the session credential.
    """

    username: str | None = Field(default=None, min_length=3, max_length=50)
    email: EmailStr | None = Field(default=None)
    password: str | None = Field(default=None, min_length=8, max_length=72)

    @field_validator("username")
    @classmethod
    def username_must_be_valid(cls, v: str | None) -> str | None:
        return _check_username(v) if v is not None else v

    @field_validator("password")
    @classmethod
    def password_must_be_strong(cls, v: str | None) -> str | None:
        return _check_password(v) if v is not None else v


class UserResponse(BaseModel):
    """Identity returned to the user themself."""

    id: int
    username: str
    email: EmailStr
    role: str
    is_admin: bool
    created_at: datetime
    review_count: int | None = Field(
        default=None,
        description="Number of reviews written (only on /auth/me and profile)",
    )

    model_config = ConfigDict(from_attributes=True)


class UserPublicResponse(BaseModel):
    """Public owner info embedded in review responses."""

    id: int
    username: str

    model_config = ConfigDict(from_attributes=True)


class SessionResponse(BaseModel):
    """
    Response of register/login/profile update.

    Browsers use the HTTP-only cookie set on the same response; other
    clients send access_token as "Authorization: Bearer <token>".
    """

    user: UserResponse
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Credential lifetime in seconds")
