"""
User Model

Represents a registered reader. Readers write reviews and like other
readers' reviews; admins additionally manage the catalog and moderate
reviews.

The set of reviews a user likes is not stored on this row. It is derived
from the review_likes relation (see bibliobuzz.models.like.ReviewLike).
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bibliobuzz.database import Base

if TYPE_CHECKING:
    from bibliobuzz.models.like import ReviewLike
    from bibliobuzz.models.review import Review


class Role(str, Enum):
    """
    Closed set of user roles.

    Capabilities per role live in bibliobuzz.services.authorization, so a
    new role is a new member here plus one capability entry there.
    """
    READER = "reader"
    ADMIN = "admin"


class User(Base):
    """
    User model representing registered readers.

    Table: users

    Relationships:
    - reviews: One-to-Many with Review
    - likes: One-to-Many with ReviewLike

    session_version is embedded in every session credential. Bumping it
    invalidates every credential issued before.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Identity Fields
    # -------------------------------------------------------------------------
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
        comment="Unique display name"
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        comment="Email address (used for login)"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    # -------------------------------------------------------------------------
    # Authorization / Session
    # -------------------------------------------------------------------------
    role: Mapped[str] = mapped_column(
        String(20),
        default=Role.READER.value,
        nullable=False,
        comment="Role (reader, admin)"
    )

    session_version: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Bumped on credential rotation; older credentials are rejected"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    likes: Mapped[list["ReviewLike"]] = relationship(
        "ReviewLike",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    @property
    def liked_review_ids(self) -> set[int]:
        """Review ids this user currently likes."""
        return {like.review_id for like in self.likes}

    def __repr__(self) -> str:
        return f"User(id={self.id}, username='{self.username}', role='{self.role}')"
