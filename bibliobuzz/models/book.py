"""
Book Model

A catalog entry plus two derived rating fields.

average_rating and review_count are a cached projection of the book's
reviews. They are written only by RatingAggregator.recompute and are not
part of any create/update schema.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bibliobuzz.database import Base

if TYPE_CHECKING:
    from bibliobuzz.models.review import Review


DEFAULT_COVER_IMAGE = "default-book-cover.jpg"


class Book(Base):
    """
    Book model representing books in the catalog.

    Table: books

    Fields:
    - title, author, description, publisher: descriptive text
    - genres: list of genre names
    - publication_year: year of first publication
    - isbn: unique identifier
    - featured: shown on the home page
    - average_rating: mean review rating, one decimal (derived)
    - review_count: number of reviews (derived)

    Example:
        book = Book(
            title="1984",
            author="George Orwell",
            description="A dystopian novel...",
            genres=["Dystopian", "Classic"],
            publication_year=1949,
            publisher="Secker & Warburg",
            isbn="9780451524935",
        )
    """

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Catalog Fields
    # -------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(
        String(500),
        index=True,
        nullable=False,
        comment="Book title"
    )

    author: Mapped[str] = mapped_column(
        String(255),
        index=True,
        nullable=False,
        comment="Author name"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Book description or summary"
    )

    cover_image: Mapped[str] = mapped_column(
        String(500),
        default=DEFAULT_COVER_IMAGE,
        nullable=False,
        comment="Cover image URL or file name"
    )

    genres: Mapped[list[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
        comment="Genre names"
    )

    publication_year: Mapped[int] = mapped_column(
        Integer,
        index=True,
        nullable=False,
        comment="Year of publication"
    )

    publisher: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Publisher name"
    )

    isbn: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        index=True,
        nullable=False,
        comment="International Standard Book Number"
    )

    featured: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        index=True,
        comment="Shown in the featured list"
    )

    # -------------------------------------------------------------------------
    # Derived Rating Fields
    # -------------------------------------------------------------------------
    # Numeric(2, 1) holds 0.0 - 5.0 exactly
    average_rating: Mapped[Decimal] = mapped_column(
        Numeric(2, 1),
        default=Decimal("0"),
        nullable=False,
        index=True,
        comment="Mean review rating rounded to one decimal, 0 without reviews"
    )

    review_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Number of reviews for this book"
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
        back_populates="book",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint(
            "average_rating >= 0 AND average_rating <= 5",
            name="ck_book_average_rating_range",
        ),
        CheckConstraint("review_count >= 0", name="ck_book_review_count_non_negative"),
    )

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title='{self.title}', isbn='{self.isbn}')"
