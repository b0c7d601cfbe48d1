"""
SQLAlchemy Models Package

Model Relationships:
- User -> Review: One-to-Many (a user writes many reviews, one per book)
- Book -> Review: One-to-Many
- User <-> Review through ReviewLike: the like relation

Import all models here so Alembic discovers them for migrations.
"""

from bibliobuzz.models.user import Role, User
from bibliobuzz.models.book import Book
from bibliobuzz.models.review import Review
from bibliobuzz.models.like import ReviewLike

__all__ = [
    "Role",
    "User",
    "Book",
    "Review",
    "ReviewLike",
]
