#!/usr/bin/env python3
"""
Database Seed Script

Fills the catalog with sample books for local development.

USAGE:
    python scripts/seed_data.py            # add books, keep existing data
    python scripts/seed_data.py --clear    # wipe books (and their reviews) first

Books whose ISBN already exists are skipped, so the script can be re-run.
Ratings start at 0 and move as reviews are written through the API.
"""

import argparse
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from bibliobuzz.database import SessionLocal, create_tables
from bibliobuzz.models import Book, Review, ReviewLike

SAMPLE_BOOKS = [
    {
        "title": "1984",
        "author": "George Orwell",
        "description": "A dystopian novel set in a totalitarian society under constant surveillance.",
        "genres": ["Dystopian", "Classic"],
        "publication_year": 1949,
        "publisher": "Secker & Warburg",
        "isbn": "9780451524935",
        "featured": True,
    },
    {
        "title": "Pride and Prejudice",
        "author": "Jane Austen",
        "description": "A romantic novel following the emotional development of Elizabeth Bennet.",
        "genres": ["Romance", "Classic"],
        "publication_year": 1813,
        "publisher": "T. Egerton",
        "isbn": "9780141439518",
        "featured": True,
    },
    {
        "title": "Murder on the Orient Express",
        "author": "Agatha Christie",
        "description": "Hercule Poirot investigates a murder on a train stuck in a snowdrift.",
        "genres": ["Mystery"],
        "publication_year": 1934,
        "publisher": "Collins Crime Club",
        "isbn": "9780062693662",
        "featured": False,
    },
    {
        "title": "Foundation",
        "author": "Isaac Asimov",
        "description": "The first novel in the Foundation series about the fall of the Galactic Empire.",
        "genres": ["Science Fiction"],
        "publication_year": 1951,
        "publisher": "Gnome Press",
        "isbn": "9780553293357",
        "featured": True,
    },
    {
        "title": "The Hobbit",
        "author": "J.R.R. Tolkien",
        "description": "Bilbo Baggins embarks on a quest to reclaim the Lonely Mountain.",
        "genres": ["Fantasy", "Classic"],
        "publication_year": 1937,
        "publisher": "George Allen & Unwin",
        "isbn": "9780547928227",
        "featured": False,
    },
]


def clear_data(db: Session) -> None:
    """Remove every book together with its reviews and likes."""
    print("Clearing existing data...")
    db.execute(delete(ReviewLike))
    db.execute(delete(Review))
    db.execute(delete(Book))
    db.commit()
    print("Data cleared.")


def create_books(db: Session) -> list[Book]:
    print("Creating books...")
    existing = set(db.execute(select(Book.isbn)).scalars().all())

    books = []
    for data in SAMPLE_BOOKS:
        if data["isbn"] in existing:
            continue
        book = Book(**data)
        db.add(book)
        books.append(book)

    db.commit()
    print(f"Created {len(books)} books ({len(SAMPLE_BOOKS) - len(books)} already present).")
    return books


def seed_database(clear_existing: bool = False) -> None:
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    create_tables()
    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)
        create_books(db)
        print("Database seeding completed successfully!")
    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the catalog with sample books")
    parser.add_argument("--clear", action="store_true", help="Delete existing books first")
    args = parser.parse_args()

    seed_database(clear_existing=args.clear)
