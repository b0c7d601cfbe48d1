#!/usr/bin/env python3
"""
Recompute every book's average_rating and review_count from its reviews.

USAGE:
    python scripts/recalculate_ratings.py

The API keeps the aggregates current on every review change; run this
after bulk imports or manual SQL edits to the reviews table.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from bibliobuzz.database import SessionLocal
from bibliobuzz.services.ratings import RatingAggregator


def recalculate() -> int:
    db = SessionLocal()
    try:
        count = RatingAggregator(db).recompute_all()
        print(f"Recalculated ratings for {count} books.")
        return count
    except Exception as e:
        print(f"Error recalculating ratings: {e}", file=sys.stderr)
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    recalculate()
