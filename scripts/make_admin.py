#!/usr/bin/env python3
"""
Grant the admin role to an existing user.

USAGE:
    python scripts/make_admin.py reader@example.com

    # Or with Docker
    docker-compose exec api python scripts/make_admin.py reader@example.com

Roles are read from the database on every request, so the change applies
to the user's current session without a new login.
"""

import argparse
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import func, select

from bibliobuzz.database import SessionLocal
from bibliobuzz.models import Role, User


def make_admin(email: str) -> int:
    """Promote the user with this email. Returns a process exit code."""
    db = SessionLocal()
    try:
        user = db.execute(
            select(User).where(func.lower(User.email) == email.lower())
        ).scalar_one_or_none()

        if user is None:
            print(f"User not found: {email}", file=sys.stderr)
            return 1

        if user.is_admin:
            print(f"{user.username} ({user.email}) is already an admin")
            return 0

        user.role = Role.ADMIN.value
        db.commit()
        print(f"Successfully made {user.username} ({user.email}) an admin")
        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        db.rollback()
        raise
    finally:
        db.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Grant the admin role to a user")
    parser.add_argument("email", help="Email address of the user to promote")
    args = parser.parse_args()

    sys.exit(make_admin(args.email))


if __name__ == "__main__":
    main()
