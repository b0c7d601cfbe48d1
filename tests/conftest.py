"""
pytest Fixtures for BiblioBuzz Tests

Shared fixtures used across all test files.

For database tests we use:
- session scope for the engine (SQLite in-memory, created once)
- function scope for sessions, each wrapped in a transaction that is rolled
  back after the test, so tests never see each other's rows
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app.
# TestClient talks plain http://testserver, so the session cookie must not
# be marked Secure or the client would never send it back.
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"
os.environ["COOKIE_SECURE"] = "false"
os.environ["DATABASE_URL"] = "sqlite://"

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bibliobuzz.database import Base, get_db
from bibliobuzz.main import app
from bibliobuzz.models import Book, Review, Role, User
from bibliobuzz.services.reviews import ReviewRepository
from bibliobuzz.services.security import hash_password


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="session")
def engine():
    """
    SQLite in-memory engine shared by the whole test session.

    StaticPool keeps one connection alive; without it the in-memory database
    would vanish between connections.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite defers BEGIN and would let the first SAVEPOINT open the
    # transaction, turning its RELEASE into a real commit
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """
    Fresh session per test, rolled back afterwards.

    Service commits and rollbacks act on savepoints inside the outer
    connection transaction, which is discarded after the test.
    """
    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        join_transaction_mode="create_savepoint",
    )

    connection = engine.connect()
    transaction = connection.begin()
    session = TestSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Test client whose requests share the test's database session."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Session cleanup handled by db_session fixture

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


def _make_user(db: Session, username: str, email: str, password: str, role: Role = Role.READER) -> User:
    user = User(
        username=username,
        email=email,
        hashed_password=hash_password(password),
        role=role.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def sample_user(db_session: Session) -> User:
    """A reader."""
    return _make_user(db_session, "testuser", "testuser@example.com", "SecurePass123")


@pytest.fixture
def second_user(db_session: Session) -> User:
    """Another reader, for ownership and like scenarios."""
    return _make_user(db_session, "seconduser", "seconduser@example.com", "SecurePass456")


@pytest.fixture
def admin_user(db_session: Session) -> User:
    """An admin."""
    return _make_user(db_session, "admin", "admin@example.com", "AdminPass123", Role.ADMIN)


@pytest.fixture
def sample_book(db_session: Session) -> Book:
    book = Book(
        title="1984",
        author="George Orwell",
        description="A dystopian novel set in a totalitarian society.",
        genres=["Dystopian", "Classic"],
        publication_year=1949,
        publisher="Secker & Warburg",
        isbn="9780451524935",
        featured=True,
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def second_book(db_session: Session) -> Book:
    book = Book(
        title="Foundation",
        author="Isaac Asimov",
        description="The first novel in the Foundation series.",
        genres=["Science Fiction"],
        publication_year=1951,
        publisher="Gnome Press",
        isbn="9780553293357",
        featured=False,
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def sample_review(db_session: Session, sample_book: Book, sample_user: User) -> Review:
    """4-star review by sample_user; the book aggregate is kept current."""
    return ReviewRepository(db_session).create(
        sample_user,
        book_id=sample_book.id,
        rating=4,
        title="Great book!",
        content="I really enjoyed reading this book.",
    )
