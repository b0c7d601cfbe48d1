"""
Test Suite for the BiblioBuzz API

Test Organization:
- conftest.py: Shared fixtures (test database, client, users, books)
- test_auth.py / test_session.py: Sessions and credential rotation
- test_authorization.py: Role capability checks
- test_books.py: /api/books endpoints
- test_reviews.py / test_likes.py / test_ratings.py: Reviews, likes, aggregates
- test_websocket.py / test_events.py: Live updates

Running Tests:
    pytest
    pytest tests/test_reviews.py -v
"""
