"""
Services Package

Business logic, kept apart from HTTP handling (routers):

- session.py: SessionAuthenticator, credential extraction, issue/revoke
- authorization.py: role capability table and checks
- reviews.py: ReviewRepository (one review per user per book)
- likes.py: LikeLedger (idempotent like toggle)
- ratings.py: RatingAggregator (derived book rating fields)
- security.py: password hashing and JWT signing
- events.py / websocket.py: live updates to WebSocket subscribers
- rate_limiter.py: slowapi rate limiting
"""
