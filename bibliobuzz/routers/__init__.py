"""
API Routers Package

Router Structure:
- auth.py: /api/auth/* (register, login, logout, me, profile)
- books.py: /api/books/* (public reads, admin writes)
- reviews.py: /api/reviews/* (reviews and likes)
- websocket.py: /ws/{channel} (real-time updates, mounted without prefix)

Each router is imported and registered in main.py.
"""

from bibliobuzz.routers.auth import router as auth_router
from bibliobuzz.routers.books import router as books_router
from bibliobuzz.routers.reviews import router as reviews_router
from bibliobuzz.routers.websocket import router as websocket_router

__all__ = [
    "auth_router",
    "books_router",
    "reviews_router",
    "websocket_router",
]
