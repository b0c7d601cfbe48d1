"""
BiblioBuzz Application Package

Book reviews with live average ratings.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine, session factory and declarative base
- exceptions.py: Error kinds shared by all services
- main.py: FastAPI application factory and exception handlers
- dependencies.py: Dependency injection functions
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic (sessions, authorization, reviews, likes, ratings, events)
"""

__version__ = "1.0.0"
