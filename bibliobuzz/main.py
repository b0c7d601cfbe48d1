"""
FastAPI Application Entry Point

Creates and configures the BiblioBuzz application.

- create_app() returns a configured app (tests build their own instance
  through the same factory)
- Lifespan logs startup and shutdown
- Exception handlers are the single place where service errors become
  HTTP responses of the shape {"error": <code>, "detail": <message>}
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError

from bibliobuzz import __version__
from bibliobuzz.config import get_settings
from bibliobuzz.exceptions import (
    BiblioBuzzError,
    InternalError,
    UnauthenticatedError,
    ValidationError,
)
from bibliobuzz.routers import auth_router, books_router, reviews_router, websocket_router
from bibliobuzz.services.rate_limiter import limiter, rate_limit_exceeded_handler
from bibliobuzz.services.websocket import get_connection_manager

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _error_body(code: str, detail) -> dict:
    return {"error": code, "detail": detail}


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(f"Starting {settings.app_name} v{__version__} ({settings.environment})")
    logger.info(f"Debug mode: {settings.debug}")

    yield

    logger.info(f"Shutting down {settings.app_name}...")


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## BiblioBuzz API

Book reviews with live ratings.

### Features
- **Books**: Public catalog, admin-managed
- **Reviews**: One review per reader per book; the book's average rating
  updates with every review change
- **Likes**: Readers like each other's reviews
- **Live updates**: Subscribe to /ws/books or /ws/book:{id}

### Authentication
Register or login to receive a session cookie (also returned as a bearer
token). Logging in again or updating the profile invalidates older tokens.
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    # Credentials are allowed so browsers send the session cookie.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(BiblioBuzzError)
    async def service_error_handler(request: Request, exc: BiblioBuzzError) -> JSONResponse:
        """Translate a service error into its status and code."""
        headers = None
        if isinstance(exc, UnauthenticatedError):
            headers = {"WWW-Authenticate": "Bearer"}

        if exc.status_code >= 500:
            logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.detail}")

        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.code, exc.detail),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Malformed request bodies and parameters share the validation_error code."""
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=ValidationError.status_code,
            content=_error_body(ValidationError.code, errors),
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """Log the database error, hide it from the client."""
        logger.error(f"Database error: {exc}", exc_info=True)
        error = InternalError(
            str(exc) if settings.debug else "A database error occurred. Please try again later."
        )
        return JSONResponse(
            status_code=error.status_code,
            content=_error_body(error.code, error.detail),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.error(f"Unhandled error: {exc}", exc_info=True)
        error = InternalError(str(exc) if settings.debug else None)
        return JSONResponse(
            status_code=error.status_code,
            content=_error_body(error.code, error.detail),
        )

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    app.include_router(auth_router, prefix=settings.api_prefix)
    app.include_router(books_router, prefix=settings.api_prefix)
    app.include_router(reviews_router, prefix=settings.api_prefix)

    # WebSocket channels live outside the REST prefix: /ws/{channel}
    app.include_router(websocket_router)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
    )
    async def health_check() -> dict:
        """Liveness probe with rate limiting and WebSocket status."""
        ws_stats = get_connection_manager().get_stats()
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": __version__,
            "rate_limiting": {
                "enabled": settings.rate_limit_enabled,
                "default_limit": settings.rate_limit_default,
            },
            "websocket": {
                "endpoint": "/ws/{channel}",
                "connections": ws_stats["total_connections"],
                "channels": ws_stats["channels"],
            },
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
    )
    async def root() -> dict:
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# uvicorn bibliobuzz.main:app

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bibliobuzz.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
