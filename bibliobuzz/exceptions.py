"""
Domain Exceptions

Error taxonomy shared by every service. Services raise the most specific
kind they can; the exception handlers registered in bibliobuzz.main translate
each kind into an HTTP status and a stable machine-readable code.

    Kind                  Status  Code
    ValidationError       422     validation_error
    UnauthenticatedError  401     unauthenticated
    ForbiddenError        403     forbidden
    NotFoundError         404     not_found
    ConflictError         409     conflict
    InternalError         500     internal_error
"""

from fastapi import status


class BiblioBuzzError(Exception):
    """Base exception for all service errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"
    default_detail: str = "An internal error occurred."

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(BiblioBuzzError):
    """Malformed or missing input."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_error"
    default_detail = "Invalid input."


class UnauthenticatedError(BiblioBuzzError):
    """Missing, invalid or expired credential, or anonymous caller."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    default_detail = "Not authorized, no valid session."


class ForbiddenError(BiblioBuzzError):
    """Authenticated but lacking the required capability."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_detail = "You are not allowed to perform this action."


class NotFoundError(BiblioBuzzError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Resource not found."


class ConflictError(BiblioBuzzError):
    """Uniqueness violation."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_detail = "Resource already exists."


class InternalError(BiblioBuzzError):
    """Unexpected storage or runtime failure."""
