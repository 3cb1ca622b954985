"""
Domain error kinds shared by the stores, services and API layer.
Each error carries the HTTP status it maps to and a client-safe message.
"""

from typing import List, Optional


class BookshelfError(Exception):
    """Base class for errors that are reported to API clients."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[str]] = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(BookshelfError):
    """Missing or malformed input."""
    status_code = 400
    default_message = "Invalid request data"


class AuthError(BookshelfError):
    """Bad credentials, or a missing, invalid or expired token."""
    status_code = 401
    default_message = "Access denied!"


class NotFoundError(BookshelfError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(BookshelfError):
    status_code = 409
    default_message = "Resource already exists"


class InternalError(BookshelfError):
    status_code = 500
