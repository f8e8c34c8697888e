"""
API error kinds

Each error carries the HTTP status it maps to and the message returned in
the ``{"error": ...}`` body. Handlers raise them; main.py renders them.
"""

from typing import Optional


class ApiError(Exception):
    status_code = 500
    message = "Server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(ApiError):
    """Missing or invalid field in the request body."""
    status_code = 400
    message = "Invalid request"


class NotFoundError(ApiError):
    status_code = 404
    message = "Not found"


class ForbiddenError(ApiError):
    status_code = 403
    message = "Forbidden"


class StoreError(ApiError):
    """Database failure. The cause is logged, never sent to the client."""
    status_code = 500
    message = "Server error"
