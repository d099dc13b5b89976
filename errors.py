"""
Error taxonomy for the Tipsy API.

Every error raised by the handlers derives from AppError. The HTTP layer
turns them into a uniform ``{"message": ...}`` body with ``status_code``.
"""

from typing import Optional


class AppError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or malformed input."""
    status_code = 400
    default_message = "Invalid request"


class DuplicateError(AppError):
    """Username or email already taken."""
    status_code = 400
    default_message = "Already exists"


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Access token required"


class InvalidToken(AppError):
    status_code = 403
    default_message = "Invalid or expired token"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class StorageError(AppError):
    """Snapshot could not be read or written. Logged by the store, never returned to clients."""
    default_message = "Storage failure"


class TooManyRequests(AppError):
    status_code = 429
    default_message = "Too many requests, please try again later."
