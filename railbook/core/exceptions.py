"""
Service error taxonomy.

Every expected failure is a ServiceError subclass carrying a stable
machine-readable ``code``, the HTTP status it maps to, and a message that is
safe to show to the caller. The API layer turns them into
``{"error": {"code": ..., "message": ...}}`` payloads.
"""

from typing import Optional


class ServiceError(Exception):
    """Base error with a stable code, HTTP status and caller-safe message."""

    code = "BAD_REQUEST"
    status_code = 400
    message = "Bad request"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidInput(ServiceError):
    code = "INVALID_INPUT"
    status_code = 400
    message = "Invalid input"


class InvalidCredentials(ServiceError):
    # Same error for unknown user and wrong password
    code = "INVALID_CREDENTIALS"
    status_code = 401
    message = "Invalid username or password"


class Unauthenticated(ServiceError):
    code = "UNAUTHENTICATED"
    status_code = 401
    message = "Authentication required"


class InvalidToken(ServiceError):
    code = "INVALID_TOKEN"
    status_code = 401
    message = "Invalid or expired token"


class Forbidden(ServiceError):
    code = "FORBIDDEN"
    status_code = 403
    message = "Forbidden"


class DuplicateUser(ServiceError):
    code = "DUPLICATE_USER"
    status_code = 409
    message = "Username already taken"


class NotFound(ServiceError):
    code = "NOT_FOUND"
    status_code = 404
    message = "Not found"


class NoSeatsAvailable(ServiceError):
    code = "NO_SEATS_AVAILABLE"
    status_code = 400
    message = "No seats available on this train"


class StorageError(ServiceError):
    """Infrastructure failure. The message never carries driver detail."""

    code = "STORAGE_ERROR"
    status_code = 500
    message = "A storage error occurred. Please try again later."
