"""Application error taxonomy.

Services raise these; ``main`` maps them to ``{"error": <message>}`` bodies.
Messages are public: they never carry database errors or another tenant's
data.
"""

from fastapi import status


class AppError(Exception):
    """Base class for errors with a public message and an HTTP status."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(AppError):
    """Malformed identifier or payload, or a rule violated by the input."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "invalid payload"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(AppError):
    """No matching row inside the caller's organization."""
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(AppError):
    """Illegal status transition, immutable row or duplicate key."""
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"
