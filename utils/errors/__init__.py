"""Error handling framework."""

from .exceptions import (
    BaseApplicationError,
    ValidationError,
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    InvalidOrExpiredError,
    InvalidStateError,
    DatabaseError,
)
from .handlers import (
    ErrorHandler,
    get_error_handler,
)

__all__ = [
    # Exceptions
    "BaseApplicationError",
    "ValidationError",
    "AuthenticationError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "InvalidOrExpiredError",
    "InvalidStateError",
    "DatabaseError",
    # Handlers
    "ErrorHandler",
    "get_error_handler",
]
