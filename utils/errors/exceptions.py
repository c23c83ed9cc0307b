"""Custom exception classes with detailed error information."""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class BaseApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize base error.

        Args:
            message: Error message
            error_code: Machine-readable error code
            status_code: HTTP status code
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "error": self.error_code,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class ValidationError(BaseApplicationError):
    """Request validation error."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            **kwargs
        )
        if field is not None:
            self.details["field"] = field


class AuthenticationError(BaseApplicationError):
    """Missing, invalid or expired credentials."""

    def __init__(
        self,
        message: str,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="AUTHENTICATION_ERROR",
            status_code=401,
            **kwargs
        )


class ForbiddenError(BaseApplicationError):
    """Authenticated, but not allowed to act on the resource."""

    def __init__(
        self,
        message: str = "Access denied",
        **kwargs
    ):
        super().__init__(
            message,
            error_code="FORBIDDEN",
            status_code=403,
            **kwargs
        )


class NotFoundError(BaseApplicationError):
    """Requested resource does not exist."""

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="NOT_FOUND",
            status_code=404,
            **kwargs
        )
        if resource is not None:
            self.details["resource"] = resource


class ConflictError(BaseApplicationError):
    """Uniqueness conflict, e.g. an email already in use."""

    def __init__(
        self,
        message: str,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="CONFLICT",
            status_code=409,
            **kwargs
        )


class InvalidOrExpiredError(BaseApplicationError):
    """One-time code is wrong, already used or past its expiry."""

    def __init__(
        self,
        message: str = "Invalid or expired code",
        **kwargs
    ):
        super().__init__(
            message,
            error_code="INVALID_OR_EXPIRED",
            status_code=400,
            **kwargs
        )


class InvalidStateError(BaseApplicationError):
    """Operation not allowed in the resource's current state."""

    def __init__(
        self,
        message: str,
        current_state: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="INVALID_STATE",
            status_code=400,
            **kwargs
        )
        if current_state is not None:
            self.details["current_state"] = current_state


class DatabaseError(BaseApplicationError):
    """
    Database operation error.

    The message is shown to clients, so callers pass a generic one and log
    the underlying driver error themselves.
    """

    def __init__(
        self,
        message: str = "An internal error occurred",
        **kwargs
    ):
        super().__init__(message, error_code="DATABASE_ERROR", status_code=500, **kwargs)
