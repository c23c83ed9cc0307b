"""Error handling utilities."""

import traceback
from typing import Optional, Any, Dict

from .exceptions import BaseApplicationError
from utils.monitoring import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR_BODY = {
    "error": "INTERNAL_ERROR",
    "message": "An internal error occurred",
    "status_code": 500,
}


class ErrorHandler:
    """
    Centralized error handling.

    Logs every error with its context and turns it into the response body.
    Only BaseApplicationError messages reach the client; anything else
    becomes a generic 500 body.
    """

    def __init__(self):
        self.error_count = 0
        self.error_history: list = []
        self.max_history = 100

    def log_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None
    ):
        """
        Log error with context.

        Args:
            error: Exception to log
            context: Additional context
        """
        self.error_count += 1

        error_info = {
            "type": type(error).__name__,
            "message": str(error),
            "context": context or {},
        }
        self.error_history.append(error_info)
        if len(self.error_history) > self.max_history:
            self.error_history.pop(0)

        if isinstance(error, BaseApplicationError):
            # Client errors are expected traffic
            log = logger.error if error.status_code >= 500 else logger.warning
            log(
                f"{error.error_code}: {error.message}",
                error_code=error.error_code,
                status_code=error.status_code,
                details=error.details,
                **(context or {}),
            )
        else:
            logger.error(
                f"{type(error).__name__}: {str(error)}",
                error=error,
                traceback=traceback.format_exception(type(error), error, error.__traceback__),
                **(context or {}),
            )

    def handle_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Handle error and return the response body.

        Args:
            error: Exception to handle
            context: Additional context

        Returns:
            Error response body
        """
        self.log_error(error, context)

        if isinstance(error, BaseApplicationError):
            return error.to_dict()

        return dict(INTERNAL_ERROR_BODY)

    def get_stats(self) -> Dict[str, Any]:
        """Get error statistics."""
        error_types: Dict[str, int] = {}
        for error in self.error_history:
            error_type = error["type"]
            error_types[error_type] = error_types.get(error_type, 0) + 1

        return {
            "total_errors": self.error_count,
            "recent_errors": len(self.error_history),
            "error_types": error_types,
        }


# Global error handler
_global_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """Get or create global error handler."""
    global _global_handler
    if _global_handler is None:
        _global_handler = ErrorHandler()
    return _global_handler
