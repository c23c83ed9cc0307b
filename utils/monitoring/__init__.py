"""Logging and request correlation."""

from .logging import (
    AppLogger,
    get_logger,
    setup_logging,
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)

__all__ = [
    "AppLogger",
    "get_logger",
    "setup_logging",
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
]
