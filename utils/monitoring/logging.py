"""Structured logging with correlation IDs."""

import json
import logging
import sys
import uuid
from typing import Optional
from datetime import datetime, timezone
from pathlib import Path
from contextvars import ContextVar

from config import settings

# Context variable for correlation ID (task-local under asyncio)
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)


def get_correlation_id() -> str:
    """Get or generate correlation ID for request tracking."""
    correlation_id = correlation_id_var.get()
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
        correlation_id_var.set(correlation_id)
    return correlation_id


def set_correlation_id(correlation_id: str):
    """Set correlation ID for current context."""
    correlation_id_var.set(correlation_id)


def clear_correlation_id():
    """Clear correlation ID from context."""
    correlation_id_var.set(None)


class StructuredFormatter(logging.Formatter):
    """Custom formatter with structured output and correlation IDs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with structured data."""
        timestamp = datetime.now(timezone.utc).isoformat()
        correlation_id = get_correlation_id()

        # Format as JSON in production, pretty print in dev
        if settings.is_development:
            parts = [f"{timestamp} [{record.levelname}] {record.name} [{correlation_id[:8]}]"]
            parts.append(f"  Message: {record.getMessage()}")
            if hasattr(record, "context"):
                parts.append(f"  Context: {record.context}")
            if record.exc_info:
                parts.append(f"  Error: {self.formatException(record.exc_info)}")
            return "\n".join(parts)

        log_data = {
            "timestamp": timestamp,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": correlation_id,
        }
        if hasattr(record, "context"):
            log_data["context"] = record.context
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


def setup_logging():
    """Setup logging configuration."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, settings.log_level))

    if settings.is_development:
        console_handler.setFormatter(StructuredFormatter())
    else:
        # Plain format on the console in production, JSON goes to the file
        simple_formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        console_handler.setFormatter(simple_formatter)

    root_logger.addHandler(console_handler)

    if not settings.testing:
        try:
            log_dir = Path("logs")
            log_dir.mkdir(exist_ok=True)
            file_handler = logging.FileHandler(
                log_dir / "app.log",
                mode='a',
                encoding='utf-8',
                delay=True  # Don't open file until first write
            )
            file_handler.setFormatter(StructuredFormatter())
            file_handler.setLevel(logging.INFO)
            root_logger.addHandler(file_handler)
        except OSError as e:
            # If file logging fails, just continue with console logging
            print(f"Warning: Could not setup file logging: {e}", file=sys.stderr)

    root_logger.setLevel(getattr(logging, settings.log_level))

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


class AppLogger:
    """Logger wrapper with structured logging support."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _log(self, level: int, message: str, exc_info=None, **context):
        try:
            extra = {"context": context} if context else {}
            self.logger.log(level, message, exc_info=exc_info, extra=extra)
        except (BrokenPipeError, OSError):
            # A broken console must not take a request down with it
            pass

    def info(self, message: str, **context):
        """Log info message with context."""
        self._log(logging.INFO, message, **context)

    def error(self, message: str, error: Optional[Exception] = None, **context):
        """Log error with context and exception."""
        self._log(logging.ERROR, message, exc_info=error, **context)

    def warning(self, message: str, **context):
        """Log warning with context."""
        self._log(logging.WARNING, message, **context)

    def debug(self, message: str, **context):
        """Log debug message with context."""
        self._log(logging.DEBUG, message, **context)

    def request(self, method: str, path: str, status_code: int, latency_ms: int, **context):
        """Log a completed HTTP request."""
        level = logging.WARNING if status_code >= 500 else logging.INFO
        self._log(
            level,
            f"{method} {path} -> {status_code} ({latency_ms}ms)",
            method=method,
            path=path,
            status_code=status_code,
            latency_ms=latency_ms,
            **context
        )


def get_logger(name: str) -> AppLogger:
    """Get logger instance for a module."""
    if not logging.getLogger().handlers:
        setup_logging()
    return AppLogger(name)
