"""
Core Database Package

Database connection and session management.
"""

from .async_connection import (
    get_async_engine,
    get_session_factory,
    get_session,
    init_async_db,
    check_async_db,
    close_async_db,
)

__all__ = [
    'get_async_engine',
    'get_session_factory',
    'get_session',
    'init_async_db',
    'check_async_db',
    'close_async_db',
]
