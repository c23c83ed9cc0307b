"""
Database Package

Organized by purpose for better modularity:
- core: Async engine and session management
- models: SQLAlchemy models (users, one-time codes, support tickets)
- operations: High-level database operations used by the API layer
"""

from .core import (
    get_async_engine,
    get_session_factory,
    get_session,
    init_async_db,
    check_async_db,
    close_async_db,
)

from .models import (
    Base,
    User,
    UserSettings,
    PasswordResetToken,
    EmailChangeToken,
    Ticket,
    TicketMessage,
    TicketStatusHistory,
)

__all__ = [
    # Core
    'get_async_engine',
    'get_session_factory',
    'get_session',
    'init_async_db',
    'check_async_db',
    'close_async_db',
    # Models
    'Base',
    'User',
    'UserSettings',
    'PasswordResetToken',
    'EmailChangeToken',
    'Ticket',
    'TicketMessage',
    'TicketStatusHistory',
]
