"""
Database Models Package

Organized by purpose:
- base: Shared SQLAlchemy base
- user: User accounts and settings
- preferences: display preferences and saved locations
- password_reset_token / email_change_token: one-time codes
- revoked_token: logout denylist
- ticket: Support tickets, messages and status history
"""

from .base import Base

# User models
from .user import User, UserSettings
from .preferences import UserPreferences, SavedLocation
from .password_reset_token import PasswordResetToken
from .email_change_token import EmailChangeToken
from .revoked_token import RevokedToken

# Support ticket models
from .ticket import (
    Ticket,
    TicketMessage,
    TicketStatusHistory,
    TicketStatus,
    TicketCategory,
    TicketPriority,
)


__all__ = [
    'Base',
    'User',
    'UserSettings',
    'UserPreferences',
    'SavedLocation',
    'PasswordResetToken',
    'EmailChangeToken',
    'RevokedToken',
    'Ticket',
    'TicketMessage',
    'TicketStatusHistory',
    'TicketStatus',
    'TicketCategory',
    'TicketPriority',
]
