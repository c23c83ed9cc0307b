"""
Database Operations Package

High-level database operations organized by purpose:
- user_ops: registration, login, profile, account deletion
- credential_ops: password change, OTP password reset, OTP email change
- settings_ops: notification and privacy preferences
- preferences_ops: display preferences and saved locations
- ticket_ops: support tickets, messages and status history
- admin_ops: user management for admins
- password_reset_ops / email_change_ops: one-time code storage
- token_ops: logout denylist
"""

from .user_ops import (
    register_user,
    authenticate_user,
    get_user_by_id,
    get_user_by_email,
    set_admin,
    delete_account,
)
from .credential_ops import (
    change_password,
    request_password_reset_otp,
    confirm_password_reset_otp,
    request_email_change_otp,
    confirm_email_change,
)
from .settings_ops import get_settings, update_settings
from .preferences_ops import (
    get_preferences,
    update_preferences,
    list_locations,
    add_location,
    delete_location,
)
from .ticket_ops import (
    create_ticket,
    add_message,
    close_ticket,
    reopen_ticket,
    list_user_tickets,
    list_all_tickets,
    list_tickets,
    get_ticket_statistics,
    get_ticket_detail,
)
from .admin_ops import (
    list_users,
    get_user_detail,
    create_user,
    update_user,
    delete_user,
    toggle_admin,
)
from .password_reset_ops import purge_expired_reset_tokens
from .email_change_ops import purge_expired_email_change_tokens
from .token_ops import revoke_token, is_token_revoked, purge_expired_revoked_tokens

__all__ = [
    # Users
    'register_user',
    'authenticate_user',
    'get_user_by_id',
    'get_user_by_email',
    'set_admin',
    'delete_account',
    # Credentials
    'change_password',
    'request_password_reset_otp',
    'confirm_password_reset_otp',
    'request_email_change_otp',
    'confirm_email_change',
    # Settings
    'get_settings',
    'update_settings',
    'get_preferences',
    'update_preferences',
    'list_locations',
    'add_location',
    'delete_location',
    # Tickets
    'create_ticket',
    'add_message',
    'close_ticket',
    'reopen_ticket',
    'list_user_tickets',
    'list_all_tickets',
    'list_tickets',
    'get_ticket_statistics',
    'get_ticket_detail',
    # Admin
    'list_users',
    'get_user_detail',
    'create_user',
    'update_user',
    'delete_user',
    'toggle_admin',
    # Sessions
    'revoke_token',
    'is_token_revoked',
    # Maintenance
    'purge_expired_reset_tokens',
    'purge_expired_email_change_tokens',
    'purge_expired_revoked_tokens',
]
