"""Authentication utilities."""

from .caller import CallerContext
from .jwt_handler import (
    create_access_token,
    create_session_token,
    verify_access_token,
    get_token_payload,
)
from .password import (
    hash_password,
    verify_password,
    hash_password_sync,
    verify_password_sync,
    validate_password_policy,
)

__all__ = [
    "CallerContext",
    "create_access_token",
    "create_session_token",
    "verify_access_token",
    "get_token_payload",
    "hash_password",
    "verify_password",
    "hash_password_sync",
    "verify_password_sync",
    "validate_password_policy",
]
