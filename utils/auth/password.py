"""
Password Utilities

Bcrypt hashing run in a thread pool so it never blocks the event loop,
plus the minimum-length policy shared by every credential flow.
"""

import logging

import bcrypt
from fastapi.concurrency import run_in_threadpool

from config import settings
from utils.errors import ValidationError

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12


def _hash_sync(password: str) -> str:
    # Bcrypt has a 72-byte limit, truncate if necessary
    password_bytes = password.encode('utf-8')[:72]
    try:
        hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
        return hashed.decode('utf-8')
    except Exception as e:
        logger.error(f"Error hashing password: {e}")
        raise


def _verify_sync(password: str, hashed_password: str) -> bool:
    password_bytes = password.encode('utf-8')[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))
    except ValueError:
        # Malformed stored hash
        return False


async def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt in a thread pool to avoid blocking.

    Args:
        password: Plain text password

    Returns:
        Hashed password string
    """
    return await run_in_threadpool(_hash_sync, password)


async def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash in a thread pool.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    return await run_in_threadpool(_verify_sync, plain_password, hashed_password)


def hash_password_sync(password: str) -> str:
    """
    Blocking variant of hash_password.

    ONLY use this in scripts or tests. Request handlers use the async version.
    """
    return _hash_sync(password)


def verify_password_sync(plain_password: str, hashed_password: str) -> bool:
    """Blocking variant of verify_password, for scripts and tests."""
    return _verify_sync(plain_password, hashed_password)


def validate_password_policy(password: str, field: str = "password") -> None:
    """
    Enforce the minimum password length.

    Raises:
        ValidationError: If the password is shorter than the configured minimum
    """
    if password is None or len(password) < settings.password_min_length:
        raise ValidationError(
            f"Password must be at least {settings.password_min_length} characters long",
            field=field,
        )


__all__ = [
    'hash_password',
    'verify_password',
    'hash_password_sync',
    'verify_password_sync',
    'validate_password_policy',
]
