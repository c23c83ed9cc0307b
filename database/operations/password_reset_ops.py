"""
Password Reset Token Operations

Database operations for the one-time codes of the OTP password reset flow.
None of these commit; the calling operation owns the transaction.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, and_
from typing import Optional
import secrets
import logging
from datetime import datetime, timedelta, timezone

from database.models.password_reset_token import PasswordResetToken
from database.operations.upsert import upsert_by_user
from config.settings import settings

logger = logging.getLogger(__name__)


def generate_otp() -> str:
    """
    Generate a numeric one-time code.

    Returns:
        Code of exactly settings.otp_length digits, never zero-padded
    """
    low = 10 ** (settings.otp_length - 1)
    high = 10 ** settings.otp_length
    return str(low + secrets.randbelow(high - low))


def otp_expiry() -> datetime:
    """Expiry timestamp for a code issued now."""
    return datetime.now(timezone.utc) + timedelta(minutes=settings.otp_expire_minutes)


async def store_reset_otp(session: AsyncSession, user_id: int) -> str:
    """
    Issue a new reset code for a user, replacing any earlier one.

    Args:
        session: Database session
        user_id: User requesting the reset

    Returns:
        The new code
    """
    otp = generate_otp()
    await upsert_by_user(
        session,
        PasswordResetToken,
        user_id,
        {
            "token": otp,
            "expires_at": otp_expiry(),
            "created_at": datetime.now(timezone.utc),
        },
    )
    logger.info(f"✅ Password reset code stored for user {user_id}")
    return otp


async def get_reset_token(session: AsyncSession, user_id: int) -> Optional[PasswordResetToken]:
    """Current reset token row for a user, expired or not."""
    result = await session.execute(
        select(PasswordResetToken)
        .where(PasswordResetToken.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def consume_reset_otp(session: AsyncSession, user_id: int, otp: str) -> bool:
    """
    Delete the user's reset code if it matches and has not expired.

    The match and the delete are one statement, so a code can be used once
    even when two confirmations race.

    Returns:
        True if a valid code was consumed
    """
    result = await session.execute(
        delete(PasswordResetToken).where(
            and_(
                PasswordResetToken.user_id == user_id,
                PasswordResetToken.token == otp,
                PasswordResetToken.expires_at > datetime.now(timezone.utc),
            )
        ).execution_options(synchronize_session=False)
    )
    consumed = result.rowcount == 1
    if not consumed:
        logger.debug(f"⚠️  No valid reset code for user {user_id}")
    return consumed


async def purge_expired_reset_tokens(session: AsyncSession) -> int:
    """
    Remove expired reset codes.

    Returns:
        Number of rows removed
    """
    result = await session.execute(
        delete(PasswordResetToken).where(
            PasswordResetToken.expires_at <= datetime.now(timezone.utc)
        ).execution_options(synchronize_session=False)
    )
    if result.rowcount:
        logger.info(f"🧹 Purged {result.rowcount} expired reset codes")
    return result.rowcount


__all__ = [
    'generate_otp',
    'otp_expiry',
    'store_reset_otp',
    'get_reset_token',
    'consume_reset_otp',
    'purge_expired_reset_tokens',
]
