"""
Email Change Token Operations

Pending email changes and their one-time codes. The calling operation
owns the transaction.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, and_
from typing import Optional
import logging
from datetime import datetime, timezone

from database.models.email_change_token import EmailChangeToken
from database.operations.upsert import upsert_by_user
from database.operations.password_reset_ops import generate_otp, otp_expiry

logger = logging.getLogger(__name__)


async def store_email_change_otp(session: AsyncSession, user_id: int, new_email: str) -> str:
    """
    Record a pending change to new_email, replacing any earlier request.

    Returns:
        The new code
    """
    otp = generate_otp()
    await upsert_by_user(
        session,
        EmailChangeToken,
        user_id,
        {
            "new_email": new_email,
            "token": otp,
            "expires_at": otp_expiry(),
            "created_at": datetime.now(timezone.utc),
        },
    )
    logger.info(f"✅ Email change code stored for user {user_id}")
    return otp


async def get_email_change_token(session: AsyncSession, user_id: int) -> Optional[EmailChangeToken]:
    """Pending email change for a user, expired or not."""
    result = await session.execute(
        select(EmailChangeToken)
        .where(EmailChangeToken.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def consume_email_change_otp(
    session: AsyncSession,
    user_id: int,
    new_email: str,
    otp: str,
) -> bool:
    """
    Delete the pending change if user, address and code all match and it
    has not expired.

    Returns:
        True if a valid pending change was consumed
    """
    result = await session.execute(
        delete(EmailChangeToken).where(
            and_(
                EmailChangeToken.user_id == user_id,
                EmailChangeToken.new_email == new_email,
                EmailChangeToken.token == otp,
                EmailChangeToken.expires_at > datetime.now(timezone.utc),
            )
        ).execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def purge_expired_email_change_tokens(session: AsyncSession) -> int:
    """Remove expired pending email changes."""
    result = await session.execute(
        delete(EmailChangeToken).where(
            EmailChangeToken.expires_at <= datetime.now(timezone.utc)
        ).execution_options(synchronize_session=False)
    )
    if result.rowcount:
        logger.info(f"🧹 Purged {result.rowcount} expired email change codes")
    return result.rowcount


__all__ = [
    'store_email_change_otp',
    'get_email_change_token',
    'consume_email_change_otp',
    'purge_expired_email_change_tokens',
]
