"""
Session Token Operations

Logout denylist: a revoked token stays rejected until its own expiry,
after which the row can be purged.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
import logging
from datetime import datetime, timezone

from database.models.revoked_token import RevokedToken

logger = logging.getLogger(__name__)


async def revoke_token(
    session: AsyncSession,
    jti: str,
    user_id: int,
    expires_at: datetime,
) -> RevokedToken:
    """
    Add a token to the denylist and commit.

    Args:
        session: Database session
        jti: Token identifier claim
        user_id: Owner of the token
        expires_at: When the token would have expired

    Returns:
        Denylist entry
    """
    entry = await session.get(RevokedToken, jti)
    if entry is None:
        entry = RevokedToken(jti=jti, user_id=user_id, expires_at=expires_at)
        session.add(entry)
        await session.commit()
        logger.info(f"✅ Token revoked for user {user_id}")
    return entry


async def is_token_revoked(session: AsyncSession, jti: str) -> bool:
    """Check whether a token identifier is on the denylist."""
    result = await session.execute(
        select(RevokedToken.jti).where(RevokedToken.jti == jti).limit(1)
    )
    return result.first() is not None


async def purge_expired_revoked_tokens(session: AsyncSession) -> int:
    """
    Remove denylist rows for tokens that have expired on their own.

    Returns:
        Number of rows removed
    """
    result = await session.execute(
        delete(RevokedToken).where(
            RevokedToken.expires_at <= datetime.now(timezone.utc)
        ).execution_options(synchronize_session=False)
    )
    if result.rowcount:
        logger.info(f"🧹 Purged {result.rowcount} expired revoked tokens")
    return result.rowcount


__all__ = [
    'revoke_token',
    'is_token_revoked',
    'purge_expired_revoked_tokens',
]
