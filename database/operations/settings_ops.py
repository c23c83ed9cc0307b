"""
User Settings Operations

Notification and privacy preferences, one row per user, created on first save.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Dict, Optional
import logging

from database.models import UserSettings
from database.operations.upsert import upsert_by_user
from utils.auth import CallerContext
from utils.errors import ValidationError

logger = logging.getLogger(__name__)


async def get_settings(session: AsyncSession, caller: CallerContext) -> Dict[str, bool]:
    """
    Get the caller's settings.

    Returns:
        Saved settings, or the defaults if the user never saved any
    """
    result = await session.execute(
        select(UserSettings)
        .where(UserSettings.user_id == caller.user_id)
        .execution_options(populate_existing=True)
    )
    row = result.scalars().first()
    if row is None:
        return dict(UserSettings.DEFAULTS)
    return row.to_dict()


async def update_settings(
    session: AsyncSession,
    caller: CallerContext,
    changes: Dict[str, Optional[bool]],
) -> Dict[str, bool]:
    """
    Save a partial settings update.

    Fields left out (or None) keep their current value.

    Args:
        session: Database session
        caller: Authenticated caller
        changes: Field name to new value

    Returns:
        The full settings after the update

    Raises:
        ValidationError: Unknown setting name
    """
    unknown = set(changes) - set(UserSettings.DEFAULTS)
    if unknown:
        raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}", field="settings")

    merged = await get_settings(session, caller)
    merged.update({k: bool(v) for k, v in changes.items() if v is not None})

    await upsert_by_user(session, UserSettings, caller.user_id, merged)
    await session.commit()

    logger.info(f"✅ Settings saved for user {caller.user_id}")
    return await get_settings(session, caller)


__all__ = ['get_settings', 'update_settings']
