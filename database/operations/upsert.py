"""
Insert-or-update keyed by user.

The one-time-code and settings tables hold at most one row per user,
enforced by a unique key on user_id. A repeated request overwrites the row
in a single statement instead of a racy read-then-write.
"""

from typing import Any, Dict

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def _dialect_insert(session: AsyncSession):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"Upsert is not supported on {dialect}")


async def upsert_by_user(
    session: AsyncSession,
    model,
    user_id: int,
    values: Dict[str, Any],
) -> None:
    """
    Insert a row for user_id or overwrite the existing one.

    Args:
        session: Database session
        model: Mapped class with a unique user_id column
        user_id: Owner of the row
        values: Column values to write (excluding user_id)
    """
    insert = _dialect_insert(session)
    stmt = insert(model).values(user_id=user_id, **values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[model.user_id],
        set_=values,
    )
    await session.execute(stmt)


__all__ = ['upsert_by_user']
