"""
Async Database Connection and Session Management

Provides async SQLAlchemy engine and session management for FastAPI.
The engine is created lazily so importing the app never opens a connection.
"""

from typing import AsyncGenerator, Optional
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool
import logging

from config.settings import settings

logger = logging.getLogger(__name__)

_async_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def get_async_engine() -> AsyncEngine:
    """Get or create the async engine."""
    global _async_engine
    if _async_engine is None:
        if settings.is_sqlite:
            # SQLite has no server-side pool to tune
            _async_engine = create_async_engine(
                settings.async_database_url,
                echo=settings.db_echo,
            )
        else:
            _async_engine = create_async_engine(
                settings.async_database_url,
                poolclass=AsyncAdaptedQueuePool,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=settings.db_pool_pre_ping,
                pool_recycle=settings.db_pool_recycle,
                pool_timeout=settings.db_pool_timeout,
                echo=settings.db_echo,
            )
    return _async_engine


def get_session_factory() -> async_sessionmaker:
    """Get or create the async session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_async_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )
    return _session_factory


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for async database sessions.

    Usage:
        @router.get("/tickets")
        async def list_tickets(session: AsyncSession = Depends(get_session)):
            ...

    Yields:
        AsyncSession
    """
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"❌ Database session error: {e}")
            raise
        finally:
            await session.close()


async def init_async_db(create_tables: bool = False) -> bool:
    """
    Initialize async database connection.

    Should be called during app startup.

    Args:
        create_tables: Create missing tables from the model metadata

    Returns:
        True if the database answered, False otherwise
    """
    from database.models import Base

    try:
        async with get_async_engine().begin() as conn:
            if create_tables:
                await conn.run_sync(Base.metadata.create_all)
                logger.info("✅ Database tables ensured")
            await conn.execute(text("SELECT 1"))
        logger.info("✅ Async database engine initialized")
        return True
    except Exception as e:
        logger.error(f"❌ Async database initialization failed: {e}")
        return False


async def check_async_db() -> bool:
    """Run a trivial query to check the database is reachable."""
    try:
        async with get_async_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"⚠️  Database health check failed: {e}")
        return False


async def close_async_db():
    """
    Close async database connection.

    Should be called during app shutdown.
    """
    global _async_engine, _session_factory
    if _async_engine is not None:
        await _async_engine.dispose()
        _async_engine = None
        _session_factory = None
        logger.info("🔌 Async database engine disposed")


__all__ = [
    'get_async_engine',
    'get_session_factory',
    'get_session',
    'init_async_db',
    'check_async_db',
    'close_async_db',
]
