"""
Application lifespan management.

Handles startup and shutdown of the FastAPI application: logging,
configuration checks and the database engine.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from config.settings import settings
from database.core.async_connection import init_async_db, close_async_db
from utils.monitoring import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown hooks."""
    setup_logging()
    logger.info("🚀 Starting Aether Account & Support API")

    for issue in settings.validate_production_config():
        logger.warning(f"⚠️  Configuration: {issue}")

    if await init_async_db(create_tables=settings.db_auto_create):
        logger.info("✅ Database connection established")
    else:
        logger.warning("⚠️  Database connection check failed")

    if not settings.email_enabled:
        logger.info("📧 Email sending disabled; notifications are logged only")

    yield

    logger.info("🛑 Shutting down")
    await close_async_db()
    logger.info("✅ Database connections closed")
