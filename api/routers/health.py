"""Health Check Router - System status endpoints."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from datetime import datetime, timezone

from api.models import HealthResponse
from database.core.async_connection import check_async_db
from config import settings
from utils.errors import get_error_handler

API_VERSION = "1.0.0"

router = APIRouter(prefix="", tags=["Health"])


@router.get("/", include_in_schema=True)
async def root():
    """API root endpoint with welcome message."""
    return {
        "message": "Aether Account & Support API",
        "version": API_VERSION,
        "docs": "/docs",
        "health": "/health",
    }


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Returns 503 when the database does not answer. Also reports the
    errors handled since startup.
    """
    database_ok = await check_async_db()
    body = HealthResponse(
        status="healthy" if database_ok else "degraded",
        version=API_VERSION,
        database=database_ok,
        email_enabled=settings.email_enabled,
        errors=get_error_handler().get_stats(),
        timestamp=datetime.now(timezone.utc),
    )
    if not database_ok:
        return JSONResponse(status_code=503, content=body.model_dump(mode="json"))
    return body
