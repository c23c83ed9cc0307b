"""
FastAPI Application.

Aether account & support backend with:
- Account registration and session tokens
- Credential lifecycle (password change, OTP reset, OTP email change)
- Support tickets with admin visibility
- Correlation IDs and uniform error bodies
"""

import time
import uuid

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api.lifespan import lifespan
from api.routers import (
    health_router,
    auth_router,
    profile_router,
    settings_router,
    tickets_router,
    admin_router,
)
from utils.monitoring import get_logger, get_correlation_id, set_correlation_id
from utils.errors import BaseApplicationError, DatabaseError, ValidationError, get_error_handler
from config import settings

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title="Aether Account & Support API",
    description="""
    Backend for the Aether weather dashboard.

    ## Accounts
    - Registration, login and bearer-token sessions
    - Password change and OTP-gated password reset
    - OTP-gated email change
    - Notification settings and account deletion

    ## Support
    - Tickets with threaded messages
    - Open, closed and reopened lifecycle with an audit trail
    - Admin view of every ticket with statistics
    """,
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    redirect_slashes=False,
)


# ============================================================================
# Middleware Stack
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", CORRELATION_HEADER],
    expose_headers=[CORRELATION_HEADER],
    max_age=600,
)


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    """Tag every request with a correlation ID and log its outcome."""
    set_correlation_id(request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4()))
    started = time.perf_counter()

    response = await call_next(request)

    latency_ms = int((time.perf_counter() - started) * 1000)
    response.headers[CORRELATION_HEADER] = get_correlation_id()
    logger.request(request.method, request.url.path, response.status_code, latency_ms)
    return response


# ============================================================================
# Exception Handlers
# ============================================================================

def _request_context(request: Request) -> dict:
    return {
        "path": request.url.path,
        "method": request.method,
        "correlation_id": get_correlation_id(),
    }


@app.exception_handler(BaseApplicationError)
async def application_error_handler(request: Request, exc: BaseApplicationError):
    """Handle application errors."""
    body = get_error_handler().handle_error(exc, context=_request_context(request))
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies and parameters as validation errors."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    error = ValidationError(
        first.get("msg", "Validation failed"),
        field=field or None,
        details={"errors": [
            {"loc": [str(part) for part in e.get("loc", ())], "msg": e.get("msg")}
            for e in errors
        ]},
    )
    body = get_error_handler().handle_error(error, context=_request_context(request))
    return JSONResponse(status_code=error.status_code, content=body)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    """Log persistence failures in full, answer with a generic 500."""
    get_error_handler().log_error(exc, context=_request_context(request))
    error = DatabaseError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    body = get_error_handler().handle_error(exc, context=_request_context(request))
    body["correlation_id"] = get_correlation_id()
    return JSONResponse(status_code=500, content=body)


# ============================================================================
# Routers
# ============================================================================

# Health & Status
app.include_router(health_router)

# Authentication (Public - no auth required)
app.include_router(auth_router)

# Account
app.include_router(profile_router)
app.include_router(settings_router)

# Support
app.include_router(tickets_router)

# Administration
app.include_router(admin_router)


# ============================================================================
# Application Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower()
    )
