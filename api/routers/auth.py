"""
Authentication Router

Registration, login and logout. Sessions are bearer tokens; logout puts
the token on a denylist until it expires.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_caller
from api.models import AuthResponse, MessageResponse, UserResponse
from database.core.async_connection import get_session
from database.operations.token_ops import revoke_token
from database.operations.user_ops import register_user, authenticate_user
from utils.auth import CallerContext, create_session_token, get_token_payload
from utils.monitoring import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    """Registration request."""
    email: str = Field(..., description="Account email")
    password: str = Field(..., description="Password (min 6 characters)")
    name: str = Field(..., description="Display name")


class LoginRequest(BaseModel):
    """Login request."""
    email: str
    password: str


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    session: AsyncSession = Depends(get_session),
):
    """Create an account and start a session."""
    user = await register_user(session, request.email, request.password, request.name)
    return AuthResponse(
        message="User registered successfully",
        token=create_session_token(user.id, user.email),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    session: AsyncSession = Depends(get_session),
):
    """Exchange email and password for a session token."""
    user = await authenticate_user(session, request.email, request.password)
    return AuthResponse(
        message="Login successful",
        token=create_session_token(user.id, user.email),
        user=UserResponse.model_validate(user),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    payload: Dict[str, Any] = Depends(get_token_payload),
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """
    End the session.

    The presented token is revoked, so later requests with it get 401.
    Other sessions of the same user are unaffected.
    """
    expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    await revoke_token(session, payload["jti"], caller.user_id, expires_at)
    logger.info(f"👋 User logged out: {caller.email}")
    return MessageResponse(message="Logged out successfully")
