"""
Profile Router

Read the authenticated caller's account.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_caller
from api.models import UserResponse
from database.core.async_connection import get_session
from database.operations.user_ops import get_caller_user
from utils.auth import CallerContext

router = APIRouter(prefix="/api/user", tags=["profile"])


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_session),
):
    """Get the caller's profile."""
    user = await get_caller_user(session, caller)
    return UserResponse.model_validate(user)
