"""
API Dependencies.

FastAPI dependencies for authentication, database access, and common utilities.
"""

from typing import Any, Dict
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database.core.async_connection import get_session
from database.operations.token_ops import is_token_revoked
from database.operations.user_ops import get_user_by_id
from utils.auth import CallerContext, get_token_payload
from utils.errors import AuthenticationError, ForbiddenError


# ============================================================================
# Caller Dependencies
# ============================================================================

async def get_current_caller(
    payload: Dict[str, Any] = Depends(get_token_payload),
    session: AsyncSession = Depends(get_session),
) -> CallerContext:
    """
    Build the caller context for an authenticated request.

    The admin flag comes from the user row, not the token, so a role change
    applies to tokens that were already issued.

    Raises:
        AuthenticationError: Token was revoked by logout, or the account
            no longer exists
    """
    try:
        user_id = int(payload["user_id"])
    except (TypeError, ValueError) as e:
        raise AuthenticationError("Invalid token claims") from e

    if await is_token_revoked(session, payload["jti"]):
        raise AuthenticationError("Token has been revoked")

    user = await get_user_by_id(session, user_id)
    if user is None:
        raise AuthenticationError("User no longer exists")

    return CallerContext(
        user_id=user.id,
        email=user.email,
        name=user.name,
        is_admin=bool(user.is_admin),
    )


async def require_admin(
    caller: CallerContext = Depends(get_current_caller),
) -> CallerContext:
    """
    Require the admin role.

    Raises:
        ForbiddenError: Caller is not an admin
    """
    if not caller.is_admin:
        raise ForbiddenError("Admin access required")
    return caller
