"""
Admin Router

User management for admins. Every route requires the admin role; the
rules themselves live in database.operations.admin_ops.
"""

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_admin
from api.models import MessageResponse, UserEnvelope, UserListResponse
from database.core.async_connection import get_session
from database.operations import admin_ops
from utils.auth import CallerContext

router = APIRouter(prefix="/api/admin", tags=["admin"])


class CreateUserRequest(BaseModel):
    """New account created by an admin."""
    email: str
    password: str = Field(..., description="Password (min 6 characters)")
    name: str
    is_admin: bool = False


class UpdateUserRequest(BaseModel):
    """Partial account update. Omitted fields are left alone."""
    name: Optional[str] = None
    email: Optional[str] = None
    is_admin: Optional[bool] = None
    password: Optional[str] = None


@router.get("/users", response_model=UserListResponse)
async def list_users(
    search: Optional[str] = Query(None, description="Match against name or email"),
    page: int = Query(1),
    limit: int = Query(admin_ops.USERS_PAGE_SIZE),
    caller: CallerContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """List accounts, newest first."""
    return await admin_ops.list_users(session, caller, search=search, page=page, limit=limit)


@router.get("/users/{user_id}", response_model=UserEnvelope)
async def get_user(
    user_id: int,
    caller: CallerContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Get one account."""
    return UserEnvelope(user=await admin_ops.get_user_detail(session, caller, user_id))


@router.post("/users", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: CreateUserRequest,
    caller: CallerContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Create an account."""
    user = await admin_ops.create_user(
        session, caller, request.email, request.password, request.name, is_admin=request.is_admin
    )
    return UserEnvelope(message="User created successfully", user=user)


@router.put("/users/{user_id}", response_model=UserEnvelope)
async def update_user(
    user_id: int,
    request: UpdateUserRequest,
    caller: CallerContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Update name, email, admin role or password."""
    user = await admin_ops.update_user(
        session,
        caller,
        user_id,
        name=request.name,
        email=request.email,
        is_admin=request.is_admin,
        password=request.password,
    )
    return UserEnvelope(message="User updated successfully", user=user)


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    caller: CallerContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Delete an account and everything it owns."""
    await admin_ops.delete_user(session, caller, user_id)
    return MessageResponse(message="User deleted successfully")


@router.post("/users/{user_id}/toggle-admin", response_model=UserEnvelope)
async def toggle_admin(
    user_id: int,
    caller: CallerContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Promote or demote another account."""
    user = await admin_ops.toggle_admin(session, caller, user_id)
    action = "promoted to" if user["is_admin"] else "demoted from"
    return UserEnvelope(message=f"User {action} admin", user=user)
