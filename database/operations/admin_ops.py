"""
Admin User Management Operations

Account administration for admins: search and page through users, create,
edit and delete accounts, and grant or revoke the admin role. Admins may
not delete or demote themselves.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Optional, Dict, Any
import logging
import math

from database.models import User
from database.operations.user_ops import (
    normalize_email,
    get_user_by_id,
    email_in_use,
    register_user,
    purge_user,
)
from utils.auth import CallerContext, hash_password, validate_password_policy
from utils.email import notify
from utils.errors import (
    ConflictError,
    DatabaseError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

USERS_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _require_admin(caller: CallerContext) -> None:
    if not caller.is_admin:
        raise ForbiddenError("Admin access required")


def _user_dict(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "is_admin": bool(user.is_admin),
        "created_at": user.created_at,
        "updated_at": user.updated_at,
        "last_login": user.last_login,
    }


async def _load_user(session: AsyncSession, user_id: int) -> User:
    user = await get_user_by_id(session, user_id)
    if user is None:
        raise NotFoundError("User not found", resource="user")
    return user


async def list_users(
    session: AsyncSession,
    caller: CallerContext,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = USERS_PAGE_SIZE,
) -> Dict[str, Any]:
    """
    Page through accounts, newest first.

    Args:
        session: Database session
        caller: Acting admin
        search: Case-insensitive substring of the name or email
        page: 1-based page number
        limit: Page size (1-100)

    Returns:
        {"users": [...], "pagination": {...}}

    Raises:
        ForbiddenError: Caller is not an admin
        ValidationError: Bad paging parameters
    """
    _require_admin(caller)
    if page < 1:
        raise ValidationError("Page must be at least 1", field="page")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}", field="limit")

    conditions = []
    if search and search.strip():
        term = search.strip()
        conditions.append(or_(
            User.email.icontains(term, autoescape=True),
            User.name.icontains(term, autoescape=True),
        ))

    stmt = (
        select(User)
        .order_by(User.created_at.desc(), User.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    count_stmt = select(func.count(User.id))
    if conditions:
        stmt = stmt.where(*conditions)
        count_stmt = count_stmt.where(*conditions)
    users = (await session.execute(stmt)).scalars().all()
    total = (await session.execute(count_stmt)).scalar_one()

    return {
        "users": [_user_dict(user) for user in users],
        "pagination": {
            "current_page": page,
            "total_pages": math.ceil(total / limit) if total else 0,
            "total_users": total,
            "limit": limit,
        },
    }


async def get_user_detail(session: AsyncSession, caller: CallerContext, user_id: int) -> Dict[str, Any]:
    """One account by id."""
    _require_admin(caller)
    return _user_dict(await _load_user(session, user_id))


async def create_user(
    session: AsyncSession,
    caller: CallerContext,
    email: str,
    password: str,
    name: str,
    is_admin: bool = False,
) -> Dict[str, Any]:
    """
    Create an account on someone's behalf.

    Same checks as self-registration.

    Raises:
        ForbiddenError: Caller is not an admin
        ValidationError: Malformed email, short password or blank name
        ConflictError: Email already registered
    """
    _require_admin(caller)
    user = await register_user(session, email, password, name, is_admin=is_admin)
    logger.info(f"✅ Admin {caller.email} created user {user.email}")
    return _user_dict(user)


async def update_user(
    session: AsyncSession,
    caller: CallerContext,
    user_id: int,
    name: Optional[str] = None,
    email: Optional[str] = None,
    is_admin: Optional[bool] = None,
    password: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Edit an account. Only the given fields change.

    Raises:
        ForbiddenError: Caller is not an admin
        NotFoundError: No such user
        ValidationError: Nothing to update, bad field value, or the caller
            tried to remove their own admin role
        ConflictError: Email belongs to another account
    """
    _require_admin(caller)
    if name is None and email is None and is_admin is None and password is None:
        raise ValidationError("No fields to update")

    user = await _load_user(session, user_id)

    if name is not None and not name.strip():
        raise ValidationError("Name cannot be empty", field="name")
    if email is not None:
        email = normalize_email(email)
        if await email_in_use(session, email, exclude_user_id=user.id):
            raise ConflictError("Email already in use by another user")
    if is_admin is False and user.id == caller.user_id:
        raise ValidationError("Cannot modify your own admin status", field="is_admin")
    if password is not None:
        validate_password_policy(password)

    if name is not None:
        user.name = name.strip()
    if email is not None:
        user.email = email
    if is_admin is not None:
        user.is_admin = is_admin
    if password is not None:
        user.password_hash = await hash_password(password)

    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        logger.warning(f"⚠️  Admin update lost an email race for user {user_id}: {e.orig}")
        raise ConflictError("Email already in use by another user") from e
    await session.refresh(user)

    logger.info(f"✅ Admin {caller.email} updated user {user_id}")
    return _user_dict(user)


async def delete_user(session: AsyncSession, caller: CallerContext, user_id: int) -> None:
    """
    Delete another account and everything it owns.

    Raises:
        ForbiddenError: Caller is not an admin
        ValidationError: Caller targeted their own account
        NotFoundError: No such user
        DatabaseError: Deletion failed and was rolled back
    """
    _require_admin(caller)
    if user_id == caller.user_id:
        raise ValidationError("Cannot delete your own account", field="user_id")

    user = await _load_user(session, user_id)
    email, name = user.email, user.name

    try:
        await purge_user(session, user_id)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"❌ Admin deletion failed for user {user_id}: {e}")
        raise DatabaseError() from e

    logger.info(f"🗑️  User deleted by admin {caller.email}: {email}")
    await notify("send_account_deleted", email, name)


async def toggle_admin(session: AsyncSession, caller: CallerContext, user_id: int) -> Dict[str, Any]:
    """
    Flip another account's admin role.

    Raises:
        ForbiddenError: Caller is not an admin
        ValidationError: Caller targeted their own account
        NotFoundError: No such user
    """
    _require_admin(caller)
    if user_id == caller.user_id:
        raise ValidationError("Cannot modify your own admin status", field="user_id")

    user = await _load_user(session, user_id)
    user.is_admin = not user.is_admin
    await session.commit()
    await session.refresh(user)

    logger.info(f"✅ Admin status for {user.email} set to {user.is_admin} by {caller.email}")
    return _user_dict(user)


__all__ = [
    'list_users',
    'get_user_detail',
    'create_user',
    'update_user',
    'delete_user',
    'toggle_admin',
]
