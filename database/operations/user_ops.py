"""
User Database Operations

Account registration, login, profile lookup and account deletion.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Optional
import logging
from datetime import datetime, timezone

from email_validator import validate_email, EmailNotValidError

from database.models import (
    User,
    UserSettings,
    UserPreferences,
    SavedLocation,
    PasswordResetToken,
    EmailChangeToken,
    RevokedToken,
    Ticket,
    TicketMessage,
    TicketStatusHistory,
)
from utils.auth import CallerContext, hash_password, verify_password, validate_password_policy
from utils.email import notify
from utils.errors import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def normalize_email(email: str, field: str = "email") -> str:
    """
    Validate an address and return it lowercased.

    Raises:
        ValidationError: If the address is malformed
    """
    if not email or "@" not in email:
        raise ValidationError("Invalid email address", field=field)
    try:
        result = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email address: {e}", field=field) from e
    return result.normalized.lower()


async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[User]:
    """
    Get user by primary key.

    Args:
        session: Database session
        user_id: User ID

    Returns:
        User or None
    """
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalars().first()


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    """Get user by email (case-insensitive)."""
    result = await session.execute(
        select(User).where(func.lower(User.email) == email.lower())
    )
    return result.scalars().first()


async def email_in_use(
    session: AsyncSession,
    email: str,
    exclude_user_id: Optional[int] = None,
) -> bool:
    """
    Check whether an address belongs to an account.

    Args:
        session: Database session
        email: Address to check
        exclude_user_id: Ignore this account (the caller)
    """
    stmt = select(User.id).where(func.lower(User.email) == email.lower())
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    result = await session.execute(stmt.limit(1))
    return result.first() is not None


async def get_caller_user(session: AsyncSession, caller: CallerContext) -> User:
    """
    Load the caller's user row.

    Raises:
        NotFoundError: If the account no longer exists
    """
    user = await get_user_by_id(session, caller.user_id)
    if user is None:
        raise NotFoundError("User not found", resource="user")
    return user


async def register_user(
    session: AsyncSession,
    email: str,
    password: str,
    name: str,
    is_admin: bool = False,
) -> User:
    """
    Create a new account.

    Args:
        session: Database session
        email: Account email
        password: Plain text password (will be hashed)
        name: Display name
        is_admin: Grant the admin role

    Returns:
        Created user

    Raises:
        ValidationError: Malformed email, short password or blank name
        ConflictError: Email already registered
    """
    email = normalize_email(email)
    validate_password_policy(password)
    if not name or not name.strip():
        raise ValidationError("Name is required", field="name")

    if await email_in_use(session, email):
        raise ConflictError("User already exists with this email")

    user = User(
        email=email,
        name=name.strip(),
        password_hash=await hash_password(password),
        is_admin=is_admin,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        logger.warning(f"⚠️  Registration race for {email}: {e.orig}")
        raise ConflictError("User already exists with this email") from e
    await session.refresh(user)

    logger.info(f"✅ User registered: {email} (id={user.id})")
    return user


async def authenticate_user(session: AsyncSession, email: str, password: str) -> User:
    """
    Check credentials and stamp last_login.

    Raises:
        AuthenticationError: Unknown email or wrong password (same message for both)
    """
    user = await get_user_by_email(session, (email or "").strip())
    if user is None or not await verify_password(password or "", user.password_hash):
        logger.info(f"🔒 Failed login for {email}")
        raise AuthenticationError("Invalid email or password")

    user.last_login = datetime.now(timezone.utc)
    await session.commit()
    await session.refresh(user)

    logger.info(f"✅ User logged in: {user.email}")
    return user


async def set_admin(session: AsyncSession, email: str, is_admin: bool = True) -> User:
    """
    Grant or revoke the admin role.

    Raises:
        NotFoundError: No account with that email
    """
    user = await get_user_by_email(session, email)
    if user is None:
        raise NotFoundError(f"No user with email {email}", resource="user")
    user.is_admin = is_admin
    await session.commit()
    logger.info(f"✅ Admin role {'granted to' if is_admin else 'revoked from'} {email}")
    return user


async def purge_user(session: AsyncSession, user_id: int) -> None:
    """
    Delete an account row and everything it owns. Does not commit.

    Owned tickets go with their messages and history. The user's messages,
    history entries and closures on other users' tickets are kept but
    detached.
    """
    owned_tickets = select(Ticket.id).where(Ticket.user_id == user_id)
    await session.execute(delete(TicketMessage).where(TicketMessage.ticket_id.in_(owned_tickets)))
    await session.execute(delete(TicketStatusHistory).where(TicketStatusHistory.ticket_id.in_(owned_tickets)))
    await session.execute(delete(Ticket).where(Ticket.user_id == user_id))

    await session.execute(
        update(TicketMessage).where(TicketMessage.sender_id == user_id).values(sender_id=None)
    )
    await session.execute(
        update(TicketStatusHistory).where(TicketStatusHistory.changed_by == user_id).values(changed_by=None)
    )
    await session.execute(
        update(Ticket).where(Ticket.closed_by == user_id).values(closed_by=None)
    )

    for model in (
        PasswordResetToken,
        EmailChangeToken,
        RevokedToken,
        UserSettings,
        UserPreferences,
        SavedLocation,
    ):
        await session.execute(delete(model).where(model.user_id == user_id))

    await session.execute(delete(User).where(User.id == user_id))


async def delete_account(session: AsyncSession, caller: CallerContext) -> None:
    """
    Permanently delete the caller's account and everything it owns.

    A goodbye email is sent afterwards, best-effort.

    Raises:
        NotFoundError: Account already gone
        DatabaseError: Deletion failed and was rolled back
    """
    user = await get_caller_user(session, caller)
    email, name = user.email, user.name
    user_id = user.id

    try:
        await purge_user(session, user_id)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"❌ Account deletion failed for user {user_id}: {e}")
        raise DatabaseError() from e

    logger.info(f"🗑️  Account deleted: {email} (id={user_id})")
    await notify("send_account_deleted", email, name)


__all__ = [
    'normalize_email',
    'get_user_by_id',
    'get_user_by_email',
    'email_in_use',
    'get_caller_user',
    'register_user',
    'authenticate_user',
    'set_admin',
    'purge_user',
    'delete_account',
]
