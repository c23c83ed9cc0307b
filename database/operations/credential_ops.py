"""
Credential Lifecycle Operations

Password change, OTP-gated password reset and OTP-gated email change for
the authenticated caller. Each operation validates and authorizes before
touching the database, commits its own transaction, then sends its
notification best-effort: a failed email never undoes or fails the change.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
import logging

from database.models import User
from database.operations.user_ops import (
    email_in_use,
    get_caller_user,
    normalize_email,
)
from database.operations.password_reset_ops import store_reset_otp, consume_reset_otp
from database.operations.email_change_ops import store_email_change_otp, consume_email_change_otp
from utils.auth import CallerContext, hash_password, verify_password, validate_password_policy
from utils.email import notify
from utils.errors import (
    AuthenticationError,
    ConflictError,
    InvalidOrExpiredError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


async def change_password(
    session: AsyncSession,
    caller: CallerContext,
    current_password: str,
    new_password: str,
) -> None:
    """
    Change the caller's password after checking the current one.

    Raises:
        ValidationError: New password too short
        AuthenticationError: Current password is wrong
    """
    if not current_password:
        raise ValidationError("Current password is required", field="current_password")
    validate_password_policy(new_password, field="new_password")

    user = await get_caller_user(session, caller)
    if not await verify_password(current_password, user.password_hash):
        logger.info(f"🔒 Wrong current password for user {user.id}")
        raise AuthenticationError("Current password is incorrect")

    user.password_hash = await hash_password(new_password)
    await session.commit()
    logger.info(f"✅ Password changed for user {user.id}")

    await notify("send_password_changed", user.email, user.name)


async def request_password_reset_otp(
    session: AsyncSession,
    caller: CallerContext,
    email: str,
) -> None:
    """
    Issue a reset code for the caller and email it.

    The email must be the caller's own address. A new request replaces any
    earlier code.

    Raises:
        NotFoundError: Email does not belong to the caller
    """
    user = await get_caller_user(session, caller)
    if not email or email.strip().lower() != user.email.lower():
        raise NotFoundError("Email not found", resource="user")

    otp = await store_reset_otp(session, user.id)
    await session.commit()

    # Code stays valid even if delivery fails; the user can ask again
    await notify("send_password_reset_otp", user.email, user.name, otp)


async def confirm_password_reset_otp(
    session: AsyncSession,
    caller: CallerContext,
    otp: str,
    new_password: str,
) -> None:
    """
    Set a new password using a reset code. The code is single-use.

    Raises:
        ValidationError: Missing code or new password too short
        InvalidOrExpiredError: Code wrong, already used or expired
    """
    if not otp:
        raise ValidationError("Verification code is required", field="otp")
    validate_password_policy(new_password, field="new_password")

    user = await get_caller_user(session, caller)
    if not await consume_reset_otp(session, user.id, otp.strip()):
        await session.rollback()
        raise InvalidOrExpiredError("Invalid or expired OTP")

    user.password_hash = await hash_password(new_password)
    await session.commit()
    logger.info(f"✅ Password reset with code for user {user.id}")

    await notify("send_password_changed", user.email, user.name)


async def request_email_change_otp(
    session: AsyncSession,
    caller: CallerContext,
    new_email: str,
) -> None:
    """
    Start an email change by sending a code to the new address.

    Raises:
        ValidationError: Address malformed or same as the current one
        ConflictError: Address already used by another account
    """
    new_email = normalize_email(new_email, field="new_email")
    user = await get_caller_user(session, caller)

    if new_email == user.email.lower():
        raise ValidationError("New email must be different from the current one", field="new_email")
    if await email_in_use(session, new_email, exclude_user_id=user.id):
        raise ConflictError("Email already in use")

    otp = await store_email_change_otp(session, user.id, new_email)
    await session.commit()

    await notify("send_email_change_otp", new_email, user.name, otp)


async def confirm_email_change(
    session: AsyncSession,
    caller: CallerContext,
    new_email: str,
    otp: str,
) -> User:
    """
    Complete an email change with the code sent to the new address.

    Consuming the code and updating the address commit together. Uniqueness
    is checked again here, and the unique index on users.email settles any
    race the check misses.

    Returns:
        The updated user

    Raises:
        InvalidOrExpiredError: No matching, unexpired pending change
        ConflictError: Address was taken in the meantime
    """
    if not otp:
        raise ValidationError("Verification code is required", field="otp")
    new_email = normalize_email(new_email, field="new_email")
    user = await get_caller_user(session, caller)
    old_email = user.email

    if not await consume_email_change_otp(session, user.id, new_email, otp.strip()):
        await session.rollback()
        raise InvalidOrExpiredError("Invalid or expired OTP")

    if await email_in_use(session, new_email, exclude_user_id=user.id):
        await session.rollback()
        raise ConflictError("Email already in use")

    user.email = new_email
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        logger.warning(f"⚠️  Email change lost a race for {new_email}: {e.orig}")
        raise ConflictError("Email already in use") from e
    await session.refresh(user)

    logger.info(f"✅ Email changed for user {user.id}")
    await notify("send_email_changed", old_email, new_email, user.name)
    return user


__all__ = [
    'change_password',
    'request_password_reset_otp',
    'confirm_password_reset_otp',
    'request_email_change_otp',
    'confirm_email_change',
]
