#!/usr/bin/env python3
"""
Admin Account Script

Promote an existing account to admin, or create a new admin account.
Optionally purge expired one-time codes and revoked session tokens.

Usage:
  python create_admin.py EMAIL [--name NAME]      # prompts for a password if the account is new
  python create_admin.py EMAIL --revoke
  python create_admin.py --purge-codes
"""

import argparse
import asyncio
import getpass
import sys

from database.core.async_connection import get_session_factory, close_async_db
from database.operations.user_ops import get_user_by_email, register_user, set_admin
from database.operations.password_reset_ops import purge_expired_reset_tokens
from database.operations.email_change_ops import purge_expired_email_change_tokens
from database.operations.token_ops import purge_expired_revoked_tokens
from utils.errors import BaseApplicationError


async def promote(email: str, name: str, revoke: bool) -> int:
    async with get_session_factory()() as session:
        user = await get_user_by_email(session, email)
        if user is None:
            if revoke:
                print(f"❌ No account for {email}")
                return 1
            password = getpass.getpass(f"Password for new admin {email}: ")
            user = await register_user(session, email, password, name, is_admin=True)
            print(f"✅ Created admin account {user.email} (id={user.id})")
            return 0

        await set_admin(session, email, is_admin=not revoke)
        print(f"✅ {'Revoked admin from' if revoke else 'Promoted'} {user.email}")
        return 0


async def purge_codes() -> int:
    async with get_session_factory()() as session:
        resets = await purge_expired_reset_tokens(session)
        changes = await purge_expired_email_change_tokens(session)
        revoked = await purge_expired_revoked_tokens(session)
        await session.commit()
    print(f"🧹 Removed {resets} reset codes, {changes} email change codes and {revoked} revoked tokens")
    return 0


async def run(args) -> int:
    try:
        if args.purge_codes:
            return await purge_codes()
        return await promote(args.email, args.name, args.revoke)
    except BaseApplicationError as e:
        print(f"❌ {e.message}")
        return 1
    finally:
        await close_async_db()


def main():
    parser = argparse.ArgumentParser(description="Manage admin accounts")
    parser.add_argument("email", nargs="?", help="Account email")
    parser.add_argument("--name", default="Support Admin", help="Name for a new account")
    parser.add_argument("--revoke", action="store_true", help="Remove the admin role")
    parser.add_argument("--purge-codes", action="store_true", help="Delete expired one-time codes and revoked tokens")
    args = parser.parse_args()

    if not args.purge_codes and not args.email:
        parser.error("EMAIL is required unless --purge-codes is given")

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
