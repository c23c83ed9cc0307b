#!/usr/bin/env python3
"""
Database Reset Script

This script will completely reset the database by:
1. Dropping all existing tables
2. Recreating all tables from models
3. Optionally creating test accounts

WARNING: This will DELETE ALL DATA in the database!
Use with caution, primarily for development/testing purposes.
"""

import asyncio
import sys

from sqlalchemy import inspect

from config import settings
from database.core.async_connection import get_async_engine, get_session_factory, close_async_db
from database.models import Base


def confirm_reset() -> bool:
    """
    Ask user to confirm the database reset.

    Returns:
        True if user confirms, False otherwise
    """
    print("\n" + "=" * 60)
    print("⚠️  DATABASE RESET WARNING")
    print("=" * 60)
    print("\nThis will DELETE ALL DATA in the database:")
    print("  • All users, settings and one-time codes")
    print("  • All support tickets, messages and history")
    print("\n❌ THIS ACTION CANNOT BE UNDONE!")
    print("=" * 60)

    response = input("\nType 'RESET' to confirm: ").strip()
    return response == 'RESET'


async def drop_all_tables() -> bool:
    """Drop all tables known to the models."""
    print("\n🗑️  Dropping all tables...")
    try:
        async with get_async_engine().begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        print("✅ All tables dropped successfully")
        return True
    except Exception as e:
        print(f"❌ Error dropping tables: {e}")
        return False


async def create_all_tables() -> bool:
    """Create all tables from models."""
    print("\n📦 Creating all tables...")
    try:
        async with get_async_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())

        print(f"\n📋 Created {len(tables)} tables:")
        for table in sorted(tables):
            print(f"   • {table}")
        return True
    except Exception as e:
        print(f"❌ Error creating tables: {e}")
        return False


async def create_test_data() -> bool:
    """Create a test user and a test admin."""
    print("\n🧪 Creating test data...")
    from database.operations.user_ops import register_user

    try:
        async with get_session_factory()() as session:
            await register_user(session, "test@example.com", "password123", "Test User")
            await register_user(session, "admin@example.com", "admin12345", "Support Admin", is_admin=True)
        print("✅ Created test@example.com and admin@example.com")
        return True
    except Exception as e:
        print(f"⚠️  Could not create test data: {e}")
        return False


async def reset(create_test: bool) -> bool:
    try:
        if not await drop_all_tables():
            print("\n❌ Reset failed at drop tables step")
            return False
        if not await create_all_tables():
            print("\n❌ Reset failed at create tables step")
            return False
        if create_test:
            await create_test_data()
        return True
    finally:
        await close_async_db()


def main():
    """Main function to reset the database."""
    print("\n🔧 Database Reset Script")
    print(f"📍 Database URL: {settings.database_url}")

    force = '--force' in sys.argv or '-f' in sys.argv
    create_test = '--test-data' in sys.argv or '-t' in sys.argv

    if not force:
        if not confirm_reset():
            print("\n✋ Database reset cancelled")
            sys.exit(0)

    print("\n🚀 Starting database reset...")
    if not asyncio.run(reset(create_test)):
        sys.exit(1)

    print("\n" + "=" * 60)
    print("✅ DATABASE RESET COMPLETE")
    print("=" * 60)
    print("\n📝 Next steps:")
    print("  1. Start the application: uvicorn api.app:app")
    print("  2. Promote an admin: python create_admin.py you@example.com")

    if create_test:
        print("\n🧪 Test data created:")
        print("  • test@example.com / password123")
        print("  • admin@example.com / admin12345 (admin)")

    print("\n")


if __name__ == "__main__":
    if '--help' in sys.argv or '-h' in sys.argv:
        print("""
Database Reset Script

Usage:
  python reset_db.py [OPTIONS]

Options:
  -h, --help       Show this help message
  -f, --force      Skip confirmation prompt (use with caution!)
  -t, --test-data  Create test accounts after reset

WARNING: This will DELETE ALL DATA in the database!
        """)
        sys.exit(0)

    main()
