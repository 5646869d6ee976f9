#!/usr/bin/env python3
"""
Create (or look up) a shop user and print a session token for it.

Sign-in flows live outside this API; this script is how accounts and admins are
provisioned and how a bearer token is obtained for them.

Usage:
    python scripts/create_user.py customer@example.com --name "Ama Mensah"
    python scripts/create_user.py owner@example.com --admin
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from db import get_db_session, create_db_and_tables
from services.user import UserService


async def create_user(email: str, full_name: str | None, admin: bool) -> None:
    await create_db_and_tables()
    async with get_db_session() as session:
        user = await UserService.get_or_create(email, full_name, session)
        print(f"👤 User {user.id} <{user.email}>")

        if admin:
            await UserService.grant_admin(user.id, session)
            print("🔑 Admin access granted")

        print(f"🎫 Session token:\n{UserService.issue_token(user.id)}")


async def main():
    parser = argparse.ArgumentParser(description="Create a shop user and issue a session token")
    parser.add_argument("email")
    parser.add_argument("--name", default=None, help="Full name")
    parser.add_argument("--admin", action="store_true", help="Grant admin access")
    args = parser.parse_args()

    try:
        await create_user(args.email.strip().lower(), args.name, args.admin)
    except Exception as e:
        print(f"❌ Error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
