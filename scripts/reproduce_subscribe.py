#!/usr/bin/env python3
"""Reproduce the newsletter subscription path against the configured database.

Calls the subscribe_email() database function and, if that fails, tries the
direct insert the API falls back to, printing the database error for each
step.

Usage:
    python scripts/reproduce_subscribe.py [email]
"""

import asyncio
import sys

import asyncpg

from polytimes.config import get_settings
from polytimes.core.exceptions import DatabaseConnectionError
from polytimes.core.logging import setup_logging
from polytimes.storage.database import init_database

DEFAULT_EMAIL = "test_debug_subscribe@example.com"


def describe(error: asyncpg.PostgresError) -> str:
    return f"sqlstate={error.sqlstate} message={error}"


async def main(email: str) -> int:
    settings = get_settings()
    setup_logging(settings)

    print(f"DATABASE_URL present: {bool(settings.database_url)}")
    if not settings.database_url:
        print("Set DATABASE_URL in .env first")
        return 1

    try:
        db = await init_database(settings.database_url)
    except DatabaseConnectionError as e:
        print(f"Failed to connect: {e.message}")
        return 1

    print(f"Testing subscription for: {email}")
    try:
        print("Attempting subscribe_email() ...")
        try:
            result = await db.call_subscribe_email(email)
        except asyncpg.PostgresError as e:
            print(f"Function error: {describe(e)}")
        else:
            print(f"Function result: {result}")
            if result.get("success") is False:
                print(f"Function returned logic error: {result.get('error')}")
            return 0

        print("Attempting fallback insert ...")
        try:
            await db.insert_subscriber(email)
        except asyncpg.PostgresError as e:
            print(f"Insert error: {describe(e)}")
            return 1
        print("Insert success")
        return 0
    finally:
        await db.disconnect()


if __name__ == "__main__":
    target = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_EMAIL
    sys.exit(asyncio.run(main(target)))
