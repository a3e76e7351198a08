#!/usr/bin/env python
"""Check that the metrics database is reachable and has the expected tables.

Usage:
    python scripts/check_db.py
"""

import asyncio
import sys

from app.core.config import get_settings
from app.core.database import EngineStore, get_engine
from app.core.exceptions import DatabaseError

REQUIRED_TABLES = ("users", "groups", "user_groups", "sales")


async def check_database() -> int:
    """Verify connectivity and the tables the metrics read from."""
    settings = get_settings()

    print("SalesMetrics - Database Connectivity Check")
    print("=" * 42)
    print(f"Database URL: {settings.database_url.split('@')[-1]}")  # Hide credentials
    print()

    store = EngineStore(get_engine())

    try:
        rows = await store.execute("SELECT version() AS version")
        print(f"[OK] PostgreSQL version: {rows[0]['version'][:50]}...")

        rows = await store.execute(
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = 'public' AND table_name = ANY($1::text[])",
            (list(REQUIRED_TABLES),),
        )
        found = {row["table_name"] for row in rows}
        missing = [table for table in REQUIRED_TABLES if table not in found]
        for table in REQUIRED_TABLES:
            print(f"[{'OK' if table in found else 'FAIL'}] table {table}")

        if missing:
            print()
            print(f"Missing tables: {', '.join(missing)}")
            return 1

        print()
        print("Database check completed successfully!")
        return 0

    except DatabaseError as e:
        print(f"[FAIL] Connection failed: {e.details.get('error_type', e.message)}")
        print()
        print("Troubleshooting:")
        print("  1. Check DATABASE_URL in .env file")
        print("  2. Verify the PostgreSQL server is accepting connections")
        return 1

    finally:
        await store.dispose()


def main() -> None:
    sys.exit(asyncio.run(check_database()))


if __name__ == "__main__":
    main()
