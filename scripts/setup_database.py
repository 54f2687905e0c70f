#!/usr/bin/env python3
"""
settingstore Database Setup Script

Creates the settings table on the configured database. Prefer Alembic
(``alembic upgrade head``) for managed deployments; this script is meant for
development databases and quick local setups.

Usage:
    python scripts/setup_database.py
    python scripts/setup_database.py --database-url sqlite+aiosqlite:///./settings.db
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


async def setup_database() -> bool:
    from settingstore.core.database import check_db_connection, close_db, init_db

    try:
        if not await check_db_connection():
            return False
        await init_db()
        return True
    finally:
        await close_db()


def main() -> int:
    parser = argparse.ArgumentParser(description="Create the settingstore settings table")
    parser.add_argument("--database-url", help="Async SQLAlchemy URL (overrides SETTINGSTORE_DATABASE_URL)")
    args = parser.parse_args()

    if args.database_url:
        os.environ["SETTINGSTORE_DATABASE_URL"] = args.database_url

    from settingstore.core.logging import get_logger, setup_logging

    setup_logging()
    logger = get_logger("scripts.setup_database")

    if not asyncio.run(setup_database()):
        logger.error("Database is not reachable; settings table was not created")
        return 1

    logger.info("Settings table is ready")
    return 0


if __name__ == "__main__":
    sys.exit(main())
