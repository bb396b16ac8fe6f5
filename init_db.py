"""Initialize database schema for the matching service.

Creates all tables for seekers, providers, matches and stored weights.
Run this before starting the API server.
"""

import argparse
import asyncio
import sys

from dealflow.config import settings
from dealflow.db import engine
from dealflow.models import Base


async def init_database(drop: bool = False):
    """Create all database tables."""
    print(f"Initializing database: {settings.db.url}")

    async with engine.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
            print("✓ Dropped existing tables")

        await conn.run_sync(Base.metadata.create_all)
        print("✓ Created all tables")

    await engine.dispose()
    print(f"Tables: {', '.join(Base.metadata.tables.keys())}")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--drop", action="store_true", help="Drop existing tables first")
    args = parser.parse_args()

    try:
        asyncio.run(init_database(drop=args.drop))
    except Exception as e:
        print(f"\n❌ Error initializing database: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
