"""
Create any missing tables for the ORM models.

Run with DATABASE_URL set:
  python -m app.db.schema_check
"""
import asyncio
from typing import List

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

import app.auth.models  # noqa: F401  registers users on Base.metadata
import app.core.models  # noqa: F401
from app.db.session import Base, engine


async def ensure_tables(db_engine: AsyncEngine) -> List[str]:
    """create_all is idempotent; returns the names of tables that did not exist before."""
    async with db_engine.begin() as conn:
        existing = set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))
        await conn.run_sync(Base.metadata.create_all)
    return [name for name in Base.metadata.tables if name not in existing]


async def main() -> None:
    missing = await ensure_tables(engine)
    if missing:
        print("Created missing tables: " + ", ".join(missing))
    else:
        print("All required tables already exist in the database.")


if __name__ == "__main__":
    asyncio.run(main())
