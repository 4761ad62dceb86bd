import asyncio
from typing import List

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

import app.core.models  # noqa: F401  registers tables on Base.metadata
from app.db.session import Base, engine


def _missing_tables(sync_conn) -> List[str]:
    existing = set(inspect(sync_conn).get_table_names())
    return [name for name in Base.metadata.tables if name not in existing]


async def ensure_tables(db_engine: AsyncEngine) -> List[str]:
    """Create any ledger tables that do not exist yet. Returns the names created."""
    async with db_engine.begin() as conn:
        missing = await conn.run_sync(_missing_tables)
        # create_all skips tables that already exist
        await conn.run_sync(Base.metadata.create_all)
    return missing


async def main() -> None:
    missing = await ensure_tables(engine)
    if missing:
        print("Created missing tables: " + ", ".join(missing))
    else:
        print("All required tables already exist in the database.")


if __name__ == "__main__":
    asyncio.run(main())
