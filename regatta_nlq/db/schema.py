"""Create the regatta results tables if they do not exist yet.

The DDL lives in `schema.sql` next to this module and only uses `CREATE ... IF NOT EXISTS`. When the
tables already hold data, nothing is executed at all, so existing results are never touched.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import LiteralString, cast

from psycopg import AsyncConnection, sql

from regatta_nlq.config.logging import configure_logging
from regatta_nlq.config.settings import Settings, load_settings
from regatta_nlq.db.connection import connect

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"

# Dependency order: results reference races and skippers.
TABLES: tuple[str, ...] = ("results", "races", "skippers")


async def table_counts(conn: AsyncConnection) -> dict[str, int] | None:
    """Return row counts per table, or `None` if any of the tables is missing."""

    counts: dict[str, int] = {}
    async with conn.cursor() as cur:
        for table in TABLES:
            await cur.execute("SELECT to_regclass(%s) IS NOT NULL", (table,))
            row = await cur.fetchone()
            if not row or not row[0]:
                return None
            await cur.execute(sql.SQL("SELECT COUNT(*) FROM {}").format(sql.Identifier(table)))
            count_row = await cur.fetchone()
            counts[table] = int(count_row[0]) if count_row else 0
    return counts


async def init_schema(conn: AsyncConnection) -> bool:
    """Create missing tables and indexes.

    Returns:
        `True` if the DDL was applied, `False` if existing data made it skip.
    """

    counts = await table_counts(conn)
    if counts is not None and any(counts.values()):
        logger.info("schema already populated, skipping init counts=%s", counts)
        return False

    sql_text = SCHEMA_PATH.read_text(encoding="utf-8")
    async with conn.transaction():
        await conn.execute(cast(LiteralString, sql_text), prepare=False)

    logger.info("schema initialized")
    return True


async def _run(settings: Settings) -> None:
    conn = await connect(settings.database_url, timezone=settings.db_timezone)
    async with conn:
        await init_schema(conn)


def main() -> None:
    """CLI entry point for creating the tables."""

    parser = argparse.ArgumentParser(description="Create the regatta results tables if absent.")
    parser.parse_args()
    settings = load_settings()
    configure_logging()
    asyncio.run(_run(settings))


if __name__ == "__main__":
    main()
