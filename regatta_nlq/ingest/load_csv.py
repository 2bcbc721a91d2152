"""Load a regatta results CSV file into Postgres.

The file is validated row by row before anything is written; the load itself runs in one
transaction, so a failing row leaves the database unchanged.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from regatta_nlq.config.logging import configure_logging
from regatta_nlq.db.connection import connect, require_database_url
from regatta_nlq.db.schema import init_schema
from regatta_nlq.ingest.csv_rows import CsvFormatError, RowError, normalize_csv
from regatta_nlq.ingest.loader import LoadError, bulk_load

logger = logging.getLogger(__name__)


async def load_file(path: Path, *, strict: bool = True, create_schema: bool = True) -> int:
    """Validate and import one CSV file. Returns the number of rows imported."""

    load_dotenv(".env")
    database_url = require_database_url()

    text = path.read_text(encoding="utf-8-sig")
    rows = normalize_csv(text, strict=strict)

    conn = await connect(database_url)
    async with conn:
        if create_schema:
            await init_schema(conn)
        count = await bulk_load(conn, rows)

    logger.info("imported path=%s rows=%d", path, count)
    return count


def main() -> None:
    """CLI entry point for importing a results CSV."""

    parser = argparse.ArgumentParser(description="Import regatta results from a CSV file.")
    parser.add_argument("--path", required=True, help="Path to the results CSV file.")
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Do not require regatta name, skipper and date on every row.",
    )
    parser.add_argument(
        "--no-init",
        action="store_true",
        help="Do not create missing tables before loading.",
    )
    args = parser.parse_args()

    configure_logging()
    try:
        count = asyncio.run(
            load_file(Path(args.path), strict=not args.lenient, create_schema=not args.no_init)
        )
    except (CsvFormatError, RowError, LoadError) as exc:
        print(f"Import failed: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    print(f"Regatta results successfully imported ({count} rows).")


if __name__ == "__main__":
    main()
