"""Table snapshots, guarded clearing and restore.

Snapshots are plain copies named `backup_<timestamp>_<table>`. Clearing and restoring destroy live
rows, so both take an explicit `allow_wipe` flag (from the `ALLOW_DB_WIPE` setting) and refuse to run
without it. Table identifiers only come from `TABLES`; the timestamp is validated and composed with
`psycopg.sql.Identifier`, never interpolated as raw text.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import re
from datetime import UTC, datetime

from psycopg import AsyncConnection, sql

from regatta_nlq.config.logging import configure_logging
from regatta_nlq.config.settings import Settings, load_settings
from regatta_nlq.db.connection import connect
from regatta_nlq.db.schema import TABLES, table_counts

logger = logging.getLogger(__name__)

_TIMESTAMP_RE = re.compile(r"\d{14,20}")
_BACKUP_TABLE_RE = re.compile(r"backup_(?P<ts>\d{14,20})_(?:results|races|skippers)")

# Restore must insert parents before children.
_RESTORE_ORDER: tuple[str, ...] = ("skippers", "races", "results")


class BackupError(RuntimeError):
    """Raised when a backup, clear or restore operation cannot proceed."""


def new_timestamp(now: datetime | None = None) -> str:
    """Return a sortable snapshot timestamp such as `20240401123015123456`."""

    moment = now or datetime.now(UTC)
    return moment.strftime("%Y%m%d%H%M%S%f")


def backup_table_name(timestamp: str, table: str) -> str:
    """Return the snapshot table name for a live table, validating both parts."""

    if not _TIMESTAMP_RE.fullmatch(timestamp or ""):
        raise BackupError(f"Invalid backup timestamp: {timestamp!r}")
    if table not in TABLES:
        raise BackupError(f"Unknown table: {table!r}")
    return f"backup_{timestamp}_{table}"


def _require_wipe_allowed(allow_wipe: bool) -> None:
    if not allow_wipe:
        raise BackupError(
            "Database wipe protection is enabled. Set ALLOW_DB_WIPE=true to proceed."
        )


async def _snapshot(conn: AsyncConnection, timestamp: str) -> None:
    for table in TABLES:
        await conn.execute(
            sql.SQL("CREATE TABLE {} AS SELECT * FROM {}").format(
                sql.Identifier(backup_table_name(timestamp, table)),
                sql.Identifier(table),
            )
        )


async def _delete_all(conn: AsyncConnection) -> None:
    for table in TABLES:
        await conn.execute(sql.SQL("DELETE FROM {}").format(sql.Identifier(table)))


async def backup_tables(conn: AsyncConnection, *, timestamp: str | None = None) -> str:
    """Copy every results table into a new snapshot and return its timestamp."""

    ts = timestamp or new_timestamp()
    async with conn.transaction():
        await _snapshot(conn, ts)
    logger.info("backup created timestamp=%s", ts)
    return ts


async def clear_tables(conn: AsyncConnection, *, allow_wipe: bool) -> str | None:
    """Back up and then delete all results, races and skippers.

    Returns:
        The snapshot timestamp, or `None` when the tables were already empty (no snapshot taken).

    Raises:
        BackupError: If wiping is not allowed by configuration.
    """

    _require_wipe_allowed(allow_wipe)

    counts = await table_counts(conn)
    if counts is None:
        raise BackupError("Results tables do not exist")

    ts = None
    async with conn.transaction():
        if any(counts.values()):
            ts = new_timestamp()
            await _snapshot(conn, ts)
        await _delete_all(conn)

    logger.warning("database cleared counts=%s backup=%s", counts, ts)
    return ts


async def latest_backup(conn: AsyncConnection) -> str | None:
    """Return the timestamp of the newest snapshot, or `None` if there is none."""

    async with conn.cursor() as cur:
        await cur.execute(
            "SELECT table_name FROM information_schema.tables"
            " WHERE table_schema = ANY (current_schemas(false))"
            " AND table_name LIKE 'backup\\_%'"
        )
        rows = await cur.fetchall()

    timestamps = sorted(
        (m.group("ts") for (name,) in rows if (m := _BACKUP_TABLE_RE.fullmatch(name))),
        key=lambda ts: (len(ts), ts),
    )
    return timestamps[-1] if timestamps else None


async def restore_backup(conn: AsyncConnection, timestamp: str, *, allow_wipe: bool) -> None:
    """Replace the live tables with the snapshot taken at `timestamp`.

    Raises:
        BackupError: If wiping is not allowed or the snapshot is incomplete.
    """

    _require_wipe_allowed(allow_wipe)

    snapshot = {table: backup_table_name(timestamp, table) for table in TABLES}
    async with conn.cursor() as cur:
        for name in snapshot.values():
            await cur.execute("SELECT to_regclass(%s) IS NOT NULL", (name,))
            row = await cur.fetchone()
            if not row or not row[0]:
                raise BackupError(f"Backup table {name} does not exist")

    async with conn.transaction():
        await _delete_all(conn)
        for table in _RESTORE_ORDER:
            await conn.execute(
                sql.SQL("INSERT INTO {} SELECT * FROM {}").format(
                    sql.Identifier(table),
                    sql.Identifier(snapshot[table]),
                )
            )
            # Restored rows keep their ids; move the sequence past them.
            await conn.execute(
                sql.SQL(
                    "SELECT setval(pg_get_serial_sequence({table_name}, 'id'),"
                    " COALESCE(MAX(id), 1), MAX(id) IS NOT NULL) FROM {table}"
                ).format(table_name=sql.Literal(table), table=sql.Identifier(table))
            )

    logger.warning("database restored timestamp=%s", timestamp)


async def _run(args: argparse.Namespace, settings: Settings) -> None:
    allow_wipe = settings.allow_db_wipe
    conn = await connect(settings.database_url, timezone=settings.db_timezone)
    async with conn:
        if args.command == "backup":
            print(await backup_tables(conn))
        elif args.command == "latest":
            print(await latest_backup(conn) or "")
        elif args.command == "clear":
            print(await clear_tables(conn, allow_wipe=allow_wipe) or "")
        elif args.command == "restore":
            await restore_backup(conn, args.timestamp, allow_wipe=allow_wipe)


def main() -> None:
    """CLI entry point for snapshot management."""

    parser = argparse.ArgumentParser(description="Back up, clear or restore the results tables.")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("backup", help="Snapshot all tables and print the timestamp.")
    sub.add_parser("latest", help="Print the newest snapshot timestamp.")
    sub.add_parser("clear", help="Snapshot, then delete all rows (requires ALLOW_DB_WIPE=true).")
    restore = sub.add_parser("restore", help="Restore a snapshot (requires ALLOW_DB_WIPE=true).")
    restore.add_argument("timestamp", help="Snapshot timestamp as printed by `backup`.")
    args = parser.parse_args()

    settings = load_settings()
    configure_logging()
    asyncio.run(_run(args, settings))


if __name__ == "__main__":
    main()
