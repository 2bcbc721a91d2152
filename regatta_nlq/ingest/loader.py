"""Transactional bulk loader for normalized CSV rows.

The whole batch is one unit of work: skippers are upserted first, then one race per row, then one
result per row that carries a position or points. Any failure rolls the transaction back, so a batch
is either fully persisted or not at all.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import LiteralString

import psycopg
from psycopg import AsyncConnection

from regatta_nlq.ingest.csv_rows import CleanRow

logger = logging.getLogger(__name__)

UPSERT_SKIPPER_SQL = """
    INSERT INTO skippers (name, yacht_club)
    VALUES (%s, %s) ON CONFLICT (name) DO
    UPDATE SET
        yacht_club = COALESCE(EXCLUDED.yacht_club, skippers.yacht_club),
        last_modified = CURRENT_TIMESTAMP
    RETURNING id
"""

INSERT_RACE_SQL = """
    INSERT INTO races (regatta_name, regatta_date, category, boat_name, sail_number)
    VALUES (%s, %s, %s, %s, %s)
    RETURNING id
"""

INSERT_RESULT_SQL = """
    INSERT INTO results (race_id, skipper_id, position, total_points)
    VALUES (%s, %s, %s, %s)
"""


class LoadError(RuntimeError):
    """Raised when the bulk load fails; the transaction has been rolled back."""

    def __init__(self, message: str, *, line_number: int | None = None) -> None:
        super().__init__(message)
        self.line_number = line_number


def skipper_clubs(rows: Sequence[CleanRow]) -> dict[str, tuple[int, str | None]]:
    """Map each distinct skipper name to `(first line number, latest non-null club)`.

    Dict insertion order follows the first appearance of each skipper in the batch.
    """

    skippers: dict[str, tuple[int, str | None]] = {}
    for row in rows:
        if row.skipper is None:
            continue
        first_line, club = skippers.get(row.skipper, (row.line_number, None))
        skippers[row.skipper] = (first_line, row.yacht_club or club)
    return skippers


async def _fetch_id(conn: AsyncConnection, sql: LiteralString, params: tuple) -> int:
    async with conn.cursor() as cur:
        await cur.execute(sql, params)
        row = await cur.fetchone()
    if row is None:
        raise LoadError("INSERT ... RETURNING id returned no row")
    return int(row[0])


async def _upsert_skippers(conn: AsyncConnection, rows: Sequence[CleanRow]) -> dict[str, int]:
    skipper_ids: dict[str, int] = {}
    for name, (line_number, club) in skipper_clubs(rows).items():
        try:
            skipper_ids[name] = await _fetch_id(conn, UPSERT_SKIPPER_SQL, (name, club))
        except psycopg.Error as exc:
            raise LoadError(
                f'Error inserting skipper "{name}" from row {line_number}: {exc}',
                line_number=line_number,
            ) from exc
    return skipper_ids


async def _insert_races(conn: AsyncConnection, rows: Sequence[CleanRow]) -> list[int]:
    race_ids: list[int] = []
    for row in rows:
        params = (row.regatta_name, row.regatta_date, row.category, row.boat_name, row.sail_number)
        try:
            race_ids.append(await _fetch_id(conn, INSERT_RACE_SQL, params))
        except psycopg.Error as exc:
            raise LoadError(
                f"Error inserting race from row {row.line_number}: {exc}",
                line_number=row.line_number,
            ) from exc
    return race_ids


async def _insert_results(
        conn: AsyncConnection,
        rows: Sequence[CleanRow],
        race_ids: Sequence[int],
        skipper_ids: dict[str, int],
) -> int:
    inserted = 0
    async with conn.cursor() as cur:
        for row, race_id in zip(rows, race_ids, strict=True):
            if not row.has_result:
                continue
            skipper_id = skipper_ids[row.skipper] if row.skipper is not None else None
            try:
                await cur.execute(
                    INSERT_RESULT_SQL,
                    (race_id, skipper_id, row.position, row.total_points),
                )
            except psycopg.Error as exc:
                raise LoadError(
                    f"Error inserting results from row {row.line_number}: {exc}",
                    line_number=row.line_number,
                ) from exc
            inserted += 1
    return inserted


async def bulk_load(conn: AsyncConnection, rows: Sequence[CleanRow]) -> int:
    """Persist a validated batch in a single transaction.

    Returns:
        The number of input rows imported (not the number of result rows, which may be fewer).

    Raises:
        LoadError: If any statement fails; nothing from the batch is persisted.
    """

    async with conn.transaction():
        skipper_ids = await _upsert_skippers(conn, rows)
        race_ids = await _insert_races(conn, rows)
        results = await _insert_results(conn, rows, race_ids, skipper_ids)

    logger.info(
        "bulk_load rows=%d skippers=%d races=%d results=%d",
        len(rows),
        len(skipper_ids),
        len(race_ids),
        results,
    )
    return len(rows)
