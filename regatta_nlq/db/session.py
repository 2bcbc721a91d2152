"""DB session configuration helpers.

Symbolic time frames such as "this year" are evaluated by the database (`CURRENT_DATE`), so every
session must use the configured calendar timezone rather than the server default.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from psycopg import AsyncConnection


async def set_session_timezone(conn: AsyncConnection, timezone: str) -> None:
    """Set the Postgres session timezone (bound as a parameter, not interpolated)."""

    async with conn.cursor() as cur:
        await cur.execute("SELECT set_config('TimeZone', %s, false)", (timezone,))
    # The statement starts a transaction when autocommit is disabled; commit so the pool doesn't see INTRANS.
    await conn.commit()


def timezone_configurer(timezone: str) -> Callable[[AsyncConnection], Awaitable[None]]:
    """Return a pool `configure` callback that pins new connections to `timezone`."""

    async def _configure(conn: AsyncConnection) -> None:
        await set_session_timezone(conn, timezone)

    return _configure
