"""Shared Postgres connection helpers for the command-line tools."""

from __future__ import annotations

import os

from psycopg import AsyncConnection

from regatta_nlq.db.session import set_session_timezone


def require_database_url() -> str:
    """Read `DATABASE_URL` from the environment or raise a clear error."""

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL is required (set it in .env or environment)")
    return database_url


async def connect(database_url: str, *, timezone: str | None = None) -> AsyncConnection:
    """Open a single connection with the session timezone pinned.

    The timezone defaults to `DB_TIMEZONE` from the environment, or UTC.
    """

    conn = await AsyncConnection.connect(database_url)
    await set_session_timezone(conn, timezone or os.getenv("DB_TIMEZONE") or "UTC")
    return conn
