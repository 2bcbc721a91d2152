"""Pooled Postgres access for the chat bot.

Questions and CSV uploads each borrow one connection for the duration of a single unit of work.
New connections get the configured session timezone before they are handed out, so `CURRENT_DATE`
in "this year" filters is the regatta calendar's date and not the server's.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from dotenv import load_dotenv
from psycopg import AsyncConnection
from psycopg_pool import AsyncConnectionPool

from regatta_nlq.db.connection import require_database_url
from regatta_nlq.db.session import timezone_configurer

DEFAULT_MAX_SIZE = 10


def create_pool(
        database_url: str | None = None,
        *,
        timezone: str = "UTC",
        min_size: int = 1,
        max_size: int = DEFAULT_MAX_SIZE,
        timeout: float = 30.0,
) -> AsyncConnectionPool:
    """Build a closed pool for the regatta database.

    The caller opens it (`await pool.open()`) once the event loop is running. Without an explicit
    `database_url` the URL is read from `DATABASE_URL`, loading `.env` first.
    """

    if database_url is None:
        load_dotenv(".env")
        database_url = require_database_url()

    return AsyncConnectionPool(
        conninfo=database_url,
        min_size=min_size,
        max_size=max(min_size, max_size),
        timeout=timeout,
        open=False,
        configure=timezone_configurer(timezone),
    )


@asynccontextmanager
async def get_conn(pool: AsyncConnectionPool) -> AsyncIterator[AsyncConnection]:
    """Borrow a connection for one question or one import.

    Leaving the block commits; an exception inside it rolls back, which is what keeps a failed
    bulk load from leaving partial rows behind.
    """

    async with pool.connection() as conn:
        yield conn
