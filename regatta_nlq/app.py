"""Runtime dependencies of the regatta bot, built once at startup."""

from __future__ import annotations

from dataclasses import dataclass

from psycopg_pool import AsyncConnectionPool

from regatta_nlq.config.settings import Settings
from regatta_nlq.db.pool import create_pool


@dataclass(frozen=True)
class App:
    """What every handler needs: validated settings and the shared pool.

    Passed to aiogram handlers as the `app` workflow-data keyword.
    """

    settings: Settings
    pool: AsyncConnectionPool


def create_app(settings: Settings) -> App:
    """Wire settings into a (still closed) pool; `bot.main` opens and closes it."""

    pool = create_pool(
        settings.database_url,
        timezone=settings.db_timezone,
        max_size=settings.db_pool_max_size,
    )
    return App(settings=settings, pool=pool)
