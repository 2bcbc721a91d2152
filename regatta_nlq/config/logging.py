"""Process-wide logging setup shared by the bot and the admin CLIs (`regatta-load-csv`,
`regatta-schema`, `regatta-backup`).

Log records carry query types, row counts, CSV line numbers and latencies. Question text, SQL
parameters and uploaded rows stay out of the logs, and nothing logged here is echoed to a chat.
"""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Libraries that log every update or pool checkout at INFO.
QUIET_LOGGERS = ("aiogram.event", "aiogram.dispatcher", "psycopg.pool")


def configure_logging(level: str | None = None) -> None:
    """Install the root handler; `level` falls back to `LOG_LEVEL`, then INFO."""

    log_level = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(level=log_level, format=LOG_FORMAT)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
