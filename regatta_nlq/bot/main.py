"""`regatta-bot`: long-polling Telegram front end for regatta questions and CSV imports.

Startup order: settings, logging, pool, schema bootstrap, then polling. The pool is closed on the
way out whatever stopped the dispatcher.
"""

from __future__ import annotations

import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties

from regatta_nlq.app import App, create_app
from regatta_nlq.bot.router import router
from regatta_nlq.config.logging import configure_logging
from regatta_nlq.config.settings import load_settings
from regatta_nlq.db.pool import get_conn
from regatta_nlq.db.schema import init_schema

logger = logging.getLogger(__name__)


async def _prepare_storage(app: App) -> None:
    await app.pool.open(wait=True)
    async with get_conn(app.pool) as conn:
        await init_schema(conn)
    logger.info("regatta schema ready timezone=%s", app.settings.db_timezone)


async def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)

    if not settings.telegram_bot_token:
        raise RuntimeError("TELEGRAM_BOT_TOKEN is required to run the bot")

    app = create_app(settings)
    try:
        await _prepare_storage(app)

        # Replies are plain text; sailor and club names may contain markup characters.
        bot = Bot(token=settings.telegram_bot_token, default=DefaultBotProperties(parse_mode=None))
        dispatcher = Dispatcher()
        dispatcher.include_router(router)
        logger.info("polling started llm_enabled=%s", settings.llm_enabled)
        await dispatcher.start_polling(bot, app=app)
    finally:
        logger.info("shutting down")
        await app.pool.close()


def run() -> None:
    """Console-script entry point."""

    asyncio.run(main())


if __name__ == "__main__":
    run()
