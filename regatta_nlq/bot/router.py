"""Bot router composition."""

from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command

from regatta_nlq.bot.handlers import handle_document, handle_help, handle_message

router = Router(name="root")
router.message.register(handle_help, Command("start", "help"))
router.message.register(handle_document, F.document)
router.message.register(handle_message)
