"""aiogram message handlers.

Every incoming message produces exactly one reply. Pipeline failures are reported to the user as a
short sentence; stack traces and SQL stay in the logs.
"""

from __future__ import annotations

import logging

from aiogram import Bot
from aiogram.types import Message

from regatta_nlq.app import App
from regatta_nlq.pipeline import PipelineError, answer_question, import_csv_upload

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Ask me about regatta results, for example:\n"
    "- Who won the Spring Cup?\n"
    "- How did Ann Lee do?\n"
    "- Which regattas were held in 2024?\n"
    "- Who is winning this year?\n"
    "- Sailors from Bay Yacht Club\n"
    "\n"
    "Send a CSV file with the columns Regatta_Name, Regatta_Date, Skipper, Yacht_Club, Category, "
    "Boat_Name, Sail_Number, Position, Total_Points to import results."
)

CLASSIFICATION_FAILED_REPLY = "Sorry, I could not understand that question. Send /help for examples."
NOT_CSV_REPLY = "Please send the results as a .csv file."


def _is_command_text(text: str) -> bool:
    return text.lstrip().startswith("/")


def _looks_like_csv(file_name: str | None, mime_type: str | None) -> bool:
    if file_name and file_name.lower().endswith(".csv"):
        return True
    return mime_type in {"text/csv", "application/csv", "text/comma-separated-values"}


async def handle_help(message: Message) -> None:
    """Reply to /start and /help with usage examples."""

    await message.answer(HELP_TEXT)


async def handle_message(message: Message, app: App) -> None:
    """Answer a free-text question about the regatta data."""

    raw_text = message.text or message.caption or ""
    if not raw_text.strip() or _is_command_text(raw_text):
        await message.answer(HELP_TEXT)
        return

    try:
        answer = await answer_question(app, raw_text)
    except PipelineError as exc:
        logger.info("question failed category=%s detail=%s", exc.category, exc.detail)
        if exc.category == "classification_failed":
            await message.answer(CLASSIFICATION_FAILED_REPLY)
        else:
            await message.answer(f"Failed to process your question: {exc.detail}")
        return

    await message.answer(answer.message)


async def handle_document(message: Message, bot: Bot, app: App) -> None:
    """Import an uploaded results CSV."""

    document = message.document
    if document is None or not _looks_like_csv(document.file_name, document.mime_type):
        await message.answer(NOT_CSV_REPLY)
        return

    max_bytes = app.settings.max_upload_bytes
    if document.file_size is not None and document.file_size > max_bytes:
        await message.answer(f"Upload failed: File is too large (max {max_bytes} bytes)")
        return

    buffer = await bot.download(document)
    if buffer is None:
        await message.answer("Upload failed: could not download the file")
        return

    try:
        outcome = await import_csv_upload(app, buffer.read())
    except PipelineError as exc:
        logger.info("upload failed category=%s", exc.category)
        await message.answer(f"Upload failed: {exc.detail}")
        return

    logger.info("upload imported rows=%d file=%s", outcome.rows_imported, document.file_name)
    await message.answer(f"{outcome.message} ({outcome.rows_imported} rows).")
