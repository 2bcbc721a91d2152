"""Request pipelines shared by the bot and the command-line tools.

Two flows are supported:
    - question: classify -> sanitize/build -> fetch -> summarize
    - upload: decode -> normalize every row -> bulk load in one transaction

Failures are reported as `PipelineError` with one of three categories. A classification failure
short-circuits before any connection is taken from the pool.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from time import monotonic
from typing import Any, Literal

import psycopg

from regatta_nlq.app import App
from regatta_nlq.db.pool import get_conn
from regatta_nlq.db.query import fetch_rows
from regatta_nlq.ingest.csv_rows import CsvFormatError, RowError, normalize_csv
from regatta_nlq.ingest.loader import LoadError, bulk_load
from regatta_nlq.intent.classifier import ClassifySource, classify_question
from regatta_nlq.intent.llm_classifier import ClassificationError
from regatta_nlq.intent.sanitize import sanitize_intent
from regatta_nlq.intent.schema import QueryType
from regatta_nlq.reply.summary import summarize
from regatta_nlq.sql.builder import build

logger = logging.getLogger(__name__)

ErrorCategory = Literal["classification_failed", "validation_failed", "storage_failed"]

IMPORT_SUCCESS_MESSAGE = "Regatta results successfully imported"


class PipelineError(RuntimeError):
    """A failed question or upload, tagged with the stage that failed."""

    def __init__(self, category: ErrorCategory, detail: str) -> None:
        super().__init__(detail)
        self.category = category
        self.detail = detail


@dataclass(frozen=True)
class ChatAnswer:
    """Reply to one question: a summary sentence plus the rows it summarizes."""

    message: str
    query_type: QueryType
    source: ClassifySource
    rows: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class ImportOutcome:
    rows_imported: int
    message: str = IMPORT_SUCCESS_MESSAGE


async def answer_question(app: App, text: str) -> ChatAnswer:
    """Answer a free-text question from the regatta database.

    Raises:
        PipelineError: `classification_failed` if the question could not be classified,
            `storage_failed` if the query could not be executed.
    """

    started = monotonic()
    try:
        result = classify_question(text, settings=app.settings)
    except ClassificationError as exc:
        raise PipelineError("classification_failed", str(exc)) from exc

    intent = result.intent
    built = build(intent)

    try:
        async with get_conn(app.pool) as conn:
            rows = await fetch_rows(conn, built.sql, built.params)
    except psycopg.Error as exc:
        logger.exception("query failed query_type=%s", intent.query_type)
        raise PipelineError("storage_failed", "database query failed") from exc

    message = summarize(intent.query_type, rows, year=sanitize_intent(intent).year)

    latency_ms = int((monotonic() - started) * 1000)
    logger.info(
        "answered source=%s query_type=%s rows=%d latency_ms=%d",
        result.source,
        intent.query_type,
        len(rows),
        latency_ms,
    )
    return ChatAnswer(message=message, query_type=intent.query_type, source=result.source, rows=rows)


def decode_upload(payload: bytes, *, max_bytes: int) -> str:
    """Decode an uploaded CSV file (UTF-8, optional BOM).

    Raises:
        PipelineError: `validation_failed` if the file is too large or not valid UTF-8.
    """

    if len(payload) > max_bytes:
        raise PipelineError("validation_failed", f"File is too large (max {max_bytes} bytes)")
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise PipelineError("validation_failed", "File is not valid UTF-8 text") from exc


async def import_csv_upload(app: App, payload: bytes) -> ImportOutcome:
    """Validate and import an uploaded results CSV.

    Every row is validated before the database is touched; the load itself is all-or-nothing.

    Raises:
        PipelineError: `validation_failed` for malformed files or rows, `storage_failed` if the
            load was rolled back.
    """

    text = decode_upload(payload, max_bytes=app.settings.max_upload_bytes)

    try:
        rows = normalize_csv(text, strict=True)
    except (CsvFormatError, RowError) as exc:
        raise PipelineError("validation_failed", str(exc)) from exc

    try:
        async with get_conn(app.pool) as conn:
            count = await bulk_load(conn, rows)
    except LoadError as exc:
        logger.warning("import rolled back line=%s", exc.line_number)
        raise PipelineError("storage_failed", str(exc)) from exc
    except psycopg.Error as exc:
        logger.exception("import failed")
        raise PipelineError("storage_failed", "database error during import") from exc

    return ImportOutcome(rows_imported=count)
