"""Tests for the aiogram handlers and the request pipelines behind them.

The database is replaced by fakes; classification, SQL building, normalization and summaries run for
real.
"""

from __future__ import annotations

import io
from contextlib import asynccontextmanager
from datetime import date
from types import SimpleNamespace
from typing import Any

import psycopg
import pytest

from regatta_nlq.bot.handlers import (
    CLASSIFICATION_FAILED_REPLY,
    HELP_TEXT,
    NOT_CSV_REPLY,
    handle_document,
    handle_help,
    handle_message,
)
from regatta_nlq.pipeline import PipelineError, answer_question, import_csv_upload

CSV_TEXT = (
    "Regatta_Name,Regatta_Date,Skipper,Yacht_Club,Category,Boat_Name,Sail_Number,Position,"
    "Total_Points\n"
    "Spring Cup,04/01/2024,Ann,Bay YC,Laser,Blue,1,1,10\n"
    "Spring Cup,04/01/2024,Ben,Bay YC,Laser,Red,2,2,8\n"
)


class _FakeMessage:
    def __init__(self, text: str | None = None, document: Any = None) -> None:
        self.text = text
        self.caption = None
        self.document = document
        self.answers: list[str] = []

    async def answer(self, text: str) -> None:
        """Record the outgoing bot reply (aiogram's `Message.answer` substitute)."""
        self.answers.append(text)


class _FakeBot:
    def __init__(self, payload: bytes) -> None:
        self.payload = payload
        self.downloads: list[Any] = []

    async def download(self, file: Any) -> io.BytesIO:
        self.downloads.append(file)
        return io.BytesIO(self.payload)


def _make_app(**settings: Any) -> Any:
    values: dict[str, Any] = {"llm_enabled": False, "llm_api_key": None, "max_upload_bytes": 10_000}
    values.update(settings)
    return SimpleNamespace(settings=SimpleNamespace(**values), pool=object())


def _document(name: str = "results.csv", size: int | None = 100) -> Any:
    return SimpleNamespace(file_name=name, mime_type="text/csv", file_size=size)


@pytest.fixture
def fake_db(monkeypatch: pytest.MonkeyPatch) -> SimpleNamespace:
    """Replace pooled connections, row fetching and the bulk loader with recorders."""

    state = SimpleNamespace(queries=[], rows=[], loaded=[], fail=None)

    @asynccontextmanager
    async def _fake_get_conn(_pool: Any):
        yield object()

    async def _fake_fetch_rows(_conn: Any, sql: str, params: tuple[Any, ...] = ()) -> list[Any]:
        if state.fail is not None:
            raise state.fail
        state.queries.append((sql, params))
        return state.rows

    async def _fake_bulk_load(_conn: Any, rows: list[Any]) -> int:
        if state.fail is not None:
            raise state.fail
        state.loaded.extend(rows)
        return len(rows)

    monkeypatch.setattr("regatta_nlq.pipeline.get_conn", _fake_get_conn)
    monkeypatch.setattr("regatta_nlq.pipeline.fetch_rows", _fake_fetch_rows)
    monkeypatch.setattr("regatta_nlq.pipeline.bulk_load", _fake_bulk_load)
    return state


@pytest.mark.asyncio
async def test_help_reply() -> None:
    message = _FakeMessage(text="/start")
    await handle_help(message)  # type: ignore[arg-type]
    assert message.answers == [HELP_TEXT]


@pytest.mark.asyncio
async def test_empty_text_gets_help(fake_db: SimpleNamespace) -> None:
    message = _FakeMessage(text=None)
    await handle_message(message, _make_app())  # type: ignore[arg-type]
    assert message.answers == [HELP_TEXT]
    assert fake_db.queries == []


@pytest.mark.asyncio
async def test_question_is_answered_from_rows(fake_db: SimpleNamespace) -> None:
    fake_db.rows = [
        {
            "total_sailors": 2,
            "total_races": 3,
            "total_results": 3,
            "total_clubs": 1,
            "earliest_race": date(2024, 4, 1),
            "latest_race": date(2024, 4, 1),
        }
    ]
    message = _FakeMessage(text="How many sailors are in the database?")

    await handle_message(message, _make_app())  # type: ignore[arg-type]

    assert message.answers == [
        "I know about 2 sailors from 1 yacht club. "
        "There are 3 races in the database, from April 1, 2024 to April 1, 2024."
    ]
    sql, params = fake_db.queries[0]
    assert "total_sailors" in sql
    assert params == ()


@pytest.mark.asyncio
async def test_unclassifiable_question_never_touches_database(fake_db: SimpleNamespace) -> None:
    message = _FakeMessage(text="What is the weather like?")

    await handle_message(message, _make_app())  # type: ignore[arg-type]

    assert message.answers == [CLASSIFICATION_FAILED_REPLY]
    assert fake_db.queries == []


@pytest.mark.asyncio
async def test_storage_failure_is_reported(fake_db: SimpleNamespace) -> None:
    fake_db.fail = psycopg.OperationalError("connection lost")
    message = _FakeMessage(text="Who won the Spring Cup?")

    await handle_message(message, _make_app())  # type: ignore[arg-type]

    assert message.answers == ["Failed to process your question: database query failed"]


@pytest.mark.asyncio
async def test_answer_question_passes_year_to_summary(fake_db: SimpleNamespace) -> None:
    fake_db.rows = [{"regatta_name": "Spring Cup"}]
    answer = await answer_question(_make_app(), "Which regattas were held in 2024?")
    assert answer.message == "Found 1 regatta in 2024."
    assert answer.source == "rules"
    assert fake_db.queries[0][1] == (2024,)


@pytest.mark.asyncio
async def test_csv_document_is_imported(fake_db: SimpleNamespace) -> None:
    bot = _FakeBot(CSV_TEXT.encode("utf-8-sig"))
    message = _FakeMessage(document=_document())

    await handle_document(message, bot, _make_app())  # type: ignore[arg-type]

    assert message.answers == ["Regatta results successfully imported (2 rows)."]
    assert [row.skipper for row in fake_db.loaded] == ["Ann", "Ben"]


@pytest.mark.asyncio
async def test_non_csv_document_is_rejected(fake_db: SimpleNamespace) -> None:
    bot = _FakeBot(b"")
    message = _FakeMessage(document=SimpleNamespace(file_name="photo.png", mime_type="image/png", file_size=1))

    await handle_document(message, bot, _make_app())  # type: ignore[arg-type]

    assert message.answers == [NOT_CSV_REPLY]
    assert bot.downloads == []


@pytest.mark.asyncio
async def test_oversized_document_is_not_downloaded(fake_db: SimpleNamespace) -> None:
    bot = _FakeBot(b"")
    message = _FakeMessage(document=_document(size=50_000))

    await handle_document(message, bot, _make_app())  # type: ignore[arg-type]

    assert message.answers == ["Upload failed: File is too large (max 10000 bytes)"]
    assert bot.downloads == []


@pytest.mark.asyncio
async def test_invalid_row_rejects_upload_before_loading(fake_db: SimpleNamespace) -> None:
    bad = CSV_TEXT + "Spring Cup,someday,Cy,Bay YC,Laser,Green,3,3,6\n"
    bot = _FakeBot(bad.encode())
    message = _FakeMessage(document=_document())

    await handle_document(message, bot, _make_app())  # type: ignore[arg-type]

    assert message.answers == ["Upload failed: Invalid date format in row 4: someday"]
    assert fake_db.loaded == []


@pytest.mark.asyncio
async def test_import_rejects_non_utf8(fake_db: SimpleNamespace) -> None:
    with pytest.raises(PipelineError) as excinfo:
        await import_csv_upload(_make_app(), b"\xff\xfe\x00bad")
    assert excinfo.value.category == "validation_failed"


@pytest.mark.asyncio
async def test_import_storage_failure_category(fake_db: SimpleNamespace) -> None:
    fake_db.fail = psycopg.OperationalError("server closed the connection")
    with pytest.raises(PipelineError) as excinfo:
        await import_csv_upload(_make_app(), CSV_TEXT.encode())
    assert excinfo.value.category == "storage_failed"
