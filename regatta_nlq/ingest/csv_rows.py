"""CSV row normalization for regatta result uploads.

A raw CSV row (column name -> raw string) is turned into a `CleanRow` or rejected with a `RowError`
carrying the 1-based source line number (the header is line 1), so operators can find the offending
row without re-scanning the file.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from regatta_nlq.ingest.dates import parse_date

logger = logging.getLogger(__name__)

MAX_FIELD_LENGTH = 300

# Plain ASCII numerals only; int() and Decimal() would also take "1_000" or non-Latin digits.
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")

COL_REGATTA_NAME = "Regatta_Name"
COL_REGATTA_DATE = "Regatta_Date"
COL_SKIPPER = "Skipper"
COL_YACHT_CLUB = "Yacht_Club"
COL_CATEGORY = "Category"
COL_BOAT_NAME = "Boat_Name"
COL_SAIL_NUMBER = "Sail_Number"
COL_POSITION = "Position"
COL_TOTAL_POINTS = "Total_Points"

EXPECTED_COLUMNS: tuple[str, ...] = (
    COL_REGATTA_NAME,
    COL_REGATTA_DATE,
    COL_SKIPPER,
    COL_YACHT_CLUB,
    COL_CATEGORY,
    COL_BOAT_NAME,
    COL_SAIL_NUMBER,
    COL_POSITION,
    COL_TOTAL_POINTS,
)

# Columns a strict upload must fill in on every row, with their human-readable labels.
REQUIRED_COLUMNS: dict[str, str] = {
    COL_REGATTA_NAME: "Regatta Name",
    COL_SKIPPER: "Skipper",
    COL_REGATTA_DATE: "Date",
}

_FIELD_LABELS: dict[str, str] = {
    COL_REGATTA_NAME: "Regatta name",
    COL_SKIPPER: "Skipper name",
    COL_YACHT_CLUB: "Yacht club name",
    COL_CATEGORY: "Category",
    COL_BOAT_NAME: "Boat name",
    COL_SAIL_NUMBER: "Sail number",
}

_MULTISPACE_RE = re.compile(r"\s+")


class RowError(ValueError):
    """Raised when a CSV row fails validation."""

    def __init__(self, message: str, *, line_number: int) -> None:
        super().__init__(message)
        self.line_number = line_number


class InvalidDateError(RowError):
    """Raised when a row's regatta date matches none of the accepted formats."""

    def __init__(self, value: str, *, line_number: int) -> None:
        super().__init__(f"Invalid date format in row {line_number}: {value}", line_number=line_number)
        self.value = value


class CsvFormatError(ValueError):
    """Raised when an upload is not a usable regatta results CSV at all."""


@dataclass(frozen=True)
class CleanRow:
    """A validated CSV row, ready for the bulk loader."""

    line_number: int
    regatta_name: str | None
    regatta_date: date | None
    skipper: str | None
    yacht_club: str | None
    category: str | None
    boat_name: str | None
    sail_number: str | None
    position: int | None
    total_points: Decimal | None

    @property
    def has_result(self) -> bool:
        return self.position is not None or self.total_points is not None


def trim(value: str | None) -> str | None:
    """Strip leading/trailing whitespace; treat empty string as None."""
    if value is None:
        return None
    v = str(value).strip()
    return v if v else None


def normalize_skipper_name(value: str | None) -> str | None:
    """Trim and collapse internal whitespace; this is the skipper identity key."""
    v = trim(value)
    if v is None:
        return None
    return _MULTISPACE_RE.sub(" ", v)


def _checked_text(raw: Mapping[str, str | None], column: str, line_number: int) -> str | None:
    value = trim(raw.get(column))
    if value is None:
        return None
    if len(value) > MAX_FIELD_LENGTH:
        raise RowError(
            f"{_FIELD_LABELS[column]} too long (max {MAX_FIELD_LENGTH} chars) in row {line_number}",
            line_number=line_number,
        )
    return value


def _parse_position(value: str | None, line_number: int) -> int | None:
    text = trim(value)
    if text is None:
        return None
    if not _INTEGER_RE.fullmatch(text):
        raise RowError(f"Invalid position in row {line_number}: {text}", line_number=line_number)
    position = int(text)
    if position < 1:
        raise RowError(
            f"Position must be 1 or greater in row {line_number}: {text}", line_number=line_number
        )
    return position


def _parse_points(value: str | None, line_number: int) -> Decimal | None:
    text = trim(value)
    if text is None:
        return None
    if not _DECIMAL_RE.fullmatch(text):
        raise RowError(
            f"Invalid total points in row {line_number}: {text}", line_number=line_number
        )
    return Decimal(text)


def normalize_row(
        raw: Mapping[str, str | None],
        line_number: int,
        *,
        strict: bool = True,
) -> CleanRow:
    """Validate one raw CSV row.

    With `strict=True` (the upload path) the regatta name, skipper and date are required.

    Raises:
        RowError: If any field is missing (strict), too long or unparseable.
    """

    if strict:
        for column, label in REQUIRED_COLUMNS.items():
            if trim(raw.get(column)) is None:
                raise RowError(f"Missing {label} in row {line_number}", line_number=line_number)

    regatta_name = _checked_text(raw, COL_REGATTA_NAME, line_number)
    skipper = _checked_text(raw, COL_SKIPPER, line_number)
    yacht_club = _checked_text(raw, COL_YACHT_CLUB, line_number)
    category = _checked_text(raw, COL_CATEGORY, line_number)
    boat_name = _checked_text(raw, COL_BOAT_NAME, line_number)
    sail_number = _checked_text(raw, COL_SAIL_NUMBER, line_number)

    raw_date = trim(raw.get(COL_REGATTA_DATE))
    regatta_date = None
    if raw_date is not None:
        regatta_date = parse_date(raw_date)
        if regatta_date is None:
            raise InvalidDateError(raw_date, line_number=line_number)

    return CleanRow(
        line_number=line_number,
        regatta_name=regatta_name,
        regatta_date=regatta_date,
        skipper=normalize_skipper_name(skipper),
        yacht_club=yacht_club,
        category=category,
        boat_name=boat_name,
        sail_number=sail_number,
        position=_parse_position(raw.get(COL_POSITION), line_number),
        total_points=_parse_points(raw.get(COL_TOTAL_POINTS), line_number),
    )


def _check_headers(fieldnames: list[str] | None) -> None:
    if not fieldnames:
        raise CsvFormatError("CSV file is empty")

    recognized = [name for name in fieldnames if name in EXPECTED_COLUMNS]
    if not recognized:
        raise CsvFormatError(
            "CSV file does not contain any recognized columns. Expected some of: "
            + ", ".join(EXPECTED_COLUMNS)
        )

    unexpected = [name for name in fieldnames if name not in EXPECTED_COLUMNS]
    if unexpected:
        logger.warning("csv unexpected_columns=%s", ",".join(unexpected))


def read_csv_rows(text: str) -> Iterator[tuple[int, dict[str, str | None]]]:
    """Yield `(line_number, raw_row)` pairs from CSV text with a header line.

    The line number is the physical line on which the record ends, so quoted multi-line fields still
    point at the right place in the file.

    Raises:
        CsvFormatError: If the file is empty or has no recognized column.
    """

    reader = csv.DictReader(io.StringIO(text), skipinitialspace=True)
    fieldnames = [name.strip() for name in reader.fieldnames or []]
    _check_headers(fieldnames)
    reader.fieldnames = fieldnames

    for raw in reader:
        yield reader.line_num, {key: value for key, value in raw.items() if key is not None}


def normalize_csv(text: str, *, strict: bool = True) -> list[CleanRow]:
    """Validate every row of an upload before anything is loaded.

    Raises:
        CsvFormatError: If the upload is empty or unrecognizable.
        RowError: On the first invalid row (the whole upload is rejected).
    """

    rows = [normalize_row(raw, line_number, strict=strict) for line_number, raw in read_csv_rows(text)]
    if not rows:
        raise CsvFormatError("CSV file is empty")
    return rows
