"""Sanitization of classifier-extracted values.

Every value that comes out of a classifier is untrusted. This module is the only path by which such
values may reach the SQL builder: integers are range-checked and strings lose the characters that
could break a `LIKE` pattern or terminate a statement. Rejected values become `None` and the filter
is dropped from the query; rejection is never fatal.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Literal

from regatta_nlq.intent.schema import QueryIntent

InputKind = Literal["year", "position", "string"]

MIN_YEAR = 1900
MAX_YEAR = 2100

THIS_YEAR = "this_year"
_KNOWN_TIME_FRAMES = {THIS_YEAR}

_INT_RE = re.compile(r"[+-]?\d+")
_UNSAFE_CHARS_RE = re.compile(r"[%;]")


@dataclass(frozen=True)
class QueryFilters:
    """Sanitized filter values taken from a `QueryIntent`."""

    sailor_name: str | None = None
    yacht_club: str | None = None
    position: int | None = None
    regatta_name: str | None = None
    location: str | None = None
    year: int | None = None
    time_frame: str | None = None


def _parse_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = str(value).strip()
    if not _INT_RE.fullmatch(text):
        return None
    return int(text)


def validate_input(value: Any, kind: str = "string") -> int | str | None:
    """Validate a single extracted value.

    Returns:
        The cleaned value, or `None` if the value is absent or rejected for its kind.
    """

    if value is None:
        return None

    if kind == "year":
        year = _parse_int(value)
        if year is None or year < MIN_YEAR or year > MAX_YEAR:
            return None
        return year

    if kind == "position":
        position = _parse_int(value)
        if position is None or position < 1:
            return None
        return position

    if kind == "string":
        cleaned = _UNSAFE_CHARS_RE.sub("", str(value)).strip()
        return cleaned or None

    return None


def _clean_str(value: Any) -> str | None:
    cleaned = validate_input(value, "string")
    return cleaned if isinstance(cleaned, str) else None


def _clean_int(value: Any, kind: InputKind) -> int | None:
    cleaned = validate_input(value, kind)
    return cleaned if isinstance(cleaned, int) else None


def sanitize_intent(intent: QueryIntent) -> QueryFilters:
    """Run every field of the intent through `validate_input`."""

    time_frame = _clean_str(intent.time_frame)
    if time_frame is not None:
        time_frame = time_frame.lower()
        if time_frame not in _KNOWN_TIME_FRAMES:
            time_frame = None

    return QueryFilters(
        sailor_name=_clean_str(intent.sailor_name),
        yacht_club=_clean_str(intent.yacht_club),
        position=_clean_int(intent.position, "position"),
        regatta_name=_clean_str(intent.regatta_name),
        location=_clean_str(intent.location),
        year=_clean_int(intent.year, "year"),
        time_frame=time_frame,
    )
