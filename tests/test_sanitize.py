"""Tests for sanitization of classifier-extracted values."""

from __future__ import annotations

import pytest

from regatta_nlq.intent.sanitize import QueryFilters, sanitize_intent, validate_input
from regatta_nlq.intent.schema import QueryIntent


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (2024, 2024),
        ("2024", 2024),
        (" 1900 ", 1900),
        (2100, 2100),
        (1899, None),
        ("2101", None),
        ("twenty", None),
        ("2024.5", None),
        (True, None),
        (None, None),
    ],
)
def test_validate_year(value: object, expected: int | None) -> None:
    assert validate_input(value, "year") == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [(1, 1), ("3", 3), (10.0, 10), (0, None), ("-2", None), ("first", None)],
)
def test_validate_position(value: object, expected: int | None) -> None:
    assert validate_input(value, "position") == expected


def test_validate_string_strips_like_wildcards_and_terminators() -> None:
    assert validate_input("  Ann%; Lee ", "string") == "Ann Lee"
    assert validate_input("x'; DROP TABLE skippers; --", "string") == "x' DROP TABLE skippers --"


def test_validate_string_empty_after_cleaning_is_none() -> None:
    assert validate_input("%;%", "string") is None
    assert validate_input("   ", "string") is None


def test_validate_unknown_kind_is_none() -> None:
    assert validate_input("anything", "column") is None


def test_sanitize_intent_drops_rejected_values() -> None:
    intent = QueryIntent(
        sailorName=" Ann ",
        yachtClub="%",
        year="1800",
        position="0",
        regattaName="Spring; Cup",
        timeFrame="last_decade",
    )
    assert sanitize_intent(intent) == QueryFilters(sailor_name="Ann", regatta_name="Spring Cup")


def test_sanitize_intent_keeps_known_time_frame() -> None:
    filters = sanitize_intent(QueryIntent(timeFrame="THIS_YEAR"))
    assert filters.time_frame == "this_year"
