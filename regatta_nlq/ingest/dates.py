"""Regatta date parsing for CSV ingestion.

Dates are calendar dates with no timezone attached. Accepted shapes, tried in this order:
    - `MM/DD/YYYY` (US slash form, built directly as a calendar date)
    - `YYYY-MM-DD` (ISO)
    - textual "Month DD, YYYY": the fragment is found with a regex (surrounding noise such as a
      weekday is ignored) and only that fragment is handed to dateparser, absolute dates only.

Relative phrases ("yesterday", "in 2 days") are never accepted.
"""

from __future__ import annotations

import re
from datetime import date

import dateparser
from dateparser.conf import Settings as DateparserSettings

_DATEPARSER_SETTINGS = DateparserSettings().replace(
    STRICT_PARSING=True,
    DATE_ORDER="MDY",
    PREFER_LOCALE_DATE_ORDER=False,
    REQUIRE_PARTS=["day", "month", "year"],
    PARSERS=["absolute-time"],
)

_SLASH_DATE_RE = re.compile(r"(?P<m>\d{1,2})/(?P<d>\d{1,2})/(?P<y>\d{4})")
_ISO_DATE_RE = re.compile(r"(?P<y>\d{4})-(?P<m>\d{1,2})-(?P<d>\d{1,2})")
_TEXTUAL_DATE_RE = re.compile(r"(?P<month>[A-Za-z]+)\.?\s+(?P<day>\d{1,2}),?\s+(?P<year>\d{4})")


def _calendar_date(year: str, month: str, day: str) -> date | None:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def _parse_textual(fragment: str) -> date | None:
    dt = dateparser.parse(fragment, languages=["en"], settings=_DATEPARSER_SETTINGS)
    if not dt:
        return None
    return dt.date()


def parse_date(value: str | None) -> date | None:
    """Parse one CSV date value.

    Returns:
        The calendar date, or `None` if the value is empty or matches none of the accepted shapes.
    """

    text = (value or "").strip()
    if not text:
        return None

    match = _SLASH_DATE_RE.fullmatch(text)
    if match:
        return _calendar_date(match.group("y"), match.group("m"), match.group("d"))

    match = _ISO_DATE_RE.fullmatch(text)
    if match:
        return _calendar_date(match.group("y"), match.group("m"), match.group("d"))

    # "Sat. March 5, 2024 (day 1)" -> "March 5, 2024"
    match = _TEXTUAL_DATE_RE.search(text)
    if match:
        fragment = f"{match.group('month')} {match.group('day')}, {match.group('year')}"
        return _parse_textual(fragment)

    return None
