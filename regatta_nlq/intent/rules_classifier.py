"""Keyword-based English question classifier.

Used when the LLM classifier is disabled. It is intentionally strict and deterministic:
    - it recognizes a fixed set of English question shapes and nothing more,
    - it raises on anything it cannot place instead of guessing,
    - it produces a validated `QueryIntent`; extracted values are still sanitized downstream.
"""

from __future__ import annotations

import re
from typing import Any

from regatta_nlq.intent.dictionaries import (
    CLUB_PATTERN,
    CLUB_TERMS,
    LEADERBOARD_PHRASES,
    LOOKUP_PATTERN,
    MOST_WINS_PHRASES,
    PERSON_PATTERN,
    PERSON_TERMS,
    RACE_PATTERN,
    RACE_TERMS,
    STATUS_PHRASES,
    has_any_phrase,
    mentions,
)
from regatta_nlq.intent.normalize import normalize_text
from regatta_nlq.intent.schema import QueryIntent, QueryType, intent_from_obj


class RulesClassifierError(ValueError):
    """Raised when the keyword classifier cannot place a question."""


_YEAR_RE = re.compile(r"\b(19\d{2}|20\d{2}|2100)\b")
_TOP_N_RE = re.compile(r"\btop (?P<n>\d{1,3})\b")
_TRAILING_TIME_RE = re.compile(r"(?:\s+(?:in|from|during|of))?\s+(?:\d{4}|this year)$")

_HOW_MANY_RE = re.compile(rf"\bhow many (?:{PERSON_PATTERN}|{RACE_PATTERN}|{CLUB_PATTERN})\b")
_WINNER_RE = re.compile(r"\b(?:who won|winner of|winners of)(?: the)? (?P<regatta>.+)$")
_CLUB_RES: tuple[re.Pattern[str], ...] = (
    re.compile(rf"\b(?:{PERSON_PATTERN}) (?:from|of|at|in) (?:the )?(?P<club>.+)$"),
    re.compile(r"\bwho sails? (?:for|with|at) (?:the )?(?P<club>.+)$"),
    re.compile(rf"^(?:the )?(?P<club>.+?) (?:{CLUB_PATTERN})$"),
)
_RESULTS_RE = re.compile(r"\bresults (?:of|for|from|at) (?:the )?(?P<regatta>.+)$")
_HOW_DID_RE = re.compile(
    r"^how (?:did|does|is|has) (?:the )?(?P<subject>.+?) (?:do|done|doing|perform|performed|performing)\b"
)
_LOOKUP_RE = re.compile(
    rf"^(?:{LOOKUP_PATTERN})(?: (?:sailor|skipper|person|racer|boat))? (?P<name>.+)$"
)


def _strip_time(value: str) -> str:
    return _TRAILING_TIME_RE.sub("", f" {value}").strip()


def _time_fields(text: str) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    match = _YEAR_RE.search(text)
    if match:
        fields["year"] = match.group(1)
    elif " this year" in f" {text}":
        fields["timeFrame"] = "this_year"

    top = _TOP_N_RE.search(text)
    if top:
        fields["position"] = top.group("n")
    return fields


def _classify(text: str) -> dict[str, Any]:
    time_fields = _time_fields(text)

    if has_any_phrase(text, MOST_WINS_PHRASES):
        return {"queryType": QueryType.most_wins, **time_fields}
    if has_any_phrase(text, LEADERBOARD_PHRASES):
        return {"queryType": QueryType.performance_stats, **time_fields}
    if "position" in time_fields and mentions(text, PERSON_TERMS):
        return {"queryType": QueryType.performance_stats, **time_fields}

    match = _WINNER_RE.search(text)
    if match:
        return {
            "queryType": QueryType.winner,
            "regattaName": _strip_time(match.group("regatta")),
            **time_fields,
        }
    if mentions(text, ("winners",)):
        return {"queryType": QueryType.winners_list, **time_fields}

    match = _RESULTS_RE.search(text)
    if match:
        return {
            "queryType": QueryType.race_results,
            "regattaName": _strip_time(match.group("regatta")),
            **time_fields,
        }

    if _HOW_MANY_RE.search(text) and "year" not in time_fields:
        return {"queryType": QueryType.database_status}
    if has_any_phrase(text, STATUS_PHRASES):
        return {"queryType": QueryType.database_status}

    match = _HOW_DID_RE.search(text)
    if match:
        subject = match.group("subject")
        if subject.split()[-1] in CLUB_TERMS:
            return {"queryType": QueryType.team_results, "yachtClub": subject, **time_fields}
        return {"queryType": QueryType.sailor_search, "sailorName": subject, **time_fields}

    for pattern in _CLUB_RES:
        match = pattern.search(text)
        if match:
            club = _strip_time(match.group("club"))
            if club and not mentions(club, RACE_TERMS):
                return {"queryType": QueryType.team_members, "yachtClub": club, **time_fields}

    if mentions(text, RACE_TERMS):
        return {"queryType": QueryType.regatta_count, **time_fields}

    match = _LOOKUP_RE.search(text)
    if match:
        return {"queryType": QueryType.sailor_search, "sailorName": _strip_time(match.group("name"))}

    raise RulesClassifierError("unsupported question")


def classify(text: str) -> QueryIntent:
    """Classify a question into a validated QueryIntent.

    Raises:
        RulesClassifierError: If the question is empty or matches no known shape.
    """

    normalized = normalize_text(text)
    if not normalized:
        raise RulesClassifierError("empty input")

    obj = _classify(normalized)
    try:
        return intent_from_obj(obj)
    except ValueError as exc:
        raise RulesClassifierError(str(exc)) from exc
