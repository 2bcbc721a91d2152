"""Turn fetched rows into a one-paragraph answer keyed by query type."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Any

from regatta_nlq.intent.schema import QueryType

Row = Mapping[str, Any]

DEFAULT_NO_RESULTS = "No results found for your query."

NO_RESULTS_MESSAGES: dict[QueryType, str] = {
    QueryType.sailor_search: (
        "I couldn't find any sailors or boats matching that name. "
        "Try a different name or partial name."
    ),
    QueryType.database_status: "The database has no statistics to report yet.",
    QueryType.regatta_count: "I couldn't find any regattas matching your question.",
    QueryType.performance_stats: "There are no recorded results to rank sailors by yet.",
    QueryType.most_wins: "There are no recorded results to rank sailors by yet.",
    QueryType.team_members: "I couldn't find any sailors from that club.",
    QueryType.winner: "I couldn't find a winner matching your question.",
    QueryType.winners_list: "I couldn't find any winners matching your question.",
}


def ordinal(value: int) -> str:
    """Finishing place as shown in replies: "1st" for a win, "Nth" otherwise (2th, 3th, ...)."""

    return f"{value}{'st' if value == 1 else 'th'}"


def _plural(count: int, word: str, plural: str | None = None) -> str:
    if count == 1:
        return f"{count} {word}"
    return f"{count} {plural or word + 's'}"


def _as_int(value: Any) -> int:
    return int(value) if value is not None else 0


def _format_date(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return f"{value:%B} {value.day}, {value.year}"
    return str(value)


def _status_message(row: Row) -> str:
    sailors = _as_int(row.get("total_sailors"))
    clubs = _as_int(row.get("total_clubs"))
    races = _as_int(row.get("total_races"))

    message = (
        f"I know about {_plural(sailors, 'sailor')} from {_plural(clubs, 'yacht club')}. "
        f"There {'is' if races == 1 else 'are'} {_plural(races, 'race')} in the database"
    )

    earliest = _format_date(row.get("earliest_race"))
    latest = _format_date(row.get("latest_race"))
    if earliest and latest:
        return f"{message}, from {earliest} to {latest}."
    return f"{message}."


def _sailor_message(row: Row) -> str:
    name = row.get("skipper_name") or "This sailor"
    club = row.get("yacht_club") or "unknown club"
    races = _as_int(row.get("total_races"))

    message = f"Found 1 match. {name} from {club} "
    if races == 0:
        return message + "has no recorded races yet."

    wins = _as_int(row.get("wins"))
    message += f"has competed in {_plural(races, 'race')} with {_plural(wins, 'win')}"
    if row.get("podiums") is not None:
        message += f" and {_plural(_as_int(row.get('podiums')), 'podium finish', 'podium finishes')}"
    message += "."

    best = row.get("best_position")
    if best is not None:
        message += f" Best finish: {ordinal(int(best))} place."
    return message


def summarize(query_type: QueryType, rows: Sequence[Row], *, year: int | None = None) -> str:
    """Build a human-readable answer for the rows returned by a query.

    Pure formatting over already-fetched rows; `year` is only used to phrase regatta listings.
    """

    if not rows:
        return NO_RESULTS_MESSAGES.get(query_type, DEFAULT_NO_RESULTS)

    if query_type == QueryType.database_status:
        return _status_message(rows[0])

    if query_type == QueryType.sailor_search:
        if len(rows) == 1:
            return _sailor_message(rows[0])
        return f"Found {len(rows)} matches."

    if query_type == QueryType.regatta_count:
        found = _plural(len(rows), "regatta")
        if year is not None:
            return f"Found {found} in {year}."
        return f"Found {found}."

    return f"Found {_plural(len(rows), 'result')}."
