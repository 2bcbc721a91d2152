"""Deterministic SQL builder.

The builder converts a `QueryIntent` into a parameterized SQL query. Each query type is bound to one
statically known template; filter clauses, ORDER BY clauses and identifiers come from allowlists.
Only sanitized values ever become bound parameters, and they never appear in the SQL text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from regatta_nlq.intent.sanitize import THIS_YEAR, QueryFilters, sanitize_intent
from regatta_nlq.intent.schema import DEFAULT_QUERY_TYPE, QueryIntent, QueryType
from regatta_nlq.sql.columns import (
    DEFAULT_ORDER_BY,
    LOCATION_CLAUSE,
    ORDER_BY,
    POSITION_CUTOFF_CLAUSE,
    REGATTA_NAME_CLAUSE,
    SAILOR_NAME_CLAUSE,
    SAILOR_OR_BOAT_CLAUSE,
    THIS_YEAR_CLAUSE,
    WINNER_CLAUSE,
    YACHT_CLUB_CLAUSE,
    YEAR_CLAUSE,
)


@dataclass(frozen=True)
class BuiltQuery:
    """A parameterized SQL query ready for execution."""

    sql: str
    params: tuple[Any, ...]


@dataclass(frozen=True)
class _Template:
    select_sql: str
    from_sql: str = ""
    group_by: str | None = None
    filterable: bool = True
    name_clause: str = SAILOR_NAME_CLAUSE
    limit: int | None = None


_SKIPPER_JOINS = (
    "FROM skippers s"
    " LEFT JOIN results res ON res.skipper_id = s.id"
    " LEFT JOIN races r ON r.id = res.race_id"
)

_WIN_COUNTS = (
    " COUNT(DISTINCT r.id) AS total_races,"
    " COUNT(DISTINCT CASE WHEN res.position = 1 THEN r.id END) AS wins,"
    " COUNT(DISTINCT CASE WHEN res.position <= 3 THEN r.id END) AS podiums,"
    " MIN(res.position) AS best_position"
)

_SAILOR_SEARCH = _Template(
    select_sql=(
        "SELECT s.name AS skipper_name, s.yacht_club,"
        + _WIN_COUNTS
        + ", MIN(r.regatta_date) AS first_race, MAX(r.regatta_date) AS last_race"
    ),
    from_sql=_SKIPPER_JOINS,
    group_by="s.name, s.yacht_club",
    name_clause=SAILOR_OR_BOAT_CLAUSE,
)

_DATABASE_STATUS = _Template(
    select_sql=(
        "SELECT"
        " (SELECT COUNT(*) FROM skippers) AS total_sailors,"
        " (SELECT COUNT(*) FROM races) AS total_races,"
        " (SELECT COUNT(*) FROM results) AS total_results,"
        " (SELECT MIN(regatta_date) FROM races) AS earliest_race,"
        " (SELECT MAX(regatta_date) FROM races) AS latest_race,"
        " (SELECT COUNT(DISTINCT yacht_club) FROM skippers WHERE yacht_club IS NOT NULL)"
        " AS total_clubs"
    ),
    filterable=False,
)

_REGATTA_LISTING = _Template(
    select_sql=(
        "SELECT r.regatta_name, r.regatta_date, r.category,"
        " COUNT(DISTINCT r.id) AS entries,"
        " COUNT(DISTINCT res.skipper_id) AS participants"
    ),
    from_sql=(
        "FROM races r"
        " LEFT JOIN results res ON res.race_id = r.id"
        " LEFT JOIN skippers s ON s.id = res.skipper_id"
    ),
    group_by="r.regatta_name, r.regatta_date, r.category",
)

_LEADERBOARD = _Template(
    select_sql="SELECT s.name AS skipper_name, s.yacht_club," + _WIN_COUNTS,
    from_sql=(
        "FROM skippers s"
        " JOIN results res ON res.skipper_id = s.id"
        " JOIN races r ON r.id = res.race_id"
    ),
    group_by="s.name, s.yacht_club",
    limit=10,
)

_CLUB_ROSTER = _Template(
    select_sql=(
        "SELECT s.name AS skipper_name, s.yacht_club, COUNT(DISTINCT r.id) AS total_races"
    ),
    from_sql=_SKIPPER_JOINS,
    group_by="s.name, s.yacht_club",
)

_RESULT_LISTING = _Template(
    select_sql=(
        "SELECT r.regatta_name, r.regatta_date, r.category, r.boat_name, r.sail_number,"
        " s.name AS skipper_name, s.yacht_club, res.position, res.total_points"
    ),
    from_sql=(
        "FROM results res"
        " JOIN races r ON r.id = res.race_id"
        " LEFT JOIN skippers s ON s.id = res.skipper_id"
    ),
)

_TEMPLATES: dict[QueryType, _Template] = {
    QueryType.sailor_search: _SAILOR_SEARCH,
    QueryType.database_status: _DATABASE_STATUS,
    QueryType.regatta_count: _REGATTA_LISTING,
    QueryType.performance_stats: _LEADERBOARD,
    QueryType.most_wins: _LEADERBOARD,
    QueryType.team_members: _CLUB_ROSTER,
    QueryType.winner: _RESULT_LISTING,
    QueryType.winners_list: _RESULT_LISTING,
    QueryType.team_results: _RESULT_LISTING,
    QueryType.race_results: _RESULT_LISTING,
}

_WINNER_TYPES = frozenset({QueryType.winner, QueryType.winners_list})


def _substring(value: str) -> str:
    return f"%{value}%"


def _where_and(clauses: list[str]) -> str:
    if not clauses:
        return ""
    return "WHERE " + " AND ".join(clauses)


def _append_filter(clauses: list[str], params: list[Any], clause: str, value: Any) -> None:
    clauses.append(clause)
    params.extend([value] * clause.count("%s"))


def _filter_clauses(
        template: _Template,
        query_type: QueryType,
        filters: QueryFilters,
) -> tuple[list[str], list[Any]]:
    clauses: list[str] = []
    params: list[Any] = []

    if not template.filterable:
        return clauses, params

    if filters.sailor_name is not None:
        _append_filter(clauses, params, template.name_clause, _substring(filters.sailor_name))

    if filters.yacht_club is not None:
        _append_filter(clauses, params, YACHT_CLUB_CLAUSE, _substring(filters.yacht_club))

    if filters.position is not None:
        _append_filter(clauses, params, POSITION_CUTOFF_CLAUSE, filters.position)

    if filters.regatta_name is not None:
        _append_filter(clauses, params, REGATTA_NAME_CLAUSE, _substring(filters.regatta_name))

    if filters.location is not None:
        _append_filter(clauses, params, LOCATION_CLAUSE, _substring(filters.location))

    # An explicit year wins over the symbolic time frame.
    if filters.year is not None:
        _append_filter(clauses, params, YEAR_CLAUSE, filters.year)
    elif filters.time_frame == THIS_YEAR:
        clauses.append(THIS_YEAR_CLAUSE)

    if query_type in _WINNER_TYPES:
        clauses.append(WINNER_CLAUSE)

    return clauses, params


def build(intent: QueryIntent) -> BuiltQuery:
    """Build a parameterized SQL query from a classifier intent.

    The intent is sanitized first; rejected values are dropped as if absent. Never raises for a
    valid `QueryIntent`: query types without a dedicated template use the default listing.
    """

    query_type = intent.query_type
    template = _TEMPLATES.get(query_type, _TEMPLATES[DEFAULT_QUERY_TYPE])
    filters = sanitize_intent(intent)

    clauses, params = _filter_clauses(template, query_type, filters)

    parts = [template.select_sql, template.from_sql, _where_and(clauses)]
    if template.group_by:
        parts.append(f"GROUP BY {template.group_by}")

    order_by = ORDER_BY.get(query_type, DEFAULT_ORDER_BY)
    if order_by and template.filterable:
        parts.append(f"ORDER BY {order_by}")

    if template.limit is not None:
        parts.append(f"LIMIT {template.limit:d}")

    sql = " ".join(part for part in parts if part)
    return BuiltQuery(sql=sql, params=tuple(params))


def build_query(intent: QueryIntent) -> tuple[str, tuple[Any, ...]]:
    """Build SQL + params from a QueryIntent (convenience wrapper)."""

    built = build(intent)
    return built.sql, built.params
