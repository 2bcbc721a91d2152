"""Tests for the deterministic SQL builder (allowlists + parameter binding)."""

from __future__ import annotations

import pytest

from regatta_nlq.intent.schema import QueryIntent, QueryType, intent_from_obj
from regatta_nlq.sql.builder import build, build_query
from regatta_nlq.sql.columns import (
    DEFAULT_ORDER_BY,
    POSITION_CUTOFF_CLAUSE,
    REGATTA_NAME_CLAUSE,
    SAILOR_NAME_CLAUSE,
    THIS_YEAR_CLAUSE,
    WINNER_CLAUSE,
    YACHT_CLUB_CLAUSE,
    YEAR_CLAUSE,
)


def _placeholder_count(sql: str) -> int:
    return sql.count("%s")


def test_build_race_results_no_filters() -> None:
    sql, params = build_query(QueryIntent(queryType="race_results"))
    assert sql.startswith("SELECT r.regatta_name")
    assert "FROM results res JOIN races r" in sql
    assert "WHERE" not in sql
    assert sql.endswith(f"ORDER BY {DEFAULT_ORDER_BY}")
    assert params == ()


def test_filters_are_appended_in_fixed_order() -> None:
    intent = QueryIntent(
        queryType="team_results",
        year=2023,
        regattaName="Spring Cup",
        position=3,
        yachtClub="Bay YC",
        sailorName="Ann",
    )
    sql, params = build_query(intent)

    where = sql.split("WHERE ", 1)[1].split(" ORDER BY", 1)[0]
    assert where == " AND ".join(
        [SAILOR_NAME_CLAUSE, YACHT_CLUB_CLAUSE, POSITION_CUTOFF_CLAUSE, REGATTA_NAME_CLAUSE, YEAR_CLAUSE]
    )
    assert params == ("%Ann%", "%Bay YC%", 3, "%Spring Cup%", 2023)
    assert _placeholder_count(sql) == len(params)


def test_user_text_never_appears_in_sql() -> None:
    hostile = "x') OR 1=1 --"
    intent = QueryIntent(
        queryType="race_results",
        sailorName=hostile,
        yachtClub=hostile,
        regattaName=hostile,
        location=hostile,
    )
    sql, params = build_query(intent)

    assert "OR 1=1" not in sql
    assert all(hostile in str(param) for param in params)
    assert _placeholder_count(sql) == len(params) == 4


def test_sanitizer_rejections_drop_filters() -> None:
    sql, params = build_query(QueryIntent(queryType="race_results", year="1776", sailorName="%%"))
    assert "WHERE" not in sql
    assert params == ()


def test_this_year_uses_database_clock() -> None:
    sql, params = build_query(QueryIntent(queryType="performance_stats", timeFrame="this_year"))
    assert THIS_YEAR_CLAUSE in sql
    assert "CURRENT_DATE" in sql
    assert params == ()


def test_explicit_year_wins_over_this_year() -> None:
    sql, params = build_query(
        QueryIntent(queryType="performance_stats", year=2022, timeFrame="this_year")
    )
    assert YEAR_CLAUSE in sql
    assert "CURRENT_DATE" not in sql
    assert params == (2022,)


def test_json_float_year_keeps_year_filter() -> None:
    sql, params = build_query(intent_from_obj({"queryType": "winners_list", "year": 2024.0}))
    assert YEAR_CLAUSE in sql
    assert params == (2024,)


def test_winner_clause_follows_explicit_filters() -> None:
    sql, params = build_query(QueryIntent(queryType="winner", regattaName="Spring Cup", year=2024))
    assert f"{YEAR_CLAUSE} AND {WINNER_CLAUSE}" in sql
    assert params == ("%Spring Cup%", 2024)


def test_winners_list_only_lists_first_places() -> None:
    sql, params = build_query(QueryIntent(queryType="winners_list"))
    assert f"WHERE {WINNER_CLAUSE}" in sql
    assert sql.endswith("ORDER BY r.regatta_date DESC")
    assert params == ()


def test_sailor_search_matches_names_and_boats() -> None:
    sql, params = build_query(QueryIntent(queryType="sailor_search", sailorName="Blue Moon"))
    assert "LOWER(r2.boat_name) LIKE LOWER(%s)" in sql
    assert "GROUP BY s.name, s.yacht_club" in sql
    assert sql.endswith("ORDER BY s.name ASC")
    assert params == ("%Blue Moon%", "%Blue Moon%")
    assert _placeholder_count(sql) == len(params)


def test_database_status_ignores_filters() -> None:
    sql, params = build_query(QueryIntent(queryType="database_status", sailorName="Ann", year=2024))
    assert "%s" not in sql
    assert "ORDER BY" not in sql
    assert "GROUP BY" not in sql
    assert params == ()


def test_leaderboard_is_grouped_ordered_and_limited() -> None:
    sql, _ = build_query(QueryIntent(queryType="most_wins"))
    assert "GROUP BY s.name, s.yacht_club" in sql
    assert "ORDER BY wins DESC, podiums DESC, skipper_name ASC" in sql
    assert sql.endswith("LIMIT 10")


def test_regatta_listing_groups_by_regatta() -> None:
    sql, params = build_query(QueryIntent(queryType="regatta_count", year=2024))
    assert "GROUP BY r.regatta_name, r.regatta_date, r.category" in sql
    assert params == (2024,)


def test_team_members_filters_by_club() -> None:
    sql, params = build_query(QueryIntent(queryType="team_members", yachtClub="Bay"))
    assert YACHT_CLUB_CLAUSE in sql
    assert "FROM skippers s" in sql
    assert params == ("%Bay%",)


def test_unknown_query_type_builds_default_listing() -> None:
    built = build(intent_from_obj({"queryType": "unheard_of", "regattaName": "Cup"}))
    assert built.sql == build(QueryIntent(queryType="race_results", regattaName="Cup")).sql
    assert built.params == ("%Cup%",)


@pytest.mark.parametrize("query_type", list(QueryType))
def test_every_query_type_builds_with_matching_placeholders(query_type: QueryType) -> None:
    intent = QueryIntent(
        queryType=query_type.value,
        sailorName="Ann",
        yachtClub="Bay",
        position=5,
        regattaName="Cup",
        location="Harbour",
        year=2024,
    )
    sql, params = build_query(intent)
    assert _placeholder_count(sql) == len(params)
    assert "Ann" not in sql
