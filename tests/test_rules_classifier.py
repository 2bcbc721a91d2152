"""Tests for the deterministic keyword classifier."""

from __future__ import annotations

import pytest

from regatta_nlq.intent.rules_classifier import RulesClassifierError, classify
from regatta_nlq.intent.schema import QueryType


@pytest.mark.parametrize(
    "text",
    ["How many sailors are in the database?", "What's in the database?", "Show me the stats"],
)
def test_database_status(text: str) -> None:
    assert classify(text).query_type == QueryType.database_status


def test_winner_of_named_regatta() -> None:
    intent = classify("Who won the Spring Cup?")
    assert intent.query_type == QueryType.winner
    assert intent.regatta_name == "spring cup"
    assert intent.year is None


def test_winner_with_year_strips_time_phrase() -> None:
    intent = classify("Who won the Spring Cup in 2024?")
    assert intent.query_type == QueryType.winner
    assert intent.regatta_name == "spring cup"
    assert intent.year == "2024"


def test_most_wins_this_year() -> None:
    intent = classify("Who won the most races this year?")
    assert intent.query_type == QueryType.most_wins
    assert intent.time_frame == "this_year"


def test_who_is_winning() -> None:
    intent = classify("Who's winning this year?")
    assert intent.query_type == QueryType.performance_stats
    assert intent.time_frame == "this_year"


def test_top_n_sets_position() -> None:
    intent = classify("Top 5 sailors in 2023")
    assert intent.query_type == QueryType.performance_stats
    assert intent.position == "5"
    assert intent.year == "2023"


def test_winners_list() -> None:
    intent = classify("List all winners from 2024")
    assert intent.query_type == QueryType.winners_list
    assert intent.year == "2024"


def test_results_of_regatta() -> None:
    intent = classify("Show me results of the Autumn Trophy")
    assert intent.query_type == QueryType.race_results
    assert intent.regatta_name == "autumn trophy"


@pytest.mark.parametrize("text", ["Which regattas were held in 2024?", "How many regattas in 2024?"])
def test_regatta_listing_with_year(text: str) -> None:
    intent = classify(text)
    assert intent.query_type == QueryType.regatta_count
    assert intent.year == "2024"


@pytest.mark.parametrize(
    ("text", "club"),
    [
        ("Sailors from Bay Yacht Club", "bay yacht club"),
        ("Who sails for the Royal Harbour YC?", "royal harbour yc"),
        ("Members of Bay YC", "bay yc"),
        ("Bay Yacht Club team", "bay yacht club"),
    ],
)
def test_team_members(text: str, club: str) -> None:
    intent = classify(text)
    assert intent.query_type == QueryType.team_members
    assert intent.yacht_club == club


def test_how_did_club_do_is_team_results() -> None:
    intent = classify("How did Bay Sailing Club do in 2024?")
    assert intent.query_type == QueryType.team_results
    assert intent.yacht_club == "bay sailing club"
    assert intent.year == "2024"


@pytest.mark.parametrize(
    ("text", "name"),
    [
        ("Find Ann Lee", "ann lee"),
        ("Tell me about John Smith", "john smith"),
        ("How did Ann Lee do?", "ann lee"),
        ("Look up boat Blue Moon", "blue moon"),
    ],
)
def test_sailor_search(text: str, name: str) -> None:
    intent = classify(text)
    assert intent.query_type == QueryType.sailor_search
    assert intent.sailor_name == name


@pytest.mark.parametrize("text", ["", "   ", "What is the weather like?", "???"])
def test_unsupported_questions_raise(text: str) -> None:
    with pytest.raises(RulesClassifierError):
        classify(text)
