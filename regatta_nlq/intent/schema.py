"""QueryIntent JSON schema (Pydantic model).

This schema is the contract between the classifiers (LLM or keyword rules) and the deterministic SQL
builder. Classifier output is validated against it; anything that does not validate is a
classification failure.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QueryType(StrEnum):
    """Closed set of supported question kinds."""

    sailor_search = "sailor_search"
    database_status = "database_status"
    regatta_count = "regatta_count"
    performance_stats = "performance_stats"
    most_wins = "most_wins"
    team_members = "team_members"
    winner = "winner"
    winners_list = "winners_list"
    team_results = "team_results"
    race_results = "race_results"


DEFAULT_QUERY_TYPE = QueryType.race_results

_NULL_MARKERS = {"", "null", "none"}


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and value.strip().lower() in _NULL_MARKERS:
        return None
    return value


class QueryIntent(BaseModel):
    """Structured interpretation of one free-text question.

    Field values are kept as the classifier produced them (strings or numbers). They are untrusted
    and must go through `regatta_nlq.intent.sanitize` before reaching SQL.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, str_strip_whitespace=True)

    query_type: QueryType = Field(default=DEFAULT_QUERY_TYPE, alias="queryType")
    sailor_name: str | None = Field(default=None, alias="sailorName")
    yacht_club: str | None = Field(default=None, alias="yachtClub")
    regatta_name: str | None = Field(default=None, alias="regattaName")
    location: str | None = None
    year: int | str | None = None
    position: int | str | None = None
    time_frame: str | None = Field(default=None, alias="timeFrame")

    @field_validator("query_type", mode="before")
    @classmethod
    def coerce_query_type(cls, value: Any) -> QueryType:
        """Map unknown or missing query types onto the default listing variant."""

        if isinstance(value, str):
            try:
                return QueryType(value.strip().lower())
            except ValueError:
                return DEFAULT_QUERY_TYPE
        return DEFAULT_QUERY_TYPE

    @field_validator(
        "sailor_name",
        "yacht_club",
        "regatta_name",
        "location",
        "year",
        "position",
        "time_frame",
        mode="before",
    )
    @classmethod
    def null_markers_to_none(cls, value: Any) -> Any:
        """Treat "null"/"none"/blank placeholders emitted by the model as absent values."""

        value = _blank_to_none(value)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        # JSON numbers such as 2024.0
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if value is not None and not isinstance(value, str):
            return str(value)
        return value


def intent_from_obj(obj: Any) -> QueryIntent:
    """Validate and parse a QueryIntent from an arbitrary decoded JSON object."""

    return QueryIntent.model_validate(obj)
