"""Allowlisted SQL fragments.

Every filter column, comparison and ORDER BY clause referenced in generated SQL comes from these
mappings. No user-provided identifier is ever interpolated into SQL.
"""

from __future__ import annotations

from regatta_nlq.intent.schema import QueryType

# Filter clauses in their fixed append order. Each placeholder binds the same sanitized value.
SAILOR_NAME_CLAUSE = "LOWER(s.name) LIKE LOWER(%s)"
YACHT_CLUB_CLAUSE = "LOWER(s.yacht_club) LIKE LOWER(%s)"
POSITION_CUTOFF_CLAUSE = "res.position <= %s"
REGATTA_NAME_CLAUSE = "LOWER(r.regatta_name) LIKE LOWER(%s)"
# Races carry no venue column; locations are usually part of the regatta name.
LOCATION_CLAUSE = "LOWER(r.regatta_name) LIKE LOWER(%s)"
YEAR_CLAUSE = "EXTRACT(YEAR FROM r.regatta_date) = %s"
THIS_YEAR_CLAUSE = "EXTRACT(YEAR FROM r.regatta_date) = EXTRACT(YEAR FROM CURRENT_DATE)"
WINNER_CLAUSE = "res.position = 1"

# Sailor lookups also match skippers by the boats they sailed.
SAILOR_OR_BOAT_CLAUSE = (
    "s.id IN ("
    "SELECT s2.id FROM skippers s2 WHERE LOWER(s2.name) LIKE LOWER(%s)"
    " UNION "
    "SELECT res2.skipper_id FROM results res2 JOIN races r2 ON r2.id = res2.race_id"
    " WHERE LOWER(r2.boat_name) LIKE LOWER(%s)"
    ")"
)

DEFAULT_ORDER_BY = "r.regatta_date DESC, res.position ASC"

ORDER_BY: dict[QueryType, str | None] = {
    QueryType.sailor_search: "s.name ASC",
    QueryType.database_status: None,
    QueryType.regatta_count: "r.regatta_date DESC, r.regatta_name ASC",
    QueryType.performance_stats: "wins DESC, podiums DESC, skipper_name ASC",
    QueryType.most_wins: "wins DESC, podiums DESC, skipper_name ASC",
    QueryType.team_members: "s.name ASC",
    QueryType.winners_list: "r.regatta_date DESC",
    QueryType.team_results: "r.regatta_date DESC, res.position ASC",
}
