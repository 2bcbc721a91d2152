"""English vocabulary for the keyword classifier.

Users call the same things by many names (a skipper is also a sailor or a racer, a regatta is also a
race or an event). These mappings are used by the rules-based classifier and should stay small and
deterministic.
"""

from __future__ import annotations

PERSON_TERMS: tuple[str, ...] = (
    "sailors",
    "sailor",
    "skippers",
    "skipper",
    "racers",
    "racer",
    "people",
    "person",
    "competitors",
    "competitor",
    "members",
)

RACE_TERMS: tuple[str, ...] = (
    "regattas",
    "regatta",
    "races",
    "race",
    "events",
    "event",
    "competitions",
    "competition",
)

CLUB_TERMS: tuple[str, ...] = ("clubs", "club", "teams", "team", "organization")

MOST_WINS_PHRASES: tuple[str, ...] = ("won the most", "most wins", "most victories")

LEADERBOARD_PHRASES: tuple[str, ...] = (
    "who is winning",
    "who's winning",
    "top performers",
    "top sailors",
    "top skippers",
    "top racers",
    "best sailors",
    "best skippers",
    "best racers",
    "leaderboard",
)

STATUS_PHRASES: tuple[str, ...] = (
    "database",
    "stats",
    "statistics",
    "what do you know",
    "what's in",
)

LOOKUP_PREFIXES: tuple[str, ...] = (
    "search for",
    "look up",
    "lookup",
    "find",
    "search",
    "show me",
    "who is",
    "who's",
    "tell me about",
)


def _alternation(terms: tuple[str, ...]) -> str:
    # Longest first so "regattas" wins over "regatta".
    return "|".join(sorted(terms, key=lambda t: (-len(t), t)))


PERSON_PATTERN = _alternation(PERSON_TERMS)
RACE_PATTERN = _alternation(RACE_TERMS)
CLUB_PATTERN = _alternation(CLUB_TERMS)
LOOKUP_PATTERN = _alternation(LOOKUP_PREFIXES)


def has_any_phrase(text: str, phrases: tuple[str, ...]) -> bool:
    """Whether any phrase occurs in the normalized text on word boundaries."""

    padded = f" {text} "
    return any(f" {phrase} " in padded for phrase in phrases)


def mentions(text: str, terms: tuple[str, ...]) -> bool:
    """Whether any single-word term occurs as a token of the normalized text."""

    tokens = set(text.split())
    return any(term in tokens for term in terms)
