"""Text normalization for deterministic keyword classification."""

from __future__ import annotations

import re

_NON_WORD_RE = re.compile(r"[^0-9a-z_\-'\s]+", flags=re.IGNORECASE)
_MULTISPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Normalize user text for keyword matching.

    Normalization is intentionally conservative:
        - Lowercase.
        - Fold curly apostrophes and unicode dashes to ASCII.
        - Replace other punctuation with spaces.
        - Collapse whitespace.

    The goal is deterministic tokenization, not stemming.
    """

    value = (text or "").strip().lower()

    value = value.replace("’", "'").replace("‘", "'")
    value = value.replace("—", "-").replace("–", "-")

    # Quotes are separators, but keep the quoted contents (names, clubs).
    value = value.replace("`", " ").replace('"', " ")

    value = _NON_WORD_RE.sub(" ", value)
    value = _MULTISPACE_RE.sub(" ", value).strip()
    return value
