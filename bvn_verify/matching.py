"""
Name comparison used by the fixture backend.

Matching is exact on the normalized form only:
- leading/trailing whitespace removed
- internal whitespace runs collapsed to a single space
- upper-cased

Punctuation, initials and abbreviations are compared verbatim, so
"Mary-Jane" and "Mary Jane" do not match.
"""

from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")


def normalize_name(value: str) -> str:
    """
    Normalize a person's name for comparison.

    Examples:
        "  john   doe " → "JOHN DOE"
        "Funke\tAdebayo" → "FUNKE ADEBAYO"

    The function is idempotent: normalizing an already normalized name
    returns it unchanged.
    """
    if not value:
        return ""
    return _WHITESPACE.sub(" ", value.strip()).upper()


def names_match(claimed: str, registered: str) -> bool:
    return normalize_name(claimed) == normalize_name(registered)
