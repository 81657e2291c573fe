"""
Core Utilities.

Shared utility functions used across the backend.
All modules should import utilities from this module.
"""

import re
from datetime import datetime, timezone

_WORD_RE = re.compile(r"\w+")


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-naive datetime.

    All datetime values in the application should be timezone-naive
    and assumed to be UTC. This ensures consistent behavior across
    the codebase and simplifies database storage.

    Returns:
        Current UTC time with tzinfo stripped
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_tags(tags: list[str] | None) -> list[str]:
    """
    Trim and lower-case tags, dropping empty entries.

    Order and repeats are preserved.
    """
    if not tags:
        return []
    return [tag.strip().lower() for tag in tags if tag and tag.strip()]


def word_terms(text: str | None) -> list[str]:
    """
    Split text into lower-cased words, unique, in first-seen order.

    A word is a run of letters, digits or underscores; everything else
    separates words.
    """
    terms: list[str] = []
    for word in _WORD_RE.findall((text or "").lower()):
        if word not in terms:
            terms.append(word)
    return terms


def word_index(text: str | None) -> str:
    """
    Space-delimited word list with a leading and trailing space.

    " team meeting notes " lets a store match whole words with
    LIKE '% word %' on any backend.
    """
    return f" {' '.join(word_terms(text))} "
