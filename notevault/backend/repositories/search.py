"""
Full-Text Relevance Scoring.

The store ranks notes for a free-text query with a weighted count of term
hits, computed in SQL so that filtering, counting, ordering and slicing all
happen in one query:

    title   has word   -> 3
    a tag   equals term -> 2
    content has word   -> 1

Terms and indexed text are split into words the same way (word_terms), so
matching is case-insensitive and whole-word: "cat" does not match
"concatenate". There is no stemming. A note matches the query when its
score is above zero, i.e. any term hits any indexed field.
"""

import operator
from functools import reduce

from sqlalchemy import ColumnElement, case, exists, literal

from notevault.backend.core.utils import word_terms
from notevault.backend.models.note import Note, NoteTag

TITLE_WEIGHT = 3
TAG_WEIGHT = 2
CONTENT_WEIGHT = 1

_LIKE_ESCAPE = "\\"


def tokenize_query(query: str) -> list[str]:
    """Split a query into unique lower-cased word terms, keeping first-seen order."""
    return word_terms(query)


def _word_pattern(term: str) -> str:
    # Words may contain "_", a LIKE wildcard
    escaped = (
        term.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", f"{_LIKE_ESCAPE}%")
        .replace("_", f"{_LIKE_ESCAPE}_")
    )
    return f"% {escaped} %"


def _term_score(term: str) -> ColumnElement[int]:
    pattern = _word_pattern(term)
    title_hit = case(
        (Note.title_words.like(pattern, escape=_LIKE_ESCAPE), TITLE_WEIGHT),
        else_=0,
    )
    tag_hit = case(
        (exists().where(NoteTag.note_id == Note.id, NoteTag.tag == term), TAG_WEIGHT),
        else_=0,
    )
    content_hit = case(
        (Note.content_words.like(pattern, escape=_LIKE_ESCAPE), CONTENT_WEIGHT),
        else_=0,
    )
    return title_hit + tag_hit + content_hit


def relevance_score(terms: list[str]) -> ColumnElement[int]:
    """
    Build the relevance expression for the given terms.

    An empty term list scores every note 0, so nothing matches.
    """
    if not terms:
        return literal(0)
    return reduce(operator.add, (_term_score(term) for term in terms))


def text_match_clause(score: ColumnElement[int]) -> ColumnElement[bool]:
    """Require at least one term hit."""
    return score > 0
