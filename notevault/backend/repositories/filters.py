"""
Note Filter Builder.

Turns request filter options into SQLAlchemy WHERE clauses scoped to a
single owner. The owner clause is always present; every other clause is
optional.

Enum filters are resolved once into an explicit outcome:

    Unconstrained       - missing, empty or "all": no clause
    Recognized(value)   - a known enum value: equality clause
    Unrecognized(raw)   - anything else: equality clause on the raw string,
                          which matches no stored note

Rejecting unknown values is left to the API boundary.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy import ColumnElement, select

from notevault.backend.models.note import Note, NoteCategory, NotePriority, NoteTag
from notevault.backend.schemas.note import NoteFilterParams

MATCH_ALL = "all"


@dataclass(frozen=True)
class Unconstrained:
    """No constraint on this field."""


@dataclass(frozen=True)
class Recognized:
    """A value from the field's allow-list."""

    value: Any


@dataclass(frozen=True)
class Unrecognized:
    """A value outside the allow-list, kept verbatim."""

    raw: str


FieldResolution = Unconstrained | Recognized | Unrecognized

UNCONSTRAINED = Unconstrained()


def resolve_enum_filter(raw: str | None, enum_cls: type[Enum]) -> FieldResolution:
    """Resolve a raw enum filter value against its allow-list."""
    if raw is None or raw == "" or raw == MATCH_ALL:
        return UNCONSTRAINED
    try:
        return Recognized(enum_cls(raw))
    except ValueError:
        return Unrecognized(raw)


def _equality_clause(column: Any, resolution: FieldResolution) -> ColumnElement[bool] | None:
    if isinstance(resolution, Recognized):
        return column == resolution.value.value
    if isinstance(resolution, Unrecognized):
        return column == resolution.raw
    return None


def tags_clause(tags: list[str]) -> ColumnElement[bool]:
    """Match notes carrying at least one of the given tags."""
    return Note.id.in_(
        select(NoteTag.note_id).where(NoteTag.tag.in_(tags))
    )


def build_note_predicate(
    owner_id: str,
    criteria: NoteFilterParams,
) -> list[ColumnElement[bool]]:
    """
    Build the WHERE clauses for an owner's note listing.

    Args:
        owner_id: Owner whose notes are queried (always constrained)
        criteria: Request filter options

    Returns:
        Clauses to be combined with AND
    """
    clauses: list[ColumnElement[bool]] = [Note.owner_id == owner_id]

    enum_filters = (
        (Note.category, resolve_enum_filter(criteria.category, NoteCategory)),
        (Note.priority, resolve_enum_filter(criteria.priority, NotePriority)),
    )
    for column, resolution in enum_filters:
        clause = _equality_clause(column, resolution)
        if clause is not None:
            clauses.append(clause)

    # Absence means "either", not False
    if criteria.archived is not None:
        clauses.append(Note.is_archived == criteria.archived)
    if criteria.pinned is not None:
        clauses.append(Note.is_pinned == criteria.pinned)

    if criteria.tags:
        clauses.append(tags_clause(criteria.tags))

    return clauses
