"""
Note Ordering.

Sort Resolver (list mode) and Search Ranker ordering (search mode).

List mode:
    is_pinned DESC          unless the caller filters pinned=false
    <sort field> <dir>      created_at DESC unless a recognized sort_by is given
    id ASC                  final tie-break

Search mode:
    relevance DESC          relevance outranks pinned status
    is_pinned DESC
    id ASC

The id tie-break keeps sequential page fetches free of duplicates and
gaps when several notes share the same sort values.
"""

from typing import Any

from sqlalchemy import ColumnElement

from notevault.backend.models.note import Note
from notevault.backend.repositories.filters import (
    UNCONSTRAINED,
    FieldResolution,
    Recognized,
    Unrecognized,
)
from notevault.backend.schemas.note import NoteFilterParams

SORTABLE_FIELDS: dict[str, Any] = {
    "title": Note.title,
    "created_at": Note.created_at,
    "updated_at": Note.updated_at,
    "priority": Note.priority,
}

# Clients written against the camelCase API keep working
_SORT_FIELD_ALIASES = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

ASCENDING = "asc"


def resolve_sort_field(raw: str | None) -> FieldResolution:
    """Resolve a requested sort field against the allow-list."""
    if not raw:
        return UNCONSTRAINED
    name = _SORT_FIELD_ALIASES.get(raw, raw)
    if name in SORTABLE_FIELDS:
        return Recognized(name)
    return Unrecognized(raw)


def resolve_list_ordering(criteria: NoteFilterParams) -> list[ColumnElement[Any]]:
    """
    Resolve the ORDER BY for a non-search listing.

    Unrecognized sort fields fall back to the default without error.
    """
    resolution = resolve_sort_field(criteria.sort_by)
    if isinstance(resolution, Recognized):
        column = SORTABLE_FIELDS[resolution.value]
        secondary = column.asc() if criteria.sort_order == ASCENDING else column.desc()
    else:
        secondary = Note.created_at.desc()

    ordering: list[ColumnElement[Any]] = []
    if criteria.pinned is not False:
        ordering.append(Note.is_pinned.desc())
    ordering.append(secondary)
    ordering.append(Note.id.asc())
    return ordering


def search_ordering(score: ColumnElement[int]) -> list[ColumnElement[Any]]:
    """ORDER BY for ranked search results."""
    return [score.desc(), Note.is_pinned.desc(), Note.id.asc()]
