"""
Note Schemas.

Pydantic schemas for note API request/response validation.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from notevault.backend.core.utils import normalize_tags
from notevault.backend.models.note import (
    CONTENT_MAX_LENGTH,
    TAG_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    NoteCategory,
    NotePriority,
)


def _validate_tags(tags: list[str]) -> list[str]:
    """Normalize tags and enforce the per-tag length limit."""
    cleaned = normalize_tags(tags)
    too_long = [tag for tag in cleaned if len(tag) > TAG_MAX_LENGTH]
    if too_long:
        raise ValueError(
            f"Each tag must be between 1 and {TAG_MAX_LENGTH} characters"
        )
    return cleaned


class NoteCreate(BaseModel):
    """Schema for creating a new note."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: str = Field(
        ...,
        min_length=1,
        max_length=TITLE_MAX_LENGTH,
        description="Note title",
        examples=["Weekly planning"],
    )
    content: str = Field(
        ...,
        min_length=1,
        max_length=CONTENT_MAX_LENGTH,
        description="Note content",
        examples=["Agenda for the Monday meeting."],
    )
    category: NoteCategory = Field(
        default=NoteCategory.OTHER,
        description="Note category",
    )
    priority: NotePriority = Field(
        default=NotePriority.MEDIUM,
        description="Note priority",
    )
    tags: list[str] = Field(
        default_factory=list,
        description="Tags, trimmed and lower-cased on save",
        examples=[["meeting", "planning"]],
    )

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: list[str]) -> list[str]:
        return _validate_tags(value)


class NoteUpdate(BaseModel):
    """
    Schema for updating an existing note.

    Only the fields listed here can be changed. Unknown fields are
    rejected, and a field that is sent must carry a value.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: str | None = Field(
        default=None,
        min_length=1,
        max_length=TITLE_MAX_LENGTH,
        description="Note title",
    )
    content: str | None = Field(
        default=None,
        min_length=1,
        max_length=CONTENT_MAX_LENGTH,
        description="Note content",
    )
    category: NoteCategory | None = Field(
        default=None,
        description="Note category",
    )
    priority: NotePriority | None = Field(
        default=None,
        description="Note priority",
    )
    tags: list[str] | None = Field(
        default=None,
        description="Replacement tag list; an empty list clears all tags",
    )

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return _validate_tags(value)

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "NoteUpdate":
        nulls = sorted(name for name in self.model_fields_set if getattr(self, name) is None)
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return self

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller supplied, with enums as plain values."""
        return self.model_dump(exclude_unset=True, mode="json")


class NoteResponse(BaseModel):
    """Schema for note in API responses."""

    id: str = Field(description="Note unique identifier")
    title: str = Field(description="Note title")
    content: str = Field(description="Note content")
    category: str = Field(description="Note category")
    priority: str = Field(description="Note priority")
    tags: list[str] = Field(description="Tags in insertion order")
    is_archived: bool = Field(description="Whether the note is archived")
    is_pinned: bool = Field(description="Whether the note is pinned")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)

    @field_validator("tags", mode="before")
    @classmethod
    def tags_as_list(cls, value: Any) -> list[str]:
        # ORM instances expose tags through an association proxy collection
        return list(value or [])


class NoteFilterParams(BaseModel):
    """
    Filter, sort, search and paging options for note listings.

    Values are kept as the caller sent them; the repository layer decides
    which ones constrain the query.
    """

    category: str | None = None
    priority: str | None = None
    archived: bool | None = None
    pinned: bool | None = None
    tags: list[str] = Field(default_factory=list)
    q: str | None = None
    sort_by: str | None = None
    sort_order: str | None = None
    page: int | None = None
    limit: int | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        return normalize_tags(list(value))

    @property
    def search_text(self) -> str:
        """The free-text query with surrounding whitespace removed."""
        return (self.q or "").strip()


class BulkDeleteRequest(BaseModel):
    """Schema for deleting several notes at once."""

    model_config = ConfigDict(extra="forbid")

    note_ids: list[str] = Field(description="IDs of notes to delete")


class BulkDeleteResponse(BaseModel):
    """Result of a bulk delete."""

    deleted_count: int


class NoteStatsOverview(BaseModel):
    """Headline counts across all of an owner's notes."""

    total: int = 0
    archived: int = 0
    pinned: int = 0


class NoteStatsResponse(BaseModel):
    """Aggregate statistics for one owner."""

    overview: NoteStatsOverview
    categories: dict[str, int]
    priorities: dict[str, int]
    recent_activity: int
