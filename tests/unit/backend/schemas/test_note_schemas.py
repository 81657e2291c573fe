"""
Unit Tests for Note Schemas.

Tests request validation, tag normalization and the update allow-list.
"""

import pytest
from pydantic import ValidationError

from notevault.backend.models.note import NoteCategory, NotePriority
from notevault.backend.schemas.note import NoteCreate, NoteFilterParams, NoteUpdate


class TestNoteCreate:
    """Tests for note creation payloads."""

    def test_defaults(self):
        data = NoteCreate(title="Plan", content="Details")

        assert data.category == NoteCategory.OTHER
        assert data.priority == NotePriority.MEDIUM
        assert data.tags == []

    def test_strips_title_and_content(self):
        data = NoteCreate(title="  Plan  ", content="  Details ")

        assert data.title == "Plan"
        assert data.content == "Details"

    def test_whitespace_title_rejected(self):
        with pytest.raises(ValidationError):
            NoteCreate(title="   ", content="Details")

    def test_title_length_limit(self):
        NoteCreate(title="x" * 100, content="c")
        with pytest.raises(ValidationError):
            NoteCreate(title="x" * 101, content="c")

    def test_content_length_limit(self):
        NoteCreate(title="t", content="x" * 5000)
        with pytest.raises(ValidationError):
            NoteCreate(title="t", content="x" * 5001)

    def test_tags_are_normalized(self):
        """Should trim, lower-case and drop empty tags, keeping order and repeats."""
        data = NoteCreate(title="t", content="c", tags=[" Work ", "", "HOME", "work"])

        assert data.tags == ["work", "home", "work"]

    def test_tag_length_limit(self):
        with pytest.raises(ValidationError):
            NoteCreate(title="t", content="c", tags=["x" * 21])

    def test_unknown_category_rejected(self):
        with pytest.raises(ValidationError):
            NoteCreate(title="t", content="c", category="groceries")

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            NoteCreate(title="t", content="c", owner_id="mallory")


class TestNoteUpdate:
    """Tests for the update allow-list."""

    def test_changes_only_supplied_fields(self):
        data = NoteUpdate(title="New title", priority="high")

        assert data.changes() == {"title": "New title", "priority": "high"}

    def test_empty_update_has_no_changes(self):
        assert NoteUpdate().changes() == {}

    def test_empty_tag_list_clears_tags(self):
        assert NoteUpdate(tags=[]).changes() == {"tags": []}

    def test_explicit_null_rejected(self):
        with pytest.raises(ValidationError, match="cannot be null"):
            NoteUpdate(title=None)

    @pytest.mark.parametrize("field", ["owner_id", "id", "is_pinned", "created_at"])
    def test_non_allow_listed_field_rejected(self, field):
        with pytest.raises(ValidationError):
            NoteUpdate(**{field: "x"})


class TestNoteFilterParams:
    """Tests for listing options."""

    def test_comma_separated_tags(self):
        params = NoteFilterParams(tags="Work, home ,,")

        assert params.tags == ["work", "home"]

    def test_missing_tags(self):
        assert NoteFilterParams(tags=None).tags == []

    def test_search_text_is_trimmed(self):
        assert NoteFilterParams(q="  meeting ").search_text == "meeting"
        assert NoteFilterParams().search_text == ""

    def test_values_kept_verbatim(self):
        """Should not reject unknown enum or sort values."""
        params = NoteFilterParams(category="groceries", sort_by="bogus", sort_order="up")

        assert params.category == "groceries"
        assert params.sort_by == "bogus"
