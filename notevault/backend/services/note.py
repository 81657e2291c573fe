"""
Note Service.

Business logic layer for notes. Every operation is scoped to one owner.

Queries:
    list_notes   - Filter Builder + Sort Resolver + Page Cursor
    search_notes - Filter Builder + Search Ranker + Page Cursor
    get_stats    - Owner-wide aggregate counts, unpaginated

Writes commit before returning. Auditable operations hand an activity
record to the ActivityRecorder only after that commit succeeds; the
recorder drops duplicates.
"""

from datetime import timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.core.activity import ActivityAction, ActivityRecorder
from notevault.backend.core.exceptions import ValidationError
from notevault.backend.core.pagination import PagedResult, PageParams, paginate_query
from notevault.backend.core.utils import utc_now
from notevault.backend.models.note import Note
from notevault.backend.repositories.filters import build_note_predicate
from notevault.backend.repositories.note import NoteRepository
from notevault.backend.repositories.ordering import resolve_list_ordering, search_ordering
from notevault.backend.repositories.search import (
    relevance_score,
    text_match_clause,
    tokenize_query,
)
from notevault.backend.schemas.note import (
    NoteCreate,
    NoteFilterParams,
    NoteStatsOverview,
    NoteStatsResponse,
    NoteUpdate,
)
from notevault.backend.services.base import BaseService

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 50
RECENT_ACTIVITY_DAYS = 7


def _note_details(note: Note) -> dict[str, Any]:
    return {
        "note_id": note.id,
        "note_title": note.title,
        "category": note.category,
    }


class NoteService(BaseService):
    """
    Service for note business logic.

    Args:
        session: Database session
        activity: Audit recorder; when None no activity is recorded
        default_limit: Page size used when the caller gives none
        max_limit: Upper bound on page size
        recent_activity_days: Length of the sliding window for recent activity
    """

    def __init__(
        self,
        session: AsyncSession,
        activity: ActivityRecorder | None = None,
        default_limit: int = DEFAULT_PAGE_LIMIT,
        max_limit: int = MAX_PAGE_LIMIT,
        recent_activity_days: int = RECENT_ACTIVITY_DAYS,
    ) -> None:
        super().__init__(session)
        self.repo = NoteRepository(session)
        self._activity = activity
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.recent_activity_days = recent_activity_days

    def _record(self, action: str, owner_id: str, details: dict[str, Any]) -> None:
        if self._activity is not None:
            self._activity.record(action, owner_id, details)

    def _page_params(self, criteria: NoteFilterParams) -> PageParams:
        return PageParams.from_request(
            criteria.page,
            criteria.limit,
            default_limit=self.default_limit,
            max_limit=self.max_limit,
        )

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    async def create_note(self, owner_id: str, data: NoteCreate) -> Note:
        """
        Create a new note for the owner.

        Args:
            owner_id: Owner of the new note
            data: Note creation data

        Returns:
            Created note
        """
        self._log_operation("Creating note", owner_id=owner_id, title=data.title)

        note = await self._execute_db_operation(
            "create_note",
            self.repo.create(
                owner_id=owner_id,
                title=data.title,
                content=data.content,
                category=data.category.value,
                priority=data.priority.value,
                tags=data.tags,
            ),
        )

        await self._commit("create_note")
        self._log_debug("Note created", note_id=note.id)
        self._record(ActivityAction.CREATE_NOTE, owner_id, _note_details(note))
        return note

    async def get_note(self, owner_id: str, note_id: str) -> Note:
        """
        Get one of the owner's notes.

        Raises:
            NotFoundError: If the note is absent or owned by someone else
        """
        note = await self._execute_db_operation(
            "get_note",
            self.repo.get_owned(note_id, owner_id),
        )
        self._record(ActivityAction.VIEW_NOTE, owner_id, _note_details(note))
        return note

    async def update_note(self, owner_id: str, note_id: str, data: NoteUpdate) -> Note:
        """
        Update an existing note.

        Args:
            owner_id: Owner of the note
            note_id: Note ID to update
            data: Allow-listed update fields (only supplied fields change)

        Returns:
            Updated note

        Raises:
            NotFoundError: If the note is absent or owned by someone else
        """
        changes = data.changes()
        note = await self._execute_db_operation(
            "get_note",
            self.repo.get_owned(note_id, owner_id),
        )

        if not changes:
            return note

        self._log_operation(
            "Updating note",
            note_id=note_id,
            fields=sorted(changes.keys()),
        )

        note = await self._execute_db_operation(
            "update_note",
            self.repo.apply_changes(note, **changes),
        )
        await self._commit("update_note")
        self._record(ActivityAction.UPDATE_NOTE, owner_id, _note_details(note))
        return note

    async def delete_note(self, owner_id: str, note_id: str) -> None:
        """
        Delete one of the owner's notes.

        Raises:
            NotFoundError: If the note is absent or owned by someone else
        """
        self._log_operation("Deleting note", note_id=note_id)

        note = await self._execute_db_operation(
            "get_note",
            self.repo.get_owned(note_id, owner_id),
        )
        details = _note_details(note)
        await self._execute_db_operation("delete_note", self.repo.remove(note))
        await self._commit("delete_note")
        self._record(ActivityAction.DELETE_NOTE, owner_id, details)

    async def toggle_archive(self, owner_id: str, note_id: str) -> Note:
        """Flip the archived flag of one of the owner's notes."""
        note = await self._execute_db_operation(
            "get_note",
            self.repo.get_owned(note_id, owner_id),
        )
        self._log_operation("Toggling archive", note_id=note_id, archived=not note.is_archived)

        note = await self._execute_db_operation(
            "toggle_archive",
            self.repo.apply_changes(note, is_archived=not note.is_archived),
        )
        await self._commit("toggle_archive")
        action = ActivityAction.ARCHIVE_NOTE if note.is_archived else ActivityAction.UNARCHIVE_NOTE
        self._record(action, owner_id, _note_details(note))
        return note

    async def toggle_pin(self, owner_id: str, note_id: str) -> Note:
        """Flip the pinned flag of one of the owner's notes."""
        note = await self._execute_db_operation(
            "get_note",
            self.repo.get_owned(note_id, owner_id),
        )
        self._log_operation("Toggling pin", note_id=note_id, pinned=not note.is_pinned)

        note = await self._execute_db_operation(
            "toggle_pin",
            self.repo.apply_changes(note, is_pinned=not note.is_pinned),
        )
        await self._commit("toggle_pin")
        action = ActivityAction.PIN_NOTE if note.is_pinned else ActivityAction.UNPIN_NOTE
        self._record(action, owner_id, _note_details(note))
        return note

    async def bulk_delete(self, owner_id: str, note_ids: list[str]) -> int:
        """
        Delete several of the owner's notes.

        IDs that are unknown or owned by someone else are skipped silently.

        Returns:
            Number of notes deleted

        Raises:
            ValidationError: If no IDs were given
        """
        if not note_ids:
            raise ValidationError(
                "Please provide an array of note IDs",
                details={"note_ids": "At least one ID is required"},
            )

        self._log_operation("Bulk deleting notes", requested=len(note_ids))
        deleted_count = await self._execute_db_operation(
            "bulk_delete",
            self.repo.delete_owned(note_ids, owner_id),
        )
        await self._commit("bulk_delete")
        self._record(
            ActivityAction.BULK_DELETE_NOTES,
            owner_id,
            {"deleted_count": deleted_count},
        )
        return deleted_count

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def list_notes(self, owner_id: str, criteria: NoteFilterParams) -> PagedResult[Note]:
        """
        List the owner's notes with filters, sorting and pagination.

        Pinned notes come first unless the caller filters pinned=false.
        Unknown sort fields and enum filter values never raise.
        """
        params = self._page_params(criteria)
        clauses = build_note_predicate(owner_id, criteria)
        ordering = resolve_list_ordering(criteria)

        self._log_debug(
            "Listing notes",
            owner_id=owner_id,
            page=params.page,
            limit=params.limit,
        )
        return await self._execute_db_operation(
            "list_notes",
            paginate_query(
                query_func=lambda limit, offset: self.repo.fetch_page(
                    clauses, ordering, limit, offset
                ),
                count_func=lambda: self.repo.count_matching(clauses),
                params=params,
            ),
        )

    async def search_notes(self, owner_id: str, criteria: NoteFilterParams) -> PagedResult[Note]:
        """
        Full-text search over the owner's notes.

        Results are ordered by relevance, then pinned status. A blank
        query behaves like list_notes with default ordering.
        """
        query = criteria.search_text
        if not query:
            return await self.list_notes(
                owner_id,
                criteria.model_copy(update={"sort_by": None, "sort_order": None}),
            )

        params = self._page_params(criteria)
        score = relevance_score(tokenize_query(query))
        clauses = build_note_predicate(owner_id, criteria) + [text_match_clause(score)]
        ordering = search_ordering(score)

        self._log_debug("Searching notes", owner_id=owner_id, query=query)
        result = await self._execute_db_operation(
            "search_notes",
            paginate_query(
                query_func=lambda limit, offset: self.repo.fetch_page(
                    clauses, ordering, limit, offset
                ),
                count_func=lambda: self.repo.count_matching(clauses),
                params=params,
            ),
        )

        self._record(
            ActivityAction.SEARCH_NOTES,
            owner_id,
            {"search_query": query, "results_count": len(result.items)},
        )
        return result

    async def get_stats(self, owner_id: str) -> NoteStatsResponse:
        """
        Aggregate statistics over all of the owner's notes.

        The four counts run in the same session transaction. Under
        concurrent writes they can drift by the in-flight writes only.
        """
        since = utc_now() - timedelta(days=self.recent_activity_days)

        overview = await self._execute_db_operation(
            "stats_overview", self.repo.overview_counts(owner_id)
        )
        categories = await self._execute_db_operation(
            "stats_categories", self.repo.count_by(owner_id, Note.category)
        )
        priorities = await self._execute_db_operation(
            "stats_priorities", self.repo.count_by(owner_id, Note.priority)
        )
        recent = await self._execute_db_operation(
            "stats_recent", self.repo.count_created_since(owner_id, since)
        )

        return NoteStatsResponse(
            overview=NoteStatsOverview(**overview),
            categories=categories,
            priorities=priorities,
            recent_activity=recent,
        )
