"""
Note Repository.

Data access layer for notes. Every query is scoped to one owner; the
filter, ordering and relevance expressions come from the sibling modules
in this package.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import ColumnElement, case, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.core.exceptions import NotFoundError
from notevault.backend.models.note import Note, NoteTag
from notevault.backend.repositories.base import BaseRepository


class NoteRepository(BaseRepository[Note]):
    """
    Repository for Note model.

    Inherits standard CRUD operations from BaseRepository
    and adds owner-scoped, filtered and aggregate queries.
    """

    model = Note

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def get_owned(self, note_id: str, owner_id: str) -> Note:
        """
        Get a note that belongs to the given owner.

        Raises:
            NotFoundError: If the note does not exist or has another owner
        """
        result = await self.session.execute(
            select(Note).where(Note.id == note_id, Note.owner_id == owner_id)
        )
        note = result.scalar_one_or_none()
        if note is None:
            raise NotFoundError("Note not found")
        return note

    async def count_matching(self, clauses: list[ColumnElement[bool]]) -> int:
        """Count notes matching all clauses, ignoring paging."""
        result = await self.session.execute(
            select(func.count()).select_from(Note).where(*clauses)
        )
        return result.scalar_one()

    async def fetch_page(
        self,
        clauses: list[ColumnElement[bool]],
        ordering: list[ColumnElement[Any]],
        limit: int,
        offset: int,
    ) -> list[Note]:
        """
        Fetch one ordered slice of the notes matching all clauses.

        Args:
            clauses: WHERE clauses combined with AND
            ordering: ORDER BY expressions, outermost first
            limit: Maximum number of notes
            offset: Number of matching notes to skip

        Returns:
            At most `limit` notes
        """
        result = await self.session.execute(
            select(Note)
            .where(*clauses)
            .order_by(*ordering)
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def delete_owned(self, note_ids: list[str], owner_id: str) -> int:
        """
        Delete the listed notes that belong to the owner.

        IDs that do not exist or belong to someone else are skipped.

        Returns:
            Number of notes deleted
        """
        owned_ids = select(Note.id).where(
            Note.id.in_(note_ids),
            Note.owner_id == owner_id,
        )
        await self.session.execute(
            delete(NoteTag)
            .where(NoteTag.note_id.in_(owned_ids))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            delete(Note)
            .where(Note.id.in_(note_ids), Note.owner_id == owner_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    async def overview_counts(self, owner_id: str) -> dict[str, int]:
        """Total, archived and pinned counts for one owner."""
        result = await self.session.execute(
            select(
                func.count().label("total"),
                func.coalesce(func.sum(case((Note.is_archived, 1), else_=0)), 0).label("archived"),
                func.coalesce(func.sum(case((Note.is_pinned, 1), else_=0)), 0).label("pinned"),
            ).where(Note.owner_id == owner_id)
        )
        row = result.one()
        return {
            "total": int(row.total),
            "archived": int(row.archived),
            "pinned": int(row.pinned),
        }

    async def count_by(self, owner_id: str, column: Any) -> dict[str, int]:
        """Group one owner's notes by a column; only values present are returned."""
        result = await self.session.execute(
            select(column, func.count())
            .where(Note.owner_id == owner_id)
            .group_by(column)
        )
        return {value: count for value, count in result.all()}

    async def count_created_since(self, owner_id: str, since: datetime) -> int:
        """Count one owner's notes created at or after `since`."""
        result = await self.session.execute(
            select(func.count())
            .select_from(Note)
            .where(Note.owner_id == owner_id, Note.created_at >= since)
        )
        return result.scalar_one()
