"""
Base Repository.

Write-side helpers shared by repositories. Reads are owner-scoped and live
on the concrete repository.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.core.utils import utc_now
from notevault.backend.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Flush-based create, update and delete for one model.

        class NoteRepository(BaseRepository[Note]):
            model = Note

    Nothing here commits; the request session does that once the handler
    returns.
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, **values: Any) -> ModelType:
        instance = self.model(**values)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def apply_changes(self, instance: ModelType, **changes: Any) -> ModelType:
        """
        Set attributes on a loaded row and flush.

        updated_at is bumped even when only related rows (tags) change.
        """
        for key, value in changes.items():
            setattr(instance, key, value)
        if hasattr(instance, "updated_at"):
            instance.updated_at = utc_now()

        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def remove(self, instance: ModelType) -> None:
        await self.session.delete(instance)
        await self.session.flush()
