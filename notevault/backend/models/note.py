"""
Note Model.

Database models for owner-scoped notes and their ordered tags.
"""

from enum import Enum

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.ext.associationproxy import AssociationProxy, association_proxy
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from notevault.backend.core.utils import word_index
from notevault.backend.models.base import Base, TimestampMixin, UUIDMixin

TITLE_MAX_LENGTH = 100
CONTENT_MAX_LENGTH = 5000
TAG_MAX_LENGTH = 20


class NoteCategory(str, Enum):
    """Categories a note can be filed under."""

    PERSONAL = "personal"
    WORK = "work"
    STUDY = "study"
    IDEAS = "ideas"
    OTHER = "other"


class NotePriority(str, Enum):
    """Note priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class NoteTag(Base):
    """A single tag on a note. `position` keeps the owner's insertion order."""

    __tablename__ = "note_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    note_id: Mapped[str] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(nullable=False)
    tag: Mapped[str] = mapped_column(
        String(TAG_MAX_LENGTH),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<NoteTag(note_id={self.note_id}, tag={self.tag!r})>"


class Note(UUIDMixin, TimestampMixin, Base):
    """
    Note database model.

    Every note belongs to exactly one owner. `owner_id` and `id` are set
    at creation and never reassigned. Tags live in `note_tags` and are
    exposed as a plain ordered list of strings through `tags`.

    `title_words` and `content_words` hold the lower-cased words of title
    and content (see word_index) and are rewritten whenever either field is
    assigned. Search matches against them.
    """

    __tablename__ = "notes"
    __table_args__ = (
        Index("ix_notes_owner_created", "owner_id", "created_at"),
        Index("ix_notes_owner_category", "owner_id", "category"),
        Index("ix_notes_owner_pinned_created", "owner_id", "is_pinned", "created_at"),
    )

    owner_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(TITLE_MAX_LENGTH),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    category: Mapped[str] = mapped_column(
        String(20),
        default=NoteCategory.OTHER.value,
        nullable=False,
    )
    priority: Mapped[str] = mapped_column(
        String(10),
        default=NotePriority.MEDIUM.value,
        nullable=False,
    )
    is_archived: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
    )
    is_pinned: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
    )
    title_words: Mapped[str] = mapped_column(
        Text,
        default=" ",
        nullable=False,
    )
    content_words: Mapped[str] = mapped_column(
        Text,
        default=" ",
        nullable=False,
    )

    tag_links: Mapped[list[NoteTag]] = relationship(
        order_by=NoteTag.position,
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    tags: AssociationProxy[list[str]] = association_proxy(
        "tag_links",
        "tag",
        creator=lambda tag: NoteTag(tag=tag),
    )

    @validates("title", "content")
    def _index_words(self, key: str, value: str) -> str:
        setattr(self, f"{key}_words", word_index(value))
        return value

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, owner_id={self.owner_id}, title={self.title!r})>"
