"""SQLAlchemy model for reading journal entries."""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base
from ..db.schemas import JournalEntry


class JournalRecord(Base):
    """One book in one member's journal.

    All members share this table; ``position`` preserves insertion order.
    """

    __tablename__ = "journal_entries"

    card_number: Mapped[int] = mapped_column(
        Integer, ForeignKey("members.library_card_number"), primary_key=True
    )
    isbn: Mapped[str] = mapped_column(String(32), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), default="")
    date_added: Mapped[str] = mapped_column(String(10), default="")
    notes: Mapped[str] = mapped_column(Text, default="")
    finished: Mapped[bool] = mapped_column(Boolean, default=False)
    order: Mapped[Optional[int]] = mapped_column("sort_order", Integer, nullable=True)
    position: Mapped[int] = mapped_column(Integer, default=0)

    def __repr__(self) -> str:
        return f"<JournalRecord(card={self.card_number}, isbn={self.isbn})>"

    def to_schema(self) -> JournalEntry:
        return JournalEntry(
            isbn=self.isbn,
            title=self.title,
            date_added=self.date_added,
            notes=self.notes,
            finished=self.finished,
            order=self.order,
        )
