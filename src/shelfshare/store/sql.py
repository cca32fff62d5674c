"""SQLAlchemy-backed store.

Rows are addressed by primary key (ISBN, card number, or the composite
(card number, ISBN) for journal entries), so updates cannot land on the
wrong row when the table changes between a read and a write.
"""

import logging
from typing import Optional

from sqlalchemy import func, select

from ..db.schemas import Book, JournalEntry, Member
from ..db.sqlite import Database, get_db
from ..errors import NotFoundError
from ..inventory.models import InventoryBook
from ..journal.models import JournalRecord
from ..members.models import MemberRecord
from .base import LibraryStore, normalize_isbn

logger = logging.getLogger(__name__)

JOURNAL_FIELDS = {"notes", "finished", "order"}


class SqlStore(LibraryStore):
    """Library store over a local SQLite database."""

    name = "sql"

    def __init__(self, db: Optional[Database] = None):
        """Initialize store.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    # ========================================================================
    # Inventory
    # ========================================================================

    def list_books(self) -> list[Book]:
        with self.db.get_session() as session:
            stmt = select(InventoryBook).where(InventoryBook.isbn != "")
            return [row.to_schema() for row in session.execute(stmt).scalars()]

    def get_book(self, isbn: str) -> Optional[Book]:
        with self.db.get_session() as session:
            row = session.get(InventoryBook, normalize_isbn(isbn))
            return row.to_schema() if row else None

    def insert_book(self, book: Book) -> None:
        with self.db.get_session() as session:
            session.add(
                InventoryBook(
                    isbn=normalize_isbn(book.isbn),
                    title=book.title,
                    authors=book.authors,
                    cover=book.cover,
                    reading_level=book.reading_level,
                    location=book.location,
                    publishers=book.publishers,
                    pages=book.pages,
                    genres=book.genres,
                    language=book.language,
                    notes=book.notes,
                    requested_by=book.requested_by,
                    description=book.description,
                )
            )

    def _get_book_row(self, session, isbn: str) -> InventoryBook:
        normalized = normalize_isbn(isbn)
        row = session.get(InventoryBook, normalized)
        if row is None:
            raise NotFoundError(f"Book with ISBN {normalized} not found")
        return row

    def update_location(self, isbn: str, location: str) -> None:
        with self.db.get_session() as session:
            row = self._get_book_row(session, isbn)
            row.location = location
            row.requested_by = ""

    def set_requested_by(self, isbn: str, requested_by: str) -> None:
        with self.db.get_session() as session:
            row = self._get_book_row(session, isbn)
            row.requested_by = requested_by

    # ========================================================================
    # Members
    # ========================================================================

    def list_members(self) -> list[Member]:
        with self.db.get_session() as session:
            stmt = select(MemberRecord).order_by(MemberRecord.library_card_number)
            return [row.to_schema() for row in session.execute(stmt).scalars()]

    def insert_member(self, member: Member) -> None:
        with self.db.get_session() as session:
            session.add(
                MemberRecord(
                    library_card_number=member.library_card_number,
                    first_name=member.first_name,
                    last_name=member.last_name,
                    last_name_initial=member.last_name_initial,
                    city=member.city,
                    neighborhood=member.neighborhood,
                )
            )

    def location_choices(self) -> list[str]:
        # The constraint is always derived from the members table here
        return [member.first_name for member in self.list_members()]

    def refresh_location_choices(self) -> None:
        logger.debug("Location choices are derived from the members table")

    # ========================================================================
    # Journals
    # ========================================================================

    def _member_exists(self, session, card_number: int) -> bool:
        return session.get(MemberRecord, card_number) is not None

    def ensure_journal(self, card_number: int) -> None:
        # A member's journal exists as soon as the member does
        logger.debug("Journal for card %s needs no provisioning", card_number)

    def list_journal(self, card_number: int) -> Optional[list[JournalEntry]]:
        with self.db.get_session() as session:
            if not self._member_exists(session, card_number):
                return None
            stmt = (
                select(JournalRecord)
                .where(JournalRecord.card_number == card_number)
                .order_by(JournalRecord.position)
            )
            return [row.to_schema() for row in session.execute(stmt).scalars()]

    def insert_journal_entry(self, card_number: int, entry: JournalEntry) -> None:
        with self.db.get_session() as session:
            if not self._member_exists(session, card_number):
                raise NotFoundError(f"No journal for card {card_number}")
            position = session.execute(
                select(func.count())
                .select_from(JournalRecord)
                .where(JournalRecord.card_number == card_number)
            ).scalar_one()
            session.add(
                JournalRecord(
                    card_number=card_number,
                    isbn=normalize_isbn(entry.isbn),
                    title=entry.title,
                    date_added=entry.date_added,
                    notes=entry.notes,
                    finished=entry.finished,
                    order=entry.order,
                    position=position,
                )
            )

    def update_journal_entry(self, card_number: int, isbn: str, **changes) -> bool:
        unknown = set(changes) - JOURNAL_FIELDS
        if unknown:
            raise ValueError(f"Journal fields are not editable: {', '.join(sorted(unknown))}")

        with self.db.get_session() as session:
            row = session.get(JournalRecord, (card_number, normalize_isbn(isbn)))
            if row is None:
                return False
            for field, value in changes.items():
                setattr(row, field, value)
            return True

    def update_journal_order(self, card_number: int, orders: dict[str, int]) -> list[str]:
        matched = []
        with self.db.get_session() as session:
            stmt = select(JournalRecord).where(JournalRecord.card_number == card_number)
            for row in session.execute(stmt).scalars():
                if row.isbn in orders:
                    row.order = orders[row.isbn]
                    matched.append(row.isbn)
        return matched
