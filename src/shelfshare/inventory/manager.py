"""Inventory manager for cataloguing and moving books."""

import logging
from typing import Optional, Union

from ..db.schemas import Book, BookCreate, BookWithMember, OperationResult
from ..errors import ConflictError, NotFoundError, ValidationError
from ..journal.manager import JournalManager
from ..members.manager import MemberManager
from ..store import LibraryStore, get_store, normalize_isbn, normalize_name

logger = logging.getLogger(__name__)

UNKNOWN_TITLE = "Unknown Title"


class InventoryManager:
    """Manages the book inventory.

    Adding a book at, or moving a book to, a member's location also records
    the book in that member's reading journal. That journal write is advisory:
    its failures are reported as warnings on the result and never undo or
    block the inventory change.
    """

    def __init__(
        self,
        store: Optional[LibraryStore] = None,
        members: Optional[MemberManager] = None,
        journal: Optional[JournalManager] = None,
    ):
        """Initialize inventory manager.

        Args:
            store: Backing store
            members: Member manager used to resolve locations
            journal: Journal manager used for journal sync
        """
        self.store = store or get_store()
        self.members = members or MemberManager(self.store)
        self.journal = journal or JournalManager(self.store)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_books(self) -> list[BookWithMember]:
        """List all books, each with the member its location resolves to."""
        by_name = {normalize_name(m.first_name): m for m in self.store.list_members()}
        return [
            BookWithMember(**book.model_dump(), member=by_name.get(normalize_name(book.location)))
            for book in self.store.list_books()
        ]

    def get_book(self, isbn: str) -> Book:
        """Get a book by ISBN.

        Raises:
            NotFoundError: If the ISBN is not catalogued
        """
        normalized = normalize_isbn(isbn)
        book = self.store.get_book(normalized)
        if book is None:
            raise NotFoundError(f"Book with ISBN {normalized} not found")
        return book

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_book(self, data: Union[BookCreate, dict]) -> OperationResult:
        """Catalogue a new book.

        Args:
            data: Book fields; the ISBN becomes the primary key

        Returns:
            Result whose value is the stored Book

        Raises:
            ValidationError: If the ISBN is empty
            ConflictError: If the ISBN is already catalogued
        """
        if isinstance(data, dict):
            data = BookCreate.model_validate(data)

        isbn = normalize_isbn(data.isbn)
        if not isbn:
            raise ValidationError("ISBN is required")

        if self.store.get_book(isbn) is not None:
            raise ConflictError(f"Book with ISBN {isbn} already exists in the library")

        book = Book(**data.model_dump(exclude={"isbn"}), isbn=isbn, requested_by="")
        self.store.insert_book(book)
        logger.info("Added %s (%s) at %s", book.title, isbn, book.location or "no location")

        result = OperationResult(value=book)
        self._record_in_journal(result, isbn, book.title, book.location, book.notes)
        return result

    def move_book(self, isbn: str, location: str) -> OperationResult:
        """Move a book to a new holder.

        Clears any pending request on the book.

        Raises:
            ValidationError: If the ISBN or location is empty
            NotFoundError: If the ISBN is not catalogued
        """
        normalized = normalize_isbn(isbn)
        location = (location or "").strip()
        if not normalized or not location:
            raise ValidationError("Missing required fields: isbn, newLocation")

        book = self.get_book(normalized)
        self.store.update_location(normalized, location)
        logger.info("Moved %s to %s", normalized, location)

        book = book.model_copy(update={"location": location, "requested_by": ""})
        result = OperationResult(value=book)
        self._record_in_journal(result, normalized, book.title or UNKNOWN_TITLE, location)
        return result

    def request_book(self, isbn: str, requested_by: str) -> OperationResult:
        """Record who wants a book next. Replaces any earlier request.

        Raises:
            ValidationError: If the ISBN or requester is empty
            NotFoundError: If the ISBN is not catalogued
        """
        normalized = normalize_isbn(isbn)
        requested_by = (requested_by or "").strip()
        if not normalized or not requested_by:
            raise ValidationError("ISBN and requestedBy are required")

        self.store.set_requested_by(normalized, requested_by)
        logger.info("%s requested %s", requested_by, normalized)
        return OperationResult(value=requested_by)

    def _record_in_journal(
        self,
        result: OperationResult,
        isbn: str,
        title: str,
        location: str,
        notes: str = "",
    ) -> None:
        """Add the book to the journal of the member at ``location``, if any."""
        try:
            card_number = self.members.find_card_number(location)
            if card_number is None:
                logger.debug("Location %r is not a member; no journal entry", location)
                return
            entry = self.journal.add_entry(card_number, isbn, title, notes)
            result.warnings.extend(entry.warnings)
        except Exception as e:
            # The inventory write has already landed; never fail the caller here
            logger.exception("Error adding %s to reading journal", isbn)
            result.warn(f"Reading journal not updated: {e}")
