"""Storage contract shared by the spreadsheet and SQL backends.

The domain managers only talk to a ``LibraryStore``. Each method is a single
best-effort call against the backing store: there is no transaction spanning
two calls, so a read followed by a write can observe a table that changed in
between.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..db.schemas import Book, JournalEntry, Member


def normalize_isbn(isbn) -> str:
    """Stringify and trim an ISBN for comparison."""
    if isbn is None:
        return ""
    return str(isbn).strip()


def normalize_name(name) -> str:
    """Case-fold a member name for comparison."""
    if name is None:
        return ""
    return str(name).strip().lower()


class LibraryStore(ABC):
    """Backing store for inventory, members and reading journals."""

    name: str = "base"

    # ------------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------------

    @abstractmethod
    def list_books(self) -> list[Book]:
        """Return every inventory book, skipping rows with no ISBN."""

    def get_book(self, isbn: str) -> Optional[Book]:
        """Return the book with this ISBN, or None."""
        target = normalize_isbn(isbn)
        for book in self.list_books():
            if normalize_isbn(book.isbn) == target:
                return book
        return None

    @abstractmethod
    def insert_book(self, book: Book) -> None:
        """Persist a new inventory row."""

    @abstractmethod
    def update_location(self, isbn: str, location: str) -> None:
        """Set a book's location and clear its request in one update.

        Raises:
            NotFoundError: If no book has this ISBN
        """

    @abstractmethod
    def set_requested_by(self, isbn: str, requested_by: str) -> None:
        """Overwrite a book's pending request.

        Raises:
            NotFoundError: If no book has this ISBN
        """

    # ------------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------------

    @abstractmethod
    def list_members(self) -> list[Member]:
        """Return registered members in registration order."""

    def member_names(self) -> list[str]:
        """Every first name on record, including rows list_members skips."""
        return [member.first_name for member in self.list_members()]

    @abstractmethod
    def insert_member(self, member: Member) -> None:
        """Persist a new member row."""

    @abstractmethod
    def location_choices(self) -> list[str]:
        """Return the configured list of valid location names."""

    @abstractmethod
    def refresh_location_choices(self) -> None:
        """Point the inventory's location constraint at the members' names.

        Raises:
            ConfigurationError: If the inventory table cannot be found
        """

    # ------------------------------------------------------------------------
    # Journals
    # ------------------------------------------------------------------------

    @abstractmethod
    def ensure_journal(self, card_number: int) -> None:
        """Provision an empty journal for a member. Idempotent."""

    @abstractmethod
    def list_journal(self, card_number: int) -> Optional[list[JournalEntry]]:
        """Return journal entries in storage order, or None if not provisioned."""

    @abstractmethod
    def insert_journal_entry(self, card_number: int, entry: JournalEntry) -> None:
        """Append an entry to a provisioned journal."""

    @abstractmethod
    def update_journal_entry(self, card_number: int, isbn: str, **changes) -> bool:
        """Overwrite fields of one entry. Returns False if the entry is absent."""

    @abstractmethod
    def update_journal_order(self, card_number: int, orders: dict[str, int]) -> list[str]:
        """Overwrite order values by ISBN. Returns the ISBNs that matched."""
