"""Journal manager for per-member reading journals."""

import logging
from datetime import date
from typing import Any, Callable, Iterable, Optional, Union

from pydantic import ValidationError as SchemaError

from ..db.schemas import JournalEntry, JournalOrderUpdate, OperationResult
from ..errors import NotFoundError, ValidationError
from ..store import LibraryStore, get_store, normalize_isbn

logger = logging.getLogger(__name__)


def parse_card_number(value: Any) -> int:
    """Parse a library card number from request input.

    Raises:
        ValidationError: If the value is missing or not a positive integer
    """
    if value is None or str(value).strip() == "":
        raise ValidationError("libraryCardNumber is required")
    try:
        card_number = int(str(value).strip())
    except ValueError:
        raise ValidationError(f"Invalid library card number: {value}")
    if card_number < 1:
        raise ValidationError(f"Invalid library card number: {value}")
    return card_number


def format_date_added(day: date) -> str:
    """Format a date as M/D/YYYY, the way the journal sheets record it."""
    return f"{day.month}/{day.day}/{day.year}"


def sort_entries(entries: list[JournalEntry]) -> list[JournalEntry]:
    """Order entries by rank; unranked entries follow in storage order."""
    indexed = list(enumerate(entries))
    indexed.sort(key=lambda pair: (pair[1].order is None, pair[1].order or 0, pair[0]))
    return [entry for _, entry in indexed]


class JournalManager:
    """Manages reading journal operations."""

    def __init__(
        self,
        store: Optional[LibraryStore] = None,
        today: Callable[[], date] = date.today,
    ):
        """Initialize journal manager.

        Args:
            store: Backing store
            today: Clock used to stamp new entries
        """
        self.store = store or get_store()
        self.today = today

    def get_journal(self, card_number: Any) -> list[JournalEntry]:
        """Get a member's journal for display.

        Args:
            card_number: Library card number

        Returns:
            Entries sorted by order; [] if the journal does not exist
        """
        card = parse_card_number(card_number)
        entries = self.store.list_journal(card)
        if entries is None:
            logger.info("Reading journal for card %s not found", card)
            return []
        return sort_entries(entries)

    def add_entry(
        self, card_number: Any, isbn: Any, title: str, notes: str = ""
    ) -> OperationResult:
        """Add a book to a member's journal once.

        A second add for the same ISBN is ignored.

        Returns:
            Result whose value is True if an entry was created
        """
        card = parse_card_number(card_number)
        normalized = normalize_isbn(isbn)
        if not normalized:
            raise ValidationError("ISBN is required")

        result = OperationResult(value=False)
        entries = self.store.list_journal(card)
        if entries is None:
            logger.info("Reading journal for card %s not found, skipping entry", card)
            result.warn(f"No reading journal for card {card}; {normalized} not recorded")
            return result

        if any(normalize_isbn(e.isbn) == normalized for e in entries):
            logger.debug("Book %s already in journal for card %s", normalized, card)
            return result

        self.store.insert_journal_entry(
            card,
            JournalEntry(
                isbn=normalized,
                title=title or "",
                date_added=format_date_added(self.today()),
                notes=notes or "",
            ),
        )
        logger.info("Added %s to reading journal for card %s", title, card)
        result.value = True
        return result

    def _update(self, card_number: Any, isbn: Any, **changes) -> OperationResult:
        card = parse_card_number(card_number)
        normalized = normalize_isbn(isbn)
        if not normalized:
            raise ValidationError("isbn is required")

        result = OperationResult()
        if self.store.list_journal(card) is None:
            logger.info("Reading journal for card %s not found, nothing updated", card)
            result.warn(f"No reading journal for card {card}")
            return result

        if not self.store.update_journal_entry(card, normalized, **changes):
            raise NotFoundError(f"Book {normalized} is not in the journal for card {card}")
        return result

    def update_notes(self, card_number: Any, isbn: Any, notes: Optional[str]) -> OperationResult:
        """Overwrite the notes of a journal entry.

        Raises:
            NotFoundError: If the journal exists but has no entry for the ISBN
        """
        return self._update(card_number, isbn, notes=notes or "")

    def set_finished(self, card_number: Any, isbn: Any, finished: bool) -> OperationResult:
        """Mark a journal entry finished or unfinished.

        Raises:
            NotFoundError: If the journal exists but has no entry for the ISBN
        """
        return self._update(card_number, isbn, finished=bool(finished))

    def reorder(
        self,
        card_number: Any,
        updates: Iterable[Union[JournalOrderUpdate, dict]],
    ) -> OperationResult:
        """Apply caller-supplied order values to journal entries.

        Values are written as given; uniqueness and contiguity are not checked.
        ISBNs missing from the journal are reported as warnings.
        """
        card = parse_card_number(card_number)
        try:
            parsed = [
                u if isinstance(u, JournalOrderUpdate) else JournalOrderUpdate.model_validate(u)
                for u in updates
            ]
        except SchemaError as e:
            raise ValidationError(f"Invalid order update: {e.errors()[0]['msg']}")

        orders = {normalize_isbn(u.isbn): u.order for u in parsed}
        result = OperationResult(value=[])

        if self.store.list_journal(card) is None:
            result.warn(f"No reading journal for card {card}")
            return result

        matched = self.store.update_journal_order(card, orders) if orders else []
        result.value = matched
        for isbn in orders:
            if isbn not in matched:
                result.warn(f"Book {isbn} is not in the journal for card {card}")
        return result
