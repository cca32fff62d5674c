"""Tests for InventoryManager."""

from unittest.mock import MagicMock

import pytest

from shelfshare.db.schemas import BookCreate, Member
from shelfshare.errors import (
    ConflictError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)
from shelfshare.inventory import InventoryManager
from shelfshare.members import MemberManager


class TestAddBook:
    """Tests for cataloguing books."""

    def test_add_book_at_member_records_journal(
        self, inventory, journal, registered_members, sample_book_data
    ):
        result = inventory.add_book(sample_book_data)

        assert result.value.isbn == "9780143127741"
        assert result.value.requested_by == ""
        assert result.warnings == []

        entries = journal.get_journal(3)
        assert len(entries) == 1
        assert entries[0].isbn == "9780143127741"
        assert entries[0].title == "The Wangs vs. the World"
        assert entries[0].date_added == "3/7/2025"
        assert entries[0].finished is False

    def test_add_book_is_listed(self, inventory, registered_members, sample_book_data):
        inventory.add_book(sample_book_data)

        books = inventory.list_books()
        assert len(books) == 1
        assert books[0].title == "The Wangs vs. the World"
        assert books[0].cover.startswith("http://books.google.com")

    def test_add_from_wire_dict(self, inventory, registered_members):
        result = inventory.add_book(
            {
                "isbn": "123",
                "title": "T",
                "authors": "A",
                "location": "Ben",
                "readingLevel": "Early Reader",
            }
        )
        assert result.value.reading_level == "Early Reader"

    def test_isbn_is_trimmed(self, inventory, registered_members):
        result = inventory.add_book(BookCreate(isbn=" 123 ", title="T", authors="A", location="Ben"))
        assert result.value.isbn == "123"

    def test_duplicate_isbn(self, inventory, registered_members, sample_book_data):
        inventory.add_book(sample_book_data)

        with pytest.raises(ConflictError, match="already exists"):
            inventory.add_book(sample_book_data)

        assert len(inventory.list_books()) == 1

    def test_missing_isbn(self, inventory):
        with pytest.raises(ValidationError, match="ISBN is required"):
            inventory.add_book({"title": "T", "authors": "A", "location": "Ben"})

    def test_non_member_location_has_no_journal_write(self, inventory, journal, registered_members):
        result = inventory.add_book(
            {"isbn": "555", "title": "T", "authors": "A", "location": "Front Shelf"}
        )

        assert result.warnings == []
        for card in (1, 2, 3):
            assert journal.get_journal(card) == []

    def test_notes_are_copied_to_journal(self, inventory, journal, registered_members):
        inventory.add_book(
            {"isbn": "555", "title": "T", "authors": "A", "location": "ada", "notes": "gift"}
        )
        assert journal.get_journal(1)[0].notes == "gift"


class TestMoveBook:
    """Tests for checking a book out to a new holder."""

    @pytest.fixture
    def book(self, inventory, registered_members, sample_book_data):
        return inventory.add_book(sample_book_data).value

    def test_move_updates_location_and_clears_request(self, inventory, journal, book):
        inventory.request_book(book.isbn, "Ben")
        assert inventory.get_book(book.isbn).requested_by == "Ben"

        result = inventory.move_book(book.isbn, "Ben")

        moved = inventory.get_book(book.isbn)
        assert moved.location == "Ben"
        assert moved.requested_by == ""
        assert result.value.location == "Ben"
        assert [e.isbn for e in journal.get_journal(2)] == [book.isbn]

    def test_move_back_does_not_duplicate_journal(self, inventory, journal, book):
        inventory.move_book(book.isbn, "Ben")
        inventory.move_book(book.isbn, "Dana")

        assert len(journal.get_journal(3)) == 1
        assert len(journal.get_journal(2)) == 1

    def test_move_unknown_isbn(self, inventory, book):
        with pytest.raises(NotFoundError):
            inventory.move_book("0000000000", "Ben")

    def test_move_requires_fields(self, inventory, book):
        with pytest.raises(ValidationError, match="isbn, newLocation"):
            inventory.move_book(book.isbn, "  ")

    def test_move_to_non_member(self, inventory, book):
        result = inventory.move_book(book.isbn, "Lobby Box")

        assert inventory.get_book(book.isbn).location == "Lobby Box"
        assert result.warnings == []

    def test_untitled_book_uses_placeholder(self, inventory, journal, registered_members):
        inventory.add_book({"isbn": "777", "authors": "Anon", "location": "Lobby"})
        inventory.move_book("777", "Ada")

        assert journal.get_journal(1)[0].title == "Unknown Title"


class TestRequestBook:
    def test_request_overwrites_previous(self, inventory, registered_members, sample_book_data):
        inventory.add_book(sample_book_data)

        inventory.request_book("9780143127741", "Ada")
        inventory.request_book("9780143127741", "Ben")

        assert inventory.get_book("9780143127741").requested_by == "Ben"

    def test_request_unknown_isbn(self, inventory):
        with pytest.raises(NotFoundError):
            inventory.request_book("404", "Ada")

    def test_request_requires_requester(self, inventory):
        with pytest.raises(ValidationError):
            inventory.request_book("404", " ")


class TestListBooks:
    def test_member_is_attached_by_first_name(
        self, inventory, registered_members, sample_book_data
    ):
        inventory.add_book(sample_book_data)
        inventory.add_book({"isbn": "2", "title": "Shelved", "location": "Front Shelf"})

        books = {b.isbn: b for b in inventory.list_books()}

        assert books["9780143127741"].member.library_card_number == 3
        assert books["2"].member is None

    def test_api_shape_uses_camel_case(self, inventory, registered_members, sample_book_data):
        inventory.add_book(sample_book_data)

        payload = inventory.list_books()[0].to_api()

        assert payload["readingLevel"] == "Adult"
        assert payload["requestedBy"] == ""
        assert payload["member"]["libraryCardNumber"] == 3
        assert payload["member"]["lastNameInitial"] == "S."

    def test_get_book_missing(self, inventory):
        with pytest.raises(NotFoundError):
            inventory.get_book("nope")


class TestJournalSyncIsAdvisory:
    """Journal failures never undo or block the inventory change."""

    def test_journal_failure_becomes_warning(self, store, registered_members, sample_book_data):
        journal = MagicMock()
        journal.add_entry.side_effect = TransientStoreError("rate limited")
        manager = InventoryManager(store, members=MemberManager(store), journal=journal)

        result = manager.add_book(sample_book_data)

        assert store.get_book("9780143127741") is not None
        assert len(result.warnings) == 1
        assert "rate limited" in result.warnings[0]

    def test_missing_journal_warns(self, sample_book_data):
        store = MagicMock()
        store.get_book.return_value = None
        store.list_members.return_value = [
            Member(first_name="Dana", last_name="Short", library_card_number=3)
        ]
        store.list_journal.return_value = None
        manager = InventoryManager(store)

        result = manager.add_book(sample_book_data)

        store.insert_book.assert_called_once()
        store.insert_journal_entry.assert_not_called()
        assert len(result.warnings) == 1
        assert "card 3" in result.warnings[0]

    @pytest.fixture
    def flaky_store(self, store):
        """The store with journal appends that time out."""
        flaky = MagicMock(wraps=store)
        flaky.insert_journal_entry.side_effect = TimeoutError("timed out")
        return flaky

    def test_add_survives_journal_timeout(
        self, store, flaky_store, registered_members, sample_book_data
    ):
        result = InventoryManager(flaky_store).add_book(sample_book_data)

        flaky_store.insert_journal_entry.assert_called_once()
        assert store.get_book("9780143127741").location == "Dana"
        assert store.list_journal(3) == []
        assert len(result.warnings) == 1
        assert "timed out" in result.warnings[0]

    def test_move_survives_journal_timeout(
        self, inventory, store, flaky_store, registered_members, sample_book_data
    ):
        inventory.add_book(sample_book_data.model_copy(update={"location": "Front Shelf"}))

        result = InventoryManager(flaky_store).move_book("9780143127741", "Ben")

        assert store.get_book("9780143127741").location == "Ben"
        assert result.value.location == "Ben"
        assert len(result.warnings) == 1
        assert "Reading journal not updated" in result.warnings[0]
