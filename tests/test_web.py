"""Tests for the JSON web API."""

from unittest.mock import MagicMock

import pytest

from shelfshare.db.schemas import BookMetadata
from shelfshare.errors import LookupServiceError, NotFoundError, TransientStoreError
from shelfshare.web import create_app


@pytest.fixture
def lookup_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def app(store, lookup_client):
    app = create_app(store, lookup_client=lookup_client)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def library(client):
    """Register Ada (#1), Ben (#2) and Dana (#3) through the API."""
    for first, last in [("Ada", "Lovelace"), ("Ben", "Okri"), ("Dana", "Short")]:
        response = client.post("/api/addLocation", json={"firstName": first, "lastName": last})
        assert response.status_code == 200
    return client


BOOK = {
    "isbn": "9780143127741",
    "title": "The Wangs vs. the World",
    "authors": "Jade Chang",
    "location": "Dana",
    "readingLevel": "Adult",
}


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.get_json() == {"status": "ok", "backend": "sql"}

    def test_unknown_route_is_json(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert "error" in response.get_json()


class TestBooks:
    def test_empty_inventory(self, client):
        response = client.get("/api/getBooks")
        assert response.status_code == 200
        assert response.get_json() == []

    def test_add_book_then_list(self, library):
        response = library.post("/api/addBook", json=BOOK)
        assert response.status_code == 200
        assert response.get_json() == {"success": True}

        books = library.get("/api/getBooks").get_json()
        assert len(books) == 1
        assert books[0]["readingLevel"] == "Adult"
        assert books[0]["member"]["firstName"] == "Dana"
        assert books[0]["member"]["libraryCardNumber"] == 3

        journal = library.get("/api/getReadingJournal?libraryCardNumber=3").get_json()
        assert [e["isbn"] for e in journal] == ["9780143127741"]
        assert journal[0]["dateAdded"]
        assert journal[0]["finished"] is False

    @pytest.mark.parametrize("field", ["title", "authors", "location"])
    def test_add_book_requires_fields(self, client, field):
        body = {**BOOK, field: "  "}

        response = client.post("/api/addBook", json=body)

        assert response.status_code == 400
        assert response.get_json()["error"] == "Title, Author, and Location are required fields"

    def test_add_book_duplicate(self, library):
        library.post("/api/addBook", json=BOOK)
        response = library.post("/api/addBook", json=BOOK)

        assert response.status_code == 409
        assert "already exists" in response.get_json()["error"]

    def test_checkout_moves_and_records_journal(self, library):
        library.post("/api/addBook", json=BOOK)
        library.post("/api/requestBook", json={"isbn": BOOK["isbn"], "requestedBy": "Ben"})

        response = library.post(
            "/api/checkoutBook", json={"isbn": BOOK["isbn"], "newLocation": "Ben"}
        )

        assert response.status_code == 200
        book = library.get("/api/getBooks").get_json()[0]
        assert book["location"] == "Ben"
        assert book["requestedBy"] == ""
        journal = library.get("/api/getReadingJournal?libraryCardNumber=2").get_json()
        assert journal[0]["title"] == "The Wangs vs. the World"

    def test_checkout_missing_fields(self, client):
        response = client.post("/api/checkoutBook", json={"isbn": "1"})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Missing required fields: isbn, newLocation"

    def test_checkout_unknown_isbn_is_a_failed_operation(self, client):
        response = client.post("/api/checkoutBook", json={"isbn": "404", "newLocation": "Ada"})

        assert response.status_code == 500
        body = response.get_json()
        assert body["error"] == "Failed to update book location"
        assert "404" in body["details"]

    def test_request_book(self, library):
        library.post("/api/addBook", json=BOOK)

        response = library.post(
            "/api/requestBook", json={"isbn": BOOK["isbn"], "requestedBy": "Ada"}
        )

        assert response.status_code == 200
        assert response.get_json() == {"message": "Book requested successfully"}
        assert library.get("/api/getBooks").get_json()[0]["requestedBy"] == "Ada"

    def test_request_book_missing_fields(self, client):
        response = client.post("/api/requestBook", json={"isbn": "1"})
        assert response.status_code == 400

    def test_journal_failure_is_reported_as_warning(self, store, lookup_client, library):
        failing = MagicMock(wraps=store)
        failing.name = "sql"
        failing.list_journal.side_effect = TransientStoreError("rate limited")
        client = create_app(failing, lookup_client=lookup_client).test_client()

        response = client.post("/api/addBook", json=BOOK)

        body = response.get_json()
        assert response.status_code == 200
        assert body["success"] is True
        assert "rate limited" in body["warnings"][0]
        assert store.get_book(BOOK["isbn"]) is not None


class TestLookup:
    def test_lookup(self, client, lookup_client):
        lookup_client.lookup.return_value = BookMetadata(
            isbn="9780143127741", title="The Wangs vs. the World", pages="368"
        )

        response = client.get("/api/lookupBook?isbn=9780143127741")

        assert response.status_code == 200
        body = response.get_json()
        assert body["title"] == "The Wangs vs. the World"
        assert body["pages"] == "368"

    def test_lookup_requires_isbn(self, client):
        response = client.get("/api/lookupBook")
        assert response.status_code == 400
        assert response.get_json()["error"] == "ISBN is required"

    def test_lookup_not_found(self, client, lookup_client):
        lookup_client.lookup.side_effect = NotFoundError("Book not found")

        response = client.get("/api/lookupBook?isbn=0000000000")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Book not found"}

    def test_lookup_service_down(self, client, lookup_client):
        lookup_client.lookup.side_effect = LookupServiceError("timed out")

        response = client.get("/api/lookupBook?isbn=1")

        assert response.status_code == 500
        assert response.get_json()["error"] == "Failed to lookup book"


class TestMembers:
    def test_add_location_welcome(self, client):
        response = client.post(
            "/api/addLocation",
            json={"firstName": "Dana", "lastName": "short", "city": "Oakland"},
        )

        body = response.get_json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["message"] == "Welcome Dana! Your library card number is #1."
        assert body["member"]["lastNameInitial"] == "S."
        assert "warnings" not in body

    def test_add_location_requires_names(self, client):
        response = client.post("/api/addLocation", json={"lastName": "Short"})
        assert response.status_code == 400
        assert response.get_json()["error"] == "First name is required"

        response = client.post("/api/addLocation", json={"firstName": "Dana"})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Last name is required"

    def test_add_location_duplicate(self, library):
        response = library.post("/api/addLocation", json={"firstName": "ADA", "lastName": "X"})
        assert response.status_code == 409

    def test_get_members(self, library):
        members = library.get("/api/getMembers").get_json()

        assert [m["libraryCardNumber"] for m in members] == [1, 2, 3]
        assert members[2]["firstName"] == "Dana"

    def test_get_locations(self, library):
        assert library.get("/api/getLocations").get_json() == ["Ada", "Ben", "Dana"]


class TestJournal:
    @pytest.fixture
    def entry(self, library):
        library.post("/api/addBook", json=BOOK)
        return library

    def test_get_requires_card(self, client):
        response = client.get("/api/getReadingJournal")
        assert response.status_code == 400
        assert response.get_json()["error"] == "libraryCardNumber is required"

    def test_get_missing_journal(self, client):
        response = client.get("/api/getReadingJournal?libraryCardNumber=99")
        assert response.status_code == 200
        assert response.get_json() == []

    def test_get_invalid_card(self, client):
        response = client.get("/api/getReadingJournal?libraryCardNumber=abc")
        assert response.status_code == 400

    def test_update_notes(self, entry):
        response = entry.post(
            "/api/updateJournalEntry",
            json={"libraryCardNumber": 3, "isbn": BOOK["isbn"], "notes": "Funny and sad."},
        )

        assert response.status_code == 200
        journal = entry.get("/api/getReadingJournal?libraryCardNumber=3").get_json()
        assert journal[0]["notes"] == "Funny and sad."

    def test_update_notes_unknown_entry(self, entry):
        response = entry.post(
            "/api/updateJournalEntry",
            json={"libraryCardNumber": 3, "isbn": "000", "notes": "x"},
        )
        assert response.status_code == 500
        assert response.get_json()["error"] == "Failed to update journal entry"

    def test_update_notes_missing_journal_warns(self, client):
        response = client.post(
            "/api/updateJournalEntry",
            json={"libraryCardNumber": "12", "isbn": "1", "notes": "x"},
        )
        assert response.status_code == 200
        assert response.get_json()["warnings"]

    def test_update_finished(self, entry):
        response = entry.post(
            "/api/updateJournalFinished",
            json={"libraryCardNumber": "3", "isbn": BOOK["isbn"], "finished": "true"},
        )

        assert response.status_code == 200
        journal = entry.get("/api/getReadingJournal?libraryCardNumber=3").get_json()
        assert journal[0]["finished"] is True

    def test_update_finished_requires_flag(self, entry):
        response = entry.post(
            "/api/updateJournalFinished",
            json={"libraryCardNumber": 3, "isbn": BOOK["isbn"]},
        )
        assert response.status_code == 400

    def test_reorder(self, entry):
        entry.post("/api/addBook", json={**BOOK, "isbn": "222", "title": "Second"})

        response = entry.post(
            "/api/reorderJournal",
            json={
                "libraryCardNumber": 3,
                "orderUpdates": [
                    {"isbn": "222", "order": 1},
                    {"isbn": BOOK["isbn"], "order": 2},
                ],
            },
        )

        assert response.status_code == 200
        journal = entry.get("/api/getReadingJournal?libraryCardNumber=3").get_json()
        assert [e["isbn"] for e in journal] == ["222", BOOK["isbn"]]
        assert [e["order"] for e in journal] == [1, 2]

    def test_reorder_requires_list(self, entry):
        response = entry.post(
            "/api/reorderJournal", json={"libraryCardNumber": 3, "orderUpdates": "222"}
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "orderUpdates array is required"

    def test_reorder_bad_update(self, entry):
        response = entry.post(
            "/api/reorderJournal",
            json={"libraryCardNumber": 3, "orderUpdates": [{"isbn": "", "order": 1}]},
        )
        assert response.status_code == 400
