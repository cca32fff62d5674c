"""JSON web API for the library, served with Flask.

Every endpoint lives under ``/api``. Successful mutations answer
``{"success": true}`` (plus ``warnings`` when an advisory step such as
journal sync was skipped); failures answer ``{"error": ..., "details": ...}``.
"""

import logging
from typing import Any, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from .api import GoogleBooksClient
from .errors import (
    ConflictError,
    NotFoundError,
    ShelfshareError,
    ValidationError,
)
from .inventory import InventoryManager
from .journal import JournalManager
from .members import MemberManager
from .store import LibraryStore, get_store

logger = logging.getLogger(__name__)


def _error_response(error: Exception, message: str, not_found_status: int = 500):
    """Map a domain error to a JSON error response.

    Not-found errors only surface as 404 where an endpoint declares it;
    elsewhere they are reported as a failed operation.
    """
    if isinstance(error, ValidationError):
        return jsonify({"error": str(error)}), 400
    if isinstance(error, ConflictError):
        return jsonify({"error": str(error)}), 409
    if isinstance(error, NotFoundError) and not_found_status == 404:
        return jsonify({"error": str(error)}), 404

    logger.error("%s: %s", message, error)
    return jsonify({"error": message, "details": str(error)}), 500


def _success(result, **extra):
    body = {"success": True, **extra}
    if result.warnings:
        body["warnings"] = result.warnings
    return jsonify(body)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def _missing(body: dict, *fields: str) -> list[str]:
    """Names of fields that are absent or blank in a request body."""
    return [f for f in fields if body.get(f) is None or str(body.get(f)).strip() == ""]


def create_app(
    store: Optional[LibraryStore] = None,
    lookup_client: Optional[GoogleBooksClient] = None,
) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)

    store = store or get_store()
    members = MemberManager(store)
    journal = JournalManager(store)
    inventory = InventoryManager(store, members=members, journal=journal)

    def lookup() -> GoogleBooksClient:
        nonlocal lookup_client
        if lookup_client is None:
            lookup_client = GoogleBooksClient()
        return lookup_client

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        if isinstance(error, HTTPException):
            return jsonify({"error": error.description}), error.code
        logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error", "details": str(error)}), 500

    @app.route("/api/health")
    def health():
        return jsonify({"status": "ok", "backend": store.name})

    # ------------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------------

    @app.route("/api/getBooks", methods=["GET"])
    def get_books():
        """List all books with their holders' member details."""
        try:
            books = inventory.list_books()
        except ShelfshareError as e:
            return _error_response(e, "Failed to fetch books")
        return jsonify([book.to_api() for book in books])

    @app.route("/api/addBook", methods=["POST"])
    def add_book():
        """Catalogue a book entered by hand or from a lookup."""
        body = request.get_json(silent=True) or {}

        if _missing(body, "title", "authors", "location"):
            return jsonify({"error": "Title, Author, and Location are required fields"}), 400

        try:
            result = inventory.add_book(body)
        except ShelfshareError as e:
            return _error_response(e, "Failed to add book")
        return _success(result)

    @app.route("/api/checkoutBook", methods=["POST"])
    def checkout_book():
        """Move a book to a new holder."""
        body = request.get_json(silent=True) or {}

        if _missing(body, "isbn", "newLocation"):
            return jsonify({"error": "Missing required fields: isbn, newLocation"}), 400

        try:
            result = inventory.move_book(body["isbn"], str(body["newLocation"]))
        except ShelfshareError as e:
            return _error_response(e, "Failed to update book location")
        return _success(result)

    @app.route("/api/requestBook", methods=["POST"])
    def request_book():
        """Ask for a book to be passed along next."""
        body = request.get_json(silent=True) or {}

        if _missing(body, "isbn", "requestedBy"):
            return jsonify({"error": "ISBN and requestedBy are required"}), 400

        try:
            inventory.request_book(body["isbn"], str(body["requestedBy"]))
        except ShelfshareError as e:
            return _error_response(e, "Failed to request book")
        return jsonify({"message": "Book requested successfully"})

    @app.route("/api/lookupBook", methods=["GET"])
    def lookup_book():
        """Fetch metadata for an ISBN from Google Books."""
        isbn = request.args.get("isbn", "").strip()
        if not isbn:
            return jsonify({"error": "ISBN is required"}), 400

        try:
            metadata = lookup().lookup(isbn)
        except ShelfshareError as e:
            return _error_response(e, "Failed to lookup book", not_found_status=404)
        return jsonify(metadata.to_api())

    # ------------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------------

    @app.route("/api/getLocations", methods=["GET"])
    def get_locations():
        """List the names a book's location may be set to."""
        try:
            return jsonify(members.location_choices())
        except ShelfshareError as e:
            return _error_response(e, "Failed to fetch location options")

    @app.route("/api/getMembers", methods=["GET"])
    def get_members():
        try:
            return jsonify([m.to_api() for m in members.list_members()])
        except ShelfshareError as e:
            return _error_response(e, "Failed to fetch members")

    @app.route("/api/addLocation", methods=["POST"])
    def add_location():
        """Register a new member, who then becomes a valid location."""
        body = request.get_json(silent=True) or {}

        if _missing(body, "firstName"):
            return jsonify({"error": "First name is required"}), 400
        if _missing(body, "lastName"):
            return jsonify({"error": "Last name is required"}), 400

        try:
            result = members.register(body)
        except ShelfshareError as e:
            return _error_response(e, "Failed to register member")

        member = result.value
        return _success(
            result,
            member=member.to_api(),
            message=(
                f"Welcome {member.first_name}! "
                f"Your library card number is #{member.library_card_number}."
            ),
        )

    # ------------------------------------------------------------------------
    # Reading journal
    # ------------------------------------------------------------------------

    @app.route("/api/getReadingJournal", methods=["GET"])
    def get_reading_journal():
        card_number = request.args.get("libraryCardNumber", "").strip()
        if not card_number:
            return jsonify({"error": "libraryCardNumber is required"}), 400

        try:
            entries = journal.get_journal(card_number)
        except ShelfshareError as e:
            return _error_response(e, "Failed to fetch reading journal")
        return jsonify([entry.to_api() for entry in entries])

    @app.route("/api/updateJournalEntry", methods=["POST"])
    def update_journal_entry():
        body = request.get_json(silent=True) or {}

        if _missing(body, "libraryCardNumber"):
            return jsonify({"error": "libraryCardNumber is required"}), 400
        if _missing(body, "isbn"):
            return jsonify({"error": "isbn is required"}), 400

        try:
            result = journal.update_notes(
                body["libraryCardNumber"], body["isbn"], body.get("notes") or ""
            )
        except ShelfshareError as e:
            return _error_response(e, "Failed to update journal entry")
        return _success(result)

    @app.route("/api/updateJournalFinished", methods=["POST"])
    def update_journal_finished():
        body = request.get_json(silent=True) or {}

        if _missing(body, "libraryCardNumber"):
            return jsonify({"error": "libraryCardNumber is required"}), 400
        if _missing(body, "isbn"):
            return jsonify({"error": "isbn is required"}), 400
        if "finished" not in body:
            return jsonify({"error": "finished is required"}), 400

        try:
            result = journal.set_finished(
                body["libraryCardNumber"], body["isbn"], _as_bool(body["finished"])
            )
        except ShelfshareError as e:
            return _error_response(e, "Failed to update finished status")
        return _success(result)

    @app.route("/api/reorderJournal", methods=["POST"])
    def reorder_journal():
        body = request.get_json(silent=True) or {}

        if _missing(body, "libraryCardNumber"):
            return jsonify({"error": "libraryCardNumber is required"}), 400
        if not isinstance(body.get("orderUpdates"), list):
            return jsonify({"error": "orderUpdates array is required"}), 400

        try:
            result = journal.reorder(body["libraryCardNumber"], body["orderUpdates"])
        except ShelfshareError as e:
            return _error_response(e, "Failed to reorder journal")
        return _success(result)

    return app
