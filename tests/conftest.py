"""Pytest configuration and shared fixtures.

This module provides fixtures for testing shelfshare, including an
in-memory SQL store, sample members and books, and a mocked Sheets service.
"""

import os
from datetime import date
from unittest.mock import MagicMock

import pytest

from shelfshare.config import reset_config
from shelfshare.db.schemas import BookCreate, Member
from shelfshare.db.sqlite import Database, reset_db
from shelfshare.inventory import InventoryManager
from shelfshare.journal import JournalManager
from shelfshare.members import MemberManager
from shelfshare.store.sql import SqlStore

FIXED_TODAY = date(2025, 3, 7)


# ============================================================================
# Global State
# ============================================================================


@pytest.fixture(autouse=True)
def clean_globals():
    """Reset cached config and database between tests."""
    reset_config()
    reset_db()
    yield
    reset_config()
    reset_db()


# ============================================================================
# Store Fixtures
# ============================================================================


@pytest.fixture
def db() -> Database:
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    database.create_tables()
    return database


@pytest.fixture
def store(db: Database) -> SqlStore:
    """Create a SQL store over the test database."""
    return SqlStore(db)


@pytest.fixture
def members(store: SqlStore) -> MemberManager:
    return MemberManager(store)


@pytest.fixture
def journal(store: SqlStore) -> JournalManager:
    """Journal manager with a fixed clock."""
    return JournalManager(store, today=lambda: FIXED_TODAY)


@pytest.fixture
def inventory(store: SqlStore, members: MemberManager, journal: JournalManager) -> InventoryManager:
    return InventoryManager(store, members=members, journal=journal)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def registered_members(members: MemberManager) -> list[Member]:
    """Register Ada (#1), Ben (#2) and Dana (#3)."""
    people = [
        {"first_name": "Ada", "last_name": "Lovelace", "city": "London"},
        {"first_name": "Ben", "last_name": "Okri", "neighborhood": "Peckham"},
        {"first_name": "Dana", "last_name": "Short", "city": "Oakland"},
    ]
    return [members.register(p).value for p in people]


@pytest.fixture
def sample_book_data() -> BookCreate:
    """Create sample book data for testing."""
    return BookCreate(
        isbn="9780143127741",
        title="The Wangs vs. the World",
        authors="Jade Chang",
        location="Dana",
        reading_level="Adult",
        cover="http://books.google.com/books/content?id=abc&zoom=1",
        publishers="Houghton Mifflin Harcourt",
        pages="368",
        genres="Fiction",
        language="en",
    )


# ============================================================================
# Mock Sheets Fixtures
# ============================================================================


@pytest.fixture
def sheets_service() -> MagicMock:
    """A MagicMock standing in for the Sheets v4 service resource."""
    return MagicMock()


# ============================================================================
# CLI Testing Fixtures
# ============================================================================


@pytest.fixture
def cli_env(tmp_path):
    """Point the CLI at a fresh SQL database file."""
    os.environ["SHELFSHARE_BACKEND"] = "sql"
    os.environ["SHELFSHARE_DB_PATH"] = str(tmp_path / "library.db")
    reset_config()
    reset_db()
    yield tmp_path
    reset_db()
    reset_config()
    for key in ("SHELFSHARE_BACKEND", "SHELFSHARE_DB_PATH"):
        os.environ.pop(key, None)


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
