"""Record schemas and the local SQLite database."""

from .schemas import (
    Book,
    BookCreate,
    BookMetadata,
    BookWithMember,
    JournalEntry,
    JournalOrderUpdate,
    Member,
    MemberCreate,
    OperationResult,
)
from .sqlite import Database, get_db, reset_db

__all__ = [
    "Book",
    "BookCreate",
    "BookMetadata",
    "BookWithMember",
    "JournalEntry",
    "JournalOrderUpdate",
    "Member",
    "MemberCreate",
    "OperationResult",
    "Database",
    "get_db",
    "reset_db",
]
