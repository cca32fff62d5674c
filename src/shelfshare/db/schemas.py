"""Pydantic schemas for data validation.

These schemas define the records exchanged between the stores, the domain
managers and the HTTP layer. Attribute names are snake_case; the JSON wire
format uses camelCase aliases.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class LibraryModel(BaseModel):
    """Base model with camelCase aliases for the JSON API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> dict:
        """Serialize using the wire (camelCase) field names."""
        return self.model_dump(by_alias=True)


def _text(value: Any) -> str:
    """Coerce spreadsheet cell values (None, numbers) to trimmed strings."""
    if value is None:
        return ""
    return str(value).strip()


# ============================================================================
# Books
# ============================================================================


class BookCreate(LibraryModel):
    """Fields accepted when cataloguing a book."""

    isbn: str = ""
    title: str = ""
    authors: str = ""
    location: str = ""
    cover: str = Field("", description="Cover image URL")
    reading_level: str = ""
    publishers: str = ""
    pages: str = ""
    genres: str = ""
    language: str = ""
    notes: str = ""
    description: str = ""

    @field_validator(
        "isbn",
        "title",
        "authors",
        "location",
        "cover",
        "reading_level",
        "publishers",
        "pages",
        "genres",
        "language",
        "notes",
        "description",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _text(value)


class Book(BookCreate):
    """A book in the inventory."""

    requested_by: str = ""

    @field_validator("requested_by", mode="before")
    @classmethod
    def coerce_requested_by(cls, value: Any) -> str:
        return _text(value)


class Member(LibraryModel):
    """A registered member; the first name doubles as a location."""

    first_name: str
    last_name: str
    last_name_initial: str = ""
    city: str = ""
    neighborhood: str = ""
    library_card_number: int = Field(..., ge=1)


class MemberCreate(LibraryModel):
    """Fields accepted when registering a member."""

    first_name: str = ""
    last_name: str = ""
    city: str = ""
    neighborhood: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _text(value)


class BookWithMember(Book):
    """A book enriched with the member its location resolves to."""

    member: Optional[Member] = None


# ============================================================================
# Reading journal
# ============================================================================


class JournalEntry(LibraryModel):
    """A book a member has held, with their personal notes."""

    isbn: str
    title: str = ""
    date_added: str = ""
    notes: str = ""
    finished: bool = False
    order: Optional[int] = None


class JournalOrderUpdate(LibraryModel):
    """A new rank for one journal entry."""

    isbn: str = Field(..., min_length=1)
    order: int

    @field_validator("isbn", mode="before")
    @classmethod
    def coerce_isbn(cls, value: Any) -> str:
        return _text(value)


# ============================================================================
# Metadata lookup
# ============================================================================


class BookMetadata(LibraryModel):
    """Book metadata returned by the lookup service."""

    isbn: str
    title: str = ""
    authors: str = ""
    publishers: str = ""
    pages: str = ""
    genres: str = ""
    language: str = ""
    cover: str = ""
    description: str = ""


# ============================================================================
# Operation results
# ============================================================================


@dataclass
class OperationResult:
    """Outcome of a domain operation.

    ``value`` carries the primary result. ``warnings`` lists advisory steps
    (journal sync, journal provisioning) that were skipped or failed without
    failing the operation itself.
    """

    value: Any = None
    warnings: list[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)
