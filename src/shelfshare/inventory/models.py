"""SQLAlchemy model for the book inventory."""

from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base
from ..db.schemas import Book


class InventoryBook(Base):
    """A catalogued book. The ISBN is the primary key."""

    __tablename__ = "inventory"

    isbn: Mapped[str] = mapped_column(String(32), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), default="")
    authors: Mapped[str] = mapped_column(String(500), default="")
    cover: Mapped[str] = mapped_column(Text, default="")  # URL
    reading_level: Mapped[str] = mapped_column(String(50), default="")
    location: Mapped[str] = mapped_column(String(100), default="", index=True)
    publishers: Mapped[str] = mapped_column(String(500), default="")
    pages: Mapped[str] = mapped_column(String(20), default="")
    genres: Mapped[str] = mapped_column(String(500), default="")
    language: Mapped[str] = mapped_column(String(20), default="")
    notes: Mapped[str] = mapped_column(Text, default="")
    requested_by: Mapped[Optional[str]] = mapped_column(String(100), default="")
    description: Mapped[str] = mapped_column(Text, default="")

    def __repr__(self) -> str:
        return f"<InventoryBook(isbn={self.isbn}, title={self.title})>"

    def to_schema(self) -> Book:
        return Book(
            isbn=self.isbn,
            title=self.title,
            authors=self.authors,
            cover=self.cover,
            reading_level=self.reading_level,
            location=self.location,
            publishers=self.publishers,
            pages=self.pages,
            genres=self.genres,
            language=self.language,
            notes=self.notes,
            requested_by=self.requested_by,
            description=self.description,
        )
