"""SQLAlchemy ORM base for the local SQL store.

Tables:
- inventory: catalogued books keyed by ISBN (inventory/models.py)
- members: registered members keyed by card number (members/models.py)
- journal_entries: reading journal rows keyed by (card number, ISBN)
  (journal/models.py)
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass
