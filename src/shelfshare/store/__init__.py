"""Backing stores for inventory, members and reading journals."""

from typing import Optional

from ..config import Config, get_config
from ..errors import ConfigurationError
from .base import LibraryStore, normalize_isbn, normalize_name


def get_store(config: Optional[Config] = None) -> LibraryStore:
    """Create the store selected by SHELFSHARE_BACKEND."""
    config = config or get_config()

    if config.backend == "sheets":
        from .sheets import SheetsClient, SheetsStore

        return SheetsStore(SheetsClient.from_config(config))

    if config.backend == "sql":
        from ..db.sqlite import get_db
        from .sql import SqlStore

        return SqlStore(get_db(str(config.db_path)))

    raise ConfigurationError(f"Unknown backend: {config.backend}")


__all__ = [
    "LibraryStore",
    "get_store",
    "normalize_isbn",
    "normalize_name",
]
