"""Configuration management for shelfshare.

Loads configuration from environment variables and provides defaults.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

BACKENDS = ("sheets", "sql")


@dataclass
class Config:
    """Application configuration."""

    # Store
    backend: str
    db_path: Path

    # Google Sheets
    sheet_id: Optional[str]
    google_client_email: Optional[str]
    google_private_key: Optional[str]

    # Google Books
    google_books_api_key: Optional[str]
    google_books_timeout: float  # seconds

    # Web server
    host: str
    port: int

    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "SHELFSHARE_DB_PATH",
            str(Path.home() / ".shelfshare" / "library.db"),
        )

        # Private keys pasted into env files carry literal "\n" sequences
        private_key = os.environ.get("GOOGLE_PRIVATE_KEY")
        if private_key:
            private_key = private_key.replace("\\n", "\n")

        return cls(
            backend=os.environ.get("SHELFSHARE_BACKEND", "sheets").lower(),
            db_path=Path(db_path_str).expanduser(),
            sheet_id=os.environ.get("SHEET_ID"),
            google_client_email=os.environ.get("GOOGLE_CLIENT_EMAIL"),
            google_private_key=private_key,
            google_books_api_key=os.environ.get("GOOGLE_BOOKS_API_KEY"),
            google_books_timeout=float(os.environ.get("GOOGLE_BOOKS_TIMEOUT", "10")),
            host=os.environ.get("SHELFSHARE_HOST", "127.0.0.1"),
            port=int(os.environ.get("SHELFSHARE_PORT", "7071")),
            log_level=os.environ.get("SHELFSHARE_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.backend not in BACKENDS:
            errors.append(
                f"Unknown backend '{self.backend}' (expected one of: {', '.join(BACKENDS)})"
            )

        if self.backend == "sheets":
            if not self.sheet_id:
                errors.append("SHEET_ID not set")
            if not self.has_google_credentials():
                errors.append("GOOGLE_CLIENT_EMAIL and GOOGLE_PRIVATE_KEY must both be set")

        if self.backend == "sql" and str(self.db_path) != ":memory:":
            if not self.db_path.parent.exists():
                try:
                    self.db_path.parent.mkdir(parents=True, exist_ok=True)
                except PermissionError:
                    errors.append(f"Cannot create database directory: {self.db_path.parent}")

        return errors

    def has_google_credentials(self) -> bool:
        """Check if service-account credentials are present."""
        return bool(self.google_client_email and self.google_private_key)


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once for the CLI and web server."""
    logging.basicConfig(
        level=level or get_config().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
