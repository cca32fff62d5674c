"""Google Books API client for book metadata lookup.

Only the public volumes search is used; an API key is optional and only
raises the request quota.
"""

import logging
from typing import Optional

import requests

from ..config import get_config
from ..db.schemas import BookMetadata
from ..errors import LookupServiceError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class GoogleBooksClient:
    """Client for the Google Books volumes API."""

    BASE_URL = "https://www.googleapis.com/books/v1"

    def __init__(self, api_key: Optional[str] = None, timeout: Optional[float] = None):
        """Initialize client.

        Args:
            api_key: Google Books API key (uses config if not provided)
            timeout: Request timeout in seconds (uses config if not provided)
        """
        config = get_config()
        self.api_key = api_key or config.google_books_api_key
        self.timeout = timeout if timeout is not None else config.google_books_timeout
        self._session = requests.Session()
        self._session.headers.update({"User-Agent": "shelfshare/0.1"})

    def _get(self, url: str, params: dict) -> dict:
        """Make GET request with error handling."""
        if self.api_key:
            params = {**params, "key": self.api_key}
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout:
            raise LookupServiceError("Request to Google Books timed out")
        except requests.exceptions.HTTPError as e:
            raise LookupServiceError(f"Google Books HTTP error: {e.response.status_code}")
        except requests.exceptions.RequestException as e:
            raise LookupServiceError(f"Failed to fetch from Google Books API: {e}")

    def lookup(self, isbn: str) -> BookMetadata:
        """Look up a book by ISBN.

        Args:
            isbn: ISBN-10 or ISBN-13, passed through as given

        Returns:
            Metadata from the first matching volume

        Raises:
            NotFoundError: If no volume matches
            LookupServiceError: If the service cannot be reached
        """
        isbn = (isbn or "").strip()
        if not isbn:
            raise ValidationError("ISBN is required")

        data = self._get(f"{self.BASE_URL}/volumes", {"q": f"isbn:{isbn}"})
        items = data.get("items") or []
        if not items:
            logger.info("No Google Books volume for ISBN %s", isbn)
            raise NotFoundError("Book not found")

        return self._volume_to_metadata(items[0].get("volumeInfo", {}), isbn)

    @staticmethod
    def _volume_to_metadata(volume: dict, isbn: str) -> BookMetadata:
        """Reshape a volumeInfo object into the book field set."""
        images = volume.get("imageLinks") or {}
        page_count = volume.get("pageCount")

        return BookMetadata(
            isbn=isbn,
            title=volume.get("title", ""),
            authors=", ".join(volume.get("authors", [])),
            publishers=volume.get("publisher", ""),
            pages=str(page_count) if page_count else "",
            genres=", ".join(volume.get("categories", [])),
            language=volume.get("language", ""),
            cover=images.get("thumbnail") or images.get("smallThumbnail") or "",
            description=volume.get("description", ""),
        )
