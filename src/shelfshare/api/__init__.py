"""API module for external book metadata services."""

from .googlebooks import GoogleBooksClient

__all__ = ["GoogleBooksClient"]
