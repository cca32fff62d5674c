"""Exception hierarchy shared by the store, managers and HTTP layer."""


class ShelfshareError(Exception):
    """Base exception for shelfshare errors."""

    pass


class ValidationError(ShelfshareError):
    """Raised when required input is missing or empty."""

    pass


class ConflictError(ShelfshareError):
    """Raised on a duplicate ISBN or a duplicate member name."""

    pass


class NotFoundError(ShelfshareError):
    """Raised when a referenced book, entry or lookup result is absent."""

    pass


class ConfigurationError(ShelfshareError):
    """Raised when the store lacks something an operation cannot proceed without."""

    pass


class TransientStoreError(ShelfshareError):
    """Raised when a call against the backing store fails."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)


class LookupServiceError(ShelfshareError):
    """Raised when the book metadata service cannot be reached."""

    pass
