"""
Exception types raised by the book catalog.
"""


class CatalogError(Exception):
    """Base class for catalog errors."""


class BookValidationError(CatalogError):
    """Raised when a book payload is missing required data or is malformed."""


class PersistenceError(CatalogError):
    """Raised when the book store rejects a write or returns no identifier."""


class FilesystemError(CatalogError):
    """Raised when a cover file cannot be moved into place."""
