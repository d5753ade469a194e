"""
Domain-specific exceptions for the document store.

Callers catch these at their service boundary and translate them into their
own error vocabulary. Raw database errors never leave the store package.
"""


class StoreError(Exception):
    """Base exception for all document store errors."""
    pass


class DocumentNotFoundError(StoreError):
    """Raised when a keyed document does not exist in its collection."""
    pass


class InvalidQueryError(StoreError):
    """Raised when a filter, field name or ordering cannot be expressed."""
    pass


class PreconditionFailedError(StoreError):
    """Raised when a conditional write would violate its precondition."""
    pass


class StoreUnavailableError(StoreError):
    """Raised when the backing database rejects or fails an operation."""
    pass


class InvalidRecordError(StoreError):
    """Raised when a stored document cannot be read as its record type."""
    pass
