"""Document store services."""

from .exceptions import (
    StoreError,
    DocumentNotFoundError,
    InvalidQueryError,
    PreconditionFailedError,
    StoreUnavailableError,
    InvalidRecordError,
)
from .documents import (
    Filter,
    atomic,
    get_collection,
    get_document,
    add_document,
    add_document_with_id,
    create_document,
    update_document,
    delete_document,
    query_documents,
    increment_field,
)
from .counters import allocate_id

__all__ = [
    # Exceptions
    'StoreError',
    'DocumentNotFoundError',
    'InvalidQueryError',
    'PreconditionFailedError',
    'StoreUnavailableError',
    'InvalidRecordError',
    # Services
    'Filter',
    'atomic',
    'get_collection',
    'get_document',
    'add_document',
    'add_document_with_id',
    'create_document',
    'update_document',
    'delete_document',
    'query_documents',
    'increment_field',
    'allocate_id',
]
