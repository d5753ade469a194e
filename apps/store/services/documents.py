"""
Document store helper surface.

Collections of keyed JSON documents backed by the ``Document`` model. Records
are returned as plain dicts with the store key attached as ``id``, the same
shape every caller in the project consumes.

Field names are matched case-insensitively on write, so merging
``{'Balance': 5}`` into a document that holds ``balance`` replaces the old
spelling instead of adding a second field.
"""

import logging
import re
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from functools import wraps
from typing import Any, Iterable, NamedTuple, Optional

from django.db import DatabaseError, IntegrityError, transaction

from apps.store.models import Document
from .exceptions import (
    DocumentNotFoundError,
    InvalidQueryError,
    PreconditionFailedError,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)

FIELD_NAME_RE = re.compile(r'^[A-Za-z][A-Za-z0-9]*(_[A-Za-z0-9]+)*$')

OPERATOR_LOOKUPS = {
    '==': 'exact',
    '<': 'lt',
    '<=': 'lte',
    '>': 'gt',
    '>=': 'gte',
    'in': 'in',
}


class Filter(NamedTuple):
    """A ``{field, operator, value}`` query predicate."""

    field: str
    operator: str
    value: Any


def translate_store_errors(func):
    """Convert database failures into ``StoreUnavailableError``."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError as e:
            logger.warning("Store operation %s failed: %s", func.__name__, e)
            raise StoreUnavailableError(f"Document store unavailable: {e}") from e
    return wrapper


@contextmanager
def atomic():
    """
    Group several store writes into one all-or-nothing transaction.

    Nested blocks become savepoints. Any exception leaving the block rolls
    back every write made inside it.
    """
    try:
        with transaction.atomic():
            yield
    except DatabaseError as e:
        logger.warning("Store transaction rolled back: %s", e)
        raise StoreUnavailableError(f"Document store unavailable: {e}") from e


def to_json_value(value):
    """Convert Python values into something the JSON column can hold."""
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    return value


def matching_field(data: dict, field: str) -> str:
    """Return the existing spelling of ``field`` in ``data``, or ``field``."""
    if field in data:
        return field
    folded = field.casefold()
    for existing in data:
        if existing.casefold() == folded:
            return existing
    return field


def _merge(data: dict, partial: dict) -> dict:
    merged = dict(data)
    for field, value in partial.items():
        existing = matching_field(merged, field)
        if existing != field:
            del merged[existing]
        merged[field] = to_json_value(value)
    return merged


def _validate_field(field: str) -> str:
    if not isinstance(field, str) or not FIELD_NAME_RE.match(field):
        raise InvalidQueryError(f"Invalid field name: {field!r}")
    return field


def _coerce_filter(raw) -> Filter:
    if isinstance(raw, Filter):
        return raw
    if isinstance(raw, dict):
        try:
            return Filter(raw['field'], raw['operator'], raw['value'])
        except KeyError as e:
            raise InvalidQueryError(f"Filter is missing {e.args[0]!r}")
    if isinstance(raw, (list, tuple)) and len(raw) == 3:
        return Filter(*raw)
    raise InvalidQueryError(f"Unsupported filter: {raw!r}")


def _apply_filter(queryset, query_filter: Filter):
    field = _validate_field(query_filter.field)
    value = to_json_value(query_filter.value)

    if query_filter.operator == '!=':
        return queryset.exclude(**{f'data__{field}': value})

    lookup = OPERATOR_LOOKUPS.get(query_filter.operator)
    if lookup is None:
        raise InvalidQueryError(f"Unsupported operator: {query_filter.operator!r}")
    if lookup == 'in' and not isinstance(value, list):
        raise InvalidQueryError("The 'in' operator requires a list value")

    return queryset.filter(**{f'data__{field}__{lookup}': value})


@translate_store_errors
def get_collection(name: str) -> list[dict]:
    """Return every document of a collection in store order."""
    return [
        document.as_record()
        for document in Document.objects.filter(collection=name)
    ]


@translate_store_errors
def get_document(name: str, key: str, *, for_update: bool = False) -> Optional[dict]:
    """
    Fetch one document by its store key.

    Args:
        name: Collection name
        key: Store document key
        for_update: Lock the row until the surrounding ``atomic()`` block ends

    Returns:
        The record dict, or None when the key does not exist
    """
    queryset = Document.objects.filter(collection=name, key=str(key))
    if for_update:
        queryset = queryset.select_for_update()
    document = queryset.first()
    return document.as_record() if document else None


@translate_store_errors
def add_document(name: str, data: dict) -> str:
    """Store ``data`` under a generated key and return the key."""
    key = uuid.uuid4().hex
    Document.objects.create(collection=name, key=key, data=to_json_value(dict(data)))
    return key


@translate_store_errors
def create_document(name: str, key, data: dict) -> str:
    """
    Store ``data`` under ``key`` only if no document holds that key yet.

    Of two concurrent creates of one key exactly one succeeds; the other
    waits for the first transaction and then fails.

    Raises:
        PreconditionFailedError: If a document already has this key
    """
    key = str(key)
    try:
        with transaction.atomic():
            Document.objects.create(collection=name, key=key, data=to_json_value(dict(data)))
    except IntegrityError:
        raise PreconditionFailedError(f"{name}/{key} already exists")
    return key


@translate_store_errors
def add_document_with_id(name: str, key, data: dict) -> str:
    """
    Store ``data`` under a caller-chosen key, replacing any existing document.

    Writing the same key twice leaves exactly one document.
    """
    key = str(key)
    Document.objects.update_or_create(
        collection=name,
        key=key,
        defaults={'data': to_json_value(dict(data))},
    )
    return key


@translate_store_errors
def update_document(name: str, key, partial: dict) -> dict:
    """
    Merge ``partial`` into an existing document.

    Raises:
        DocumentNotFoundError: If no document has this key
    """
    with transaction.atomic():
        try:
            document = (
                Document.objects
                .select_for_update()
                .get(collection=name, key=str(key))
            )
        except Document.DoesNotExist:
            raise DocumentNotFoundError(f"{name}/{key} not found")

        document.data = _merge(document.data, partial)
        document.save(update_fields=['data', 'updated_at'])

    return document.as_record()


@translate_store_errors
def delete_document(name: str, key) -> None:
    """
    Delete a document.

    Raises:
        DocumentNotFoundError: If no document has this key
    """
    deleted, _ = Document.objects.filter(collection=name, key=str(key)).delete()
    if not deleted:
        raise DocumentNotFoundError(f"{name}/{key} not found")


@translate_store_errors
def query_documents(
    name: str,
    filters: Iterable = (),
    order_by: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[dict]:
    """
    Query a collection.

    Args:
        name: Collection name
        filters: ``{field, operator, value}`` triples, all of which must hold
        order_by: Field to sort by, ``-field`` for descending
        limit: Maximum number of records

    Returns:
        Matching records with the store key attached as ``id``

    Raises:
        InvalidQueryError: For unknown operators or malformed field names
    """
    queryset = Document.objects.filter(collection=name)

    for raw_filter in filters:
        queryset = _apply_filter(queryset, _coerce_filter(raw_filter))

    if order_by:
        descending = order_by.startswith('-')
        field = _validate_field(order_by.lstrip('-'))
        prefix = '-' if descending else ''
        queryset = queryset.order_by(f'{prefix}data__{field}', 'id')

    if limit is not None:
        if limit < 0:
            raise InvalidQueryError("Limit must not be negative")
        queryset = queryset[:limit]

    return [document.as_record() for document in queryset]


@translate_store_errors
def increment_field(
    name: str,
    key,
    field: str,
    delta,
    *,
    minimum=None,
    maximum=None,
) -> Decimal:
    """
    Atomically add ``delta`` to a numeric field.

    The row is locked for the read-modify-write, so two concurrent increments
    never read the same starting value.

    Args:
        name: Collection name
        key: Store document key
        field: Numeric field (matched case-insensitively)
        delta: Amount to add (negative to subtract)
        minimum: If given, the result may not drop below it
        maximum: If given, the result may not rise above it

    Returns:
        The new value as Decimal

    Raises:
        DocumentNotFoundError: If no document has this key
        PreconditionFailedError: If the result would fall below ``minimum``
            or rise above ``maximum``
    """
    with transaction.atomic():
        try:
            document = (
                Document.objects
                .select_for_update()
                .get(collection=name, key=str(key))
            )
        except Document.DoesNotExist:
            raise DocumentNotFoundError(f"{name}/{key} not found")

        existing = matching_field(document.data, field)
        current = Decimal(str(document.data.get(existing) or 0))
        new_value = current + Decimal(str(delta))

        if minimum is not None and new_value < Decimal(str(minimum)):
            raise PreconditionFailedError(
                f"{name}/{key}.{field} would drop to {new_value}, below {minimum}"
            )
        if maximum is not None and new_value > Decimal(str(maximum)):
            raise PreconditionFailedError(
                f"{name}/{key}.{field} would rise to {new_value}, above {maximum}"
            )

        document.data = _merge(document.data, {field: new_value})
        document.save(update_fields=['data', 'updated_at'])

    return new_value
