"""
Customer lookup and mutation.

The logical customer ``Id`` and the store key are not guaranteed to be equal
(older data was keyed by generated ids, and re-keying scripts renumbered
documents). Every mutation therefore goes through ``resolve_customer()``,
which tries the conventional key first and falls back to a query on ``Id``.

Email uniqueness is enforced by claim documents in ``customer_emails``;
the scan in ``find_customer_by_email`` still covers customers written
before claims existed.
"""

import hashlib
import logging
from decimal import Decimal
from typing import Optional

from apps.store.records import CUSTOMER_EMAILS, CUSTOMERS, Customer
from apps.store.services.documents import matching_field
from apps.store.services import (
    DocumentNotFoundError,
    InvalidRecordError,
    Filter,
    PreconditionFailedError,
    create_document,
    delete_document,
    get_collection,
    get_document,
    increment_field,
    query_documents,
    update_document,
)
from .exceptions import CustomerNotFoundError, EmailAlreadyUsedError

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or '').strip().lower()


def resolve_customer(customer_id: int) -> Customer:
    """
    Load a customer by logical id, with its current store key.

    Raises:
        CustomerNotFoundError: If no document carries this id
    """
    document = get_document(CUSTOMERS, str(customer_id))
    if document is not None:
        try:
            customer = Customer.from_document(document)
        except InvalidRecordError:
            customer = None
        # The key may belong to a different customer after a renumbering
        if customer is not None and customer.id == customer_id:
            return customer

    matches = query_documents(CUSTOMERS, [Filter('Id', '==', customer_id)], limit=1)
    if not matches:
        raise CustomerNotFoundError(f"Customer {customer_id} not found")

    logger.debug("Customer %s resolved through Id query to key %s", customer_id, matches[0]['id'])
    return Customer.from_document(matches[0])


def find_customer_by_email(email: str) -> Optional[Customer]:
    """Return the customer owning ``email`` (case-insensitive), if any."""
    raw = (email or '').strip()
    if not raw:
        return None

    candidates = sorted({raw, normalize_email(raw)})
    matches = query_documents(CUSTOMERS, [Filter('Email', 'in', candidates)], limit=1)
    if matches:
        return Customer.from_document(matches[0])

    # Older documents kept the email as typed at sign-up
    wanted = normalize_email(raw)
    for document in get_collection(CUSTOMERS):
        stored = document.get(matching_field(document, 'Email'))
        if isinstance(stored, str) and normalize_email(stored) == wanted:
            return Customer.from_document(document)
    return None


def update_customer(customer_id: int, changes: dict) -> Customer:
    """
    Merge ``changes`` into the customer's document.

    Raises:
        CustomerNotFoundError: If the customer does not exist
    """
    customer = resolve_customer(customer_id)
    try:
        document = update_document(CUSTOMERS, customer.key, changes)
    except DocumentNotFoundError:
        raise CustomerNotFoundError(f"Customer {customer_id} not found")
    return Customer.from_document(document)


def adjust_balance(
    customer_id: int,
    delta: Decimal,
    *,
    minimum: Optional[Decimal] = None,
    maximum: Optional[Decimal] = None,
) -> Decimal:
    """
    Atomically add ``delta`` to the customer's balance.

    Returns:
        The new balance

    Raises:
        CustomerNotFoundError: If the customer does not exist
        PreconditionFailedError: If the balance would leave the
            ``minimum``/``maximum`` range
    """
    customer = resolve_customer(customer_id)
    try:
        return increment_field(
            CUSTOMERS, customer.key, 'Balance', delta,
            minimum=minimum, maximum=maximum,
        )
    except DocumentNotFoundError:
        raise CustomerNotFoundError(f"Customer {customer_id} not found")


def _email_claim_key(email: str) -> str:
    return hashlib.sha256(normalize_email(email).encode('utf-8')).hexdigest()


def claim_email(email: str, customer_id: int) -> None:
    """
    Reserve an email address for a customer.

    Claims are keyed by the normalized address, so the store's key uniqueness
    decides between two customers racing for the same email. Call it inside
    the ``atomic()`` block that writes the customer so a failed write also
    drops the claim. Claiming an address the customer already holds is a
    no-op.

    Raises:
        EmailAlreadyUsedError: If another customer holds the address
    """
    key = _email_claim_key(email)
    try:
        create_document(CUSTOMER_EMAILS, key, {
            'Email': normalize_email(email),
            'CustomerId': customer_id,
        })
    except PreconditionFailedError:
        claim = get_document(CUSTOMER_EMAILS, key)
        if claim is None or claim.get('CustomerId') != customer_id:
            raise EmailAlreadyUsedError("This email is already used by another account")


def release_email(email: str, customer_id: int) -> None:
    """Drop the customer's claim on an address; claims of others are left alone."""
    key = _email_claim_key(email)
    claim = get_document(CUSTOMER_EMAILS, key, for_update=True)
    if claim is not None and claim.get('CustomerId') == customer_id:
        delete_document(CUSTOMER_EMAILS, key)
