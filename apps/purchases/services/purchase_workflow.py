"""
Course purchase workflow.

A purchase touches three collections: the course grant, the transaction
ledger and the customer's balance. All three writes happen inside one store
transaction, so a failure at any step leaves none of them behind.

The grant key ``{customerId}_{courseId}`` is deterministic, which makes a
retried purchase detectable: the second attempt finds the grant and returns
the original receipt instead of charging again.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.utils import timezone

from apps.accounts.services.customer_records import adjust_balance, resolve_customer
from apps.accounts.services.exceptions import NotAuthenticatedError
from apps.catalog.services.catalog_reader import get_course
from apps.catalog.services.pricing import parse_price
from apps.store.records import (
    COURSE_GRANTS,
    CUSTOMERS,
    CourseGrant,
    grant_key,
)
from apps.store.services import (
    PreconditionFailedError,
    StoreError,
    add_document_with_id,
    atomic,
    get_document,
)
from .exceptions import (
    InsufficientFundsError,
    InvalidPaymentMethodError,
    PurchaseFailedError,
)
from .ledger import get_transaction, record_transaction

logger = logging.getLogger(__name__)

PAYMENT_METHODS = {
    'credit_card': 'Credit Card',
    'debit_card': 'Debit Card',
    'apple_pay': 'Apple Pay',
    'paypal': 'PayPal',
    'bank_transfer': 'Bank Transfer',
}
DEFAULT_PAYMENT_METHOD = 'credit_card'


@dataclass(frozen=True)
class PurchaseReceipt:
    """What the customer is shown after buying a course."""

    course_id: int
    course_title: str
    price: Decimal
    payment_method: str
    balance: Decimal
    purchase_date: str
    transaction_id: Optional[int]
    already_owned: bool = False


def payment_method_label(method: str) -> str:
    """
    Map a payment method key (or its label) to the label stored in the ledger.

    Raises:
        InvalidPaymentMethodError: For unknown methods
    """
    value = (method or DEFAULT_PAYMENT_METHOD).strip()
    if value in PAYMENT_METHODS:
        return PAYMENT_METHODS[value]
    for label in PAYMENT_METHODS.values():
        if value.casefold() == label.casefold():
            return label
    raise InvalidPaymentMethodError(f"Unsupported payment method: {method}")


def _existing_receipt(grant: CourseGrant, course, price: Decimal, customer_id: int) -> PurchaseReceipt:
    transaction = (
        get_transaction(grant.transaction_id) if grant.transaction_id is not None else None
    )
    return PurchaseReceipt(
        course_id=course.id,
        course_title=course.name,
        price=transaction.amount if transaction else price,
        payment_method=transaction.payment_method if transaction else '',
        balance=resolve_customer(customer_id).balance,
        purchase_date=grant.purchased_at or (transaction.date_time if transaction else ''),
        transaction_id=grant.transaction_id,
        already_owned=True,
    )


def purchase_course(*, session, course_id: int, payment_method: str = DEFAULT_PAYMENT_METHOD) -> PurchaseReceipt:
    """
    Buy a course with the signed-in customer's balance.

    Args:
        session: CustomerSession of the buyer
        course_id: Logical id of the course
        payment_method: One of ``PAYMENT_METHODS`` (key or label)

    Returns:
        PurchaseReceipt; ``already_owned`` is True when the customer had
        already bought the course and nothing new was written

    Raises:
        NotAuthenticatedError: If there is no session
        CourseNotFoundError: If the course does not exist
        CustomerNotFoundError: If the session's customer no longer exists
        InsufficientFundsError: If the balance does not cover the price
        InvalidPaymentMethodError: For unknown payment methods
        PurchaseFailedError: If the store failed; the purchase was rolled back
    """
    if session is None:
        raise NotAuthenticatedError("Please log in to purchase courses")

    label = payment_method_label(payment_method)
    customer_id = session.customer_id

    course = get_course(course_id)
    price = parse_price(course.price_text)
    key = grant_key(customer_id, course.id)

    customer = resolve_customer(customer_id)
    if customer.balance < price and get_document(COURSE_GRANTS, key) is None:
        raise InsufficientFundsError(
            f"Insufficient balance. You need ${price - customer.balance:.2f} more.",
            balance=customer.balance,
            price=price,
        )

    try:
        with atomic():
            # Serializes purchases of the same customer
            get_document(CUSTOMERS, customer.key, for_update=True)

            existing = get_document(COURSE_GRANTS, key, for_update=True)
            if existing is not None:
                logger.info("Customer %s already owns course %s", customer_id, course.id)
                return _existing_receipt(
                    CourseGrant.from_document(existing), course, price, customer_id
                )

            transaction = record_transaction(
                customer_id=customer_id,
                amount=price,
                payment_method=label,
            )
            grant = CourseGrant(
                customer_id=customer_id,
                course_id=course.id,
                transaction_id=transaction.id,
                purchased_at=transaction.date_time,
            )
            add_document_with_id(COURSE_GRANTS, key, grant.to_document())

            new_balance = adjust_balance(customer_id, -price, minimum=Decimal('0'))
    except PreconditionFailedError:
        current = resolve_customer(customer_id).balance
        raise InsufficientFundsError(
            f"Insufficient balance. You need ${price - current:.2f} more.",
            balance=current,
            price=price,
        )
    except StoreError as e:
        logger.warning("Purchase of course %s by customer %s failed: %s", course.id, customer_id, e)
        raise PurchaseFailedError("Purchase failed, please try again") from e

    logger.info(
        "Customer %s bought course %s for %s via %s, balance now %s",
        customer_id, course.id, price, label, new_balance,
    )
    return PurchaseReceipt(
        course_id=course.id,
        course_title=course.name,
        price=price,
        payment_method=label,
        balance=new_balance.quantize(Decimal('0.01')),
        purchase_date=transaction.date_time or timezone.now().isoformat(),
        transaction_id=transaction.id,
    )
