"""Balance top-up service."""

import logging
from decimal import Decimal, InvalidOperation

from apps.purchases.services.ledger import record_transaction
from apps.store.records import BALANCE_UPDATE, CENT, MAX_BALANCE, Customer, LedgerTransaction
from apps.store.services import PreconditionFailedError, atomic
from .customer_records import adjust_balance, resolve_customer
from .exceptions import InvalidAmountError

logger = logging.getLogger(__name__)


def parse_amount(raw) -> Decimal:
    """
    Parse a top-up amount.

    Raises:
        InvalidAmountError: Unless the value is a positive number of at
            least one cent and no more than ``MAX_BALANCE``
    """
    if raw is None or str(raw).strip() == '':
        raise InvalidAmountError("Please enter an amount")
    try:
        amount = Decimal(str(raw).strip())
        if not amount.is_finite():
            raise InvalidAmountError("Please enter a valid positive amount")
        amount = amount.quantize(CENT)
    except InvalidOperation:
        raise InvalidAmountError("Please enter a valid positive amount")

    if amount <= 0:
        raise InvalidAmountError("Please enter a valid positive amount")
    if amount > MAX_BALANCE:
        raise InvalidAmountError(f"Amount cannot exceed {MAX_BALANCE}")
    return amount


def top_up_balance(*, customer_id: int, amount) -> tuple[Customer, LedgerTransaction]:
    """
    Credit the customer's balance and record a ``Balance Update`` transaction.

    The credit and its transaction are written in one store transaction.
    A credit that would push the balance above ``MAX_BALANCE`` is rejected
    before anything is written.

    Args:
        customer_id: Customer's logical id
        amount: Amount to add (number or numeric string)

    Returns:
        (updated Customer, recorded LedgerTransaction)

    Raises:
        InvalidAmountError: If amount is not a positive number or the new
            balance would exceed ``MAX_BALANCE``
        CustomerNotFoundError: If the customer does not exist
    """
    value = parse_amount(amount)

    try:
        with atomic():
            new_balance = adjust_balance(customer_id, value, maximum=MAX_BALANCE)
            transaction = record_transaction(
                customer_id=customer_id,
                amount=value,
                payment_method=BALANCE_UPDATE,
            )
    except PreconditionFailedError:
        raise InvalidAmountError(f"Balance cannot exceed {MAX_BALANCE}")

    logger.info(
        "Customer %s topped up %s, balance now %s (transaction %s)",
        customer_id, value, new_balance, transaction.id,
    )
    return resolve_customer(customer_id), transaction
