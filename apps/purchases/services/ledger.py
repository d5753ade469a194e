"""
Transaction ledger.

Every money movement on a customer account is a document in the
``transactions`` collection. Top-ups are credits (``Balance Update``), every
other payment method is a course purchase debit, so a customer's balance can
always be reconstructed from the ledger.
"""

import logging
from dataclasses import dataclass, replace
from decimal import Decimal

from django.utils import timezone

from apps.store.records import CENT, TRANSACTIONS, LedgerTransaction, to_money
from apps.store.services import (
    Filter,
    InvalidRecordError,
    add_document_with_id,
    allocate_id,
    query_documents,
)

logger = logging.getLogger(__name__)

TRANSACTION_CUSTOMER_FIELDS = ('CustomerId', 'customerId')


@dataclass(frozen=True)
class LedgerSummary:
    credits: Decimal
    debits: Decimal
    count: int

    @property
    def net(self) -> Decimal:
        return self.credits - self.debits


@dataclass(frozen=True)
class Reconciliation:
    """Stored balance compared to the balance the ledger implies."""

    opening_balance: Decimal
    expected_balance: Decimal
    stored_balance: Decimal
    summary: LedgerSummary

    @property
    def difference(self) -> Decimal:
        return self.stored_balance - self.expected_balance

    @property
    def is_consistent(self) -> bool:
        return self.difference == 0


def record_transaction(*, customer_id: int, amount, payment_method: str) -> LedgerTransaction:
    """
    Write a successful transaction under a freshly allocated id.

    Args:
        customer_id: Customer's logical id
        amount: Positive amount; its direction follows from the payment method
        payment_method: Display label, ``Balance Update`` for top-ups

    Returns:
        The recorded LedgerTransaction
    """
    transaction = LedgerTransaction(
        id=allocate_id(TRANSACTIONS, seed_collection=TRANSACTIONS),
        customer_id=customer_id,
        amount=to_money(amount),
        date_time=timezone.now().isoformat(),
        payment_method=payment_method,
        status=True,
    )
    key = add_document_with_id(TRANSACTIONS, transaction.id, transaction.to_document())

    logger.info(
        "Recorded transaction %s: customer %s, %s %s",
        transaction.id, customer_id, payment_method, transaction.amount,
    )
    return replace(transaction, key=key)


def get_transaction(transaction_id: int):
    """Return the transaction with this id, or None."""
    matches = query_documents(TRANSACTIONS, [Filter('Id', '==', transaction_id)], limit=1)
    return LedgerTransaction.from_document(matches[0]) if matches else None


def list_customer_transactions(customer_id: int) -> list:
    """All transactions of a customer, newest first."""
    documents = []
    for field_name in TRANSACTION_CUSTOMER_FIELDS:
        documents.extend(
            query_documents(TRANSACTIONS, [Filter(field_name, '==', customer_id)])
        )

    transactions = {}
    for document in documents:
        try:
            record = LedgerTransaction.from_document(document)
        except InvalidRecordError as e:
            logger.warning("Skipping unreadable transaction document: %s", e)
            continue
        transactions[record.key] = record

    return sorted(transactions.values(), key=lambda t: t.id, reverse=True)


def summarize_ledger(customer_id: int) -> LedgerSummary:
    """Total credits and debits of the customer's successful transactions."""
    credits = Decimal('0.00')
    debits = Decimal('0.00')
    count = 0
    for transaction in list_customer_transactions(customer_id):
        if not transaction.status:
            continue
        count += 1
        if transaction.is_credit:
            credits += transaction.amount
        else:
            debits += transaction.amount
    return LedgerSummary(credits=credits.quantize(CENT), debits=debits.quantize(CENT), count=count)


def reconcile_balance(customer_id: int, opening_balance=0) -> Reconciliation:
    """
    Check that ``opening + credits - debits`` equals the stored balance.

    Raises:
        CustomerNotFoundError: If the customer does not exist
    """
    from apps.accounts.services.customer_records import resolve_customer

    opening = to_money(opening_balance)
    summary = summarize_ledger(customer_id)
    stored = resolve_customer(customer_id).balance
    result = Reconciliation(
        opening_balance=opening,
        expected_balance=(opening + summary.net).quantize(CENT),
        stored_balance=stored,
        summary=summary,
    )
    if not result.is_consistent:
        logger.warning(
            "Customer %s balance %s differs from ledger by %s",
            customer_id, stored, result.difference,
        )
    return result
