"""Services for purchases business logic."""

from .exceptions import (
    PurchaseServiceError,
    InsufficientFundsError,
    InvalidPaymentMethodError,
    PurchaseFailedError,
)
# ledger first: accounts.services imports it while purchase_workflow imports accounts
from .ledger import (
    LedgerSummary,
    Reconciliation,
    record_transaction,
    get_transaction,
    list_customer_transactions,
    summarize_ledger,
    reconcile_balance,
)
from .purchase_workflow import (
    PAYMENT_METHODS,
    PurchaseReceipt,
    payment_method_label,
    purchase_course,
)

__all__ = [
    # Exceptions
    'PurchaseServiceError',
    'InsufficientFundsError',
    'InvalidPaymentMethodError',
    'PurchaseFailedError',
    # Ledger
    'LedgerSummary',
    'Reconciliation',
    'record_transaction',
    'get_transaction',
    'list_customer_transactions',
    'summarize_ledger',
    'reconcile_balance',
    # Workflow
    'PAYMENT_METHODS',
    'PurchaseReceipt',
    'payment_method_label',
    'purchase_course',
]
