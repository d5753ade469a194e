"""
Domain exceptions for purchases app.

Workflow failures are split into the cases a caller reacts to differently:
not enough money, a bad payment method, and a store failure that rolled the
purchase back.
"""


class PurchaseServiceError(Exception):
    """Base exception for purchase service errors."""
    pass


class InsufficientFundsError(PurchaseServiceError):
    """Raised when the customer's balance does not cover the price."""

    def __init__(self, message, *, balance=None, price=None):
        super().__init__(message)
        self.balance = balance
        self.price = price


class InvalidPaymentMethodError(PurchaseServiceError):
    """Raised when the payment method is not one of the accepted methods."""
    pass


class PurchaseFailedError(PurchaseServiceError):
    """Raised when the store failed mid-purchase; nothing was written."""
    pass
