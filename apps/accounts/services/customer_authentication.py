"""Customer authentication service."""

import logging

from apps.store.records import Customer
from .customer_records import find_customer_by_email, update_customer
from .exceptions import InvalidCredentialsError
from .passwords import hash_password, verify_password

logger = logging.getLogger(__name__)


def authenticate_customer(*, email: str, password: str) -> Customer:
    """
    Authenticate a customer with email and password.

    An unknown email and a wrong password produce the same error, so callers
    cannot probe which addresses have accounts. A legacy plaintext password is
    re-hashed on the first successful sign-in.

    Args:
        email: Customer's email
        password: Customer's password

    Returns:
        Authenticated Customer

    Raises:
        InvalidCredentialsError: If credentials are invalid
    """
    customer = find_customer_by_email(email)
    if customer is None:
        logger.info("Sign-in rejected: unknown email")
        raise InvalidCredentialsError("Invalid email or password")

    matches, needs_rehash = verify_password(password, customer.password)
    if not matches:
        logger.info("Sign-in rejected for customer %s", customer.id)
        raise InvalidCredentialsError("Invalid email or password")

    if needs_rehash:
        customer = update_customer(customer.id, {'Password': hash_password(password)})
        logger.info("Upgraded plaintext password of customer %s", customer.id)

    return customer
