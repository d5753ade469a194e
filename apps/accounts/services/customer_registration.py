"""Customer sign-up service."""

import logging
from datetime import date
from typing import Optional

from django.utils import timezone

from apps.store.records import CUSTOMERS, Customer
from apps.store.services import add_document_with_id, allocate_id, atomic
from .customer_records import claim_email, find_customer_by_email, normalize_email
from .exceptions import EmailAlreadyUsedError, UserRegistrationError
from .passwords import MIN_PASSWORD_LENGTH, hash_password

logger = logging.getLogger(__name__)


def register_customer(
    *,
    email: str,
    password: str,
    name: str,
    phone_number: str = '',
    date_of_birth: Optional[date] = None,
) -> Customer:
    """
    Create a customer account with a zero balance.

    The new customer gets the next integer id and is stored under the key
    ``str(id)``. Registration does not sign the customer in.

    Args:
        email: Email address, unique across customers
        password: Plain password (hashed before it is stored)
        name: Full name
        phone_number: Optional phone number
        date_of_birth: Optional date of birth

    Returns:
        Created Customer

    Raises:
        UserRegistrationError: If the email is taken or the input is invalid
    """
    email = normalize_email(email)
    name = (name or '').strip()

    if not email or not name or not password:
        raise UserRegistrationError("Please fill in all fields")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise UserRegistrationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )

    with atomic():
        if find_customer_by_email(email) is not None:
            raise UserRegistrationError("User already exists")

        customer_id = allocate_id(CUSTOMERS, seed_collection=CUSTOMERS)
        try:
            claim_email(email, customer_id)
        except EmailAlreadyUsedError:
            raise UserRegistrationError("User already exists")

        customer = Customer(
            id=customer_id,
            email=email,
            password=hash_password(password),
            name=name,
            phone_number=(phone_number or '').strip(),
            date_of_birth=date_of_birth.isoformat() if date_of_birth else '',
            date_created=timezone.localdate().isoformat(),
            image_url=None,
            key=str(customer_id),
        )
        add_document_with_id(CUSTOMERS, customer.key, customer.to_document())

    logger.info("Registered customer %s", customer_id)
    return customer
