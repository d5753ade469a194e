"""Profile management service."""

import logging
from datetime import date
from typing import Optional, Union

from apps.store.records import Customer
from apps.store.services import atomic
from .customer_records import (
    claim_email,
    find_customer_by_email,
    normalize_email,
    release_email,
    resolve_customer,
    update_customer,
)
from .exceptions import (
    EmailAlreadyUsedError,
    PasswordChangeError,
    PasswordConfirmationError,
    ProfileValidationError,
)
from .passwords import MIN_PASSWORD_LENGTH, hash_password, verify_password

logger = logging.getLogger(__name__)


def _password_changes(
    customer: Customer,
    current_password: str,
    new_password: str,
    confirm_password: str,
) -> dict:
    if not current_password:
        raise PasswordChangeError("Please enter your current password")
    if not new_password:
        raise PasswordChangeError("Please enter a new password")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise PasswordChangeError(
            f"New password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    if new_password != confirm_password:
        raise PasswordChangeError("New passwords do not match")

    matches, _ = verify_password(current_password, customer.password)
    if not matches:
        raise PasswordConfirmationError("Current password is incorrect")

    return {'Password': hash_password(new_password)}


def update_profile(
    *,
    customer_id: int,
    name: str,
    email: str,
    phone_number: Optional[str] = None,
    date_of_birth: Optional[Union[date, str]] = None,
    image_url: Optional[str] = None,
    current_password: str = '',
    new_password: str = '',
    confirm_password: str = '',
) -> Customer:
    """
    Update profile fields and optionally change the password.

    A password change is requested as soon as any of the three password
    fields is non-blank; all three then have to be valid. Fields passed as
    None are left untouched.

    Args:
        customer_id: Customer's logical id
        name: Full name (required)
        email: Email address (required, unique)
        phone_number: New phone number
        date_of_birth: New date of birth
        image_url: New avatar URL, blank clears it
        current_password: Current password, required for a password change
        new_password: New password, at least 6 characters
        confirm_password: Must equal ``new_password``

    Returns:
        The updated Customer

    Raises:
        ProfileValidationError: If name or email is missing
        PasswordChangeError: If the password fields are incomplete or invalid
        PasswordConfirmationError: If the current password is wrong
        EmailAlreadyUsedError: If the email belongs to another customer
        CustomerNotFoundError: If the customer does not exist
    """
    name = (name or '').strip()
    email = normalize_email(email)
    if not name or not email:
        raise ProfileValidationError("Please fill in all required fields")

    current_password = (current_password or '').strip()
    new_password = (new_password or '').strip()
    confirm_password = (confirm_password or '').strip()
    wants_password_change = bool(current_password or new_password or confirm_password)

    with atomic():
        customer = resolve_customer(customer_id)

        changes = {'Name': name, 'Email': email}
        if phone_number is not None:
            changes['PhoneNumber'] = phone_number.strip()
        if date_of_birth is not None:
            changes['DateOfBirth'] = (
                date_of_birth.isoformat() if isinstance(date_of_birth, date) else str(date_of_birth)
            )
        if image_url is not None:
            changes['ImageUrl'] = image_url.strip() or None

        if wants_password_change:
            changes.update(
                _password_changes(customer, current_password, new_password, confirm_password)
            )

        if email != normalize_email(customer.email):
            owner = find_customer_by_email(email)
            if owner is not None and owner.id != customer.id:
                raise EmailAlreadyUsedError("This email is already used by another account")
            claim_email(email, customer.id)
            release_email(customer.email, customer.id)

        updated = update_customer(customer_id, changes)

    logger.info(
        "Customer %s updated profile%s",
        customer_id,
        " and password" if wants_password_change else "",
    )
    return updated
