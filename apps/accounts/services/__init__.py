"""Services for accounts business logic."""

from .exceptions import (
    AccountsServiceError,
    UserRegistrationError,
    InvalidCredentialsError,
    NotAuthenticatedError,
    CustomerNotFoundError,
    ProfileValidationError,
    EmailAlreadyUsedError,
    PasswordChangeError,
    PasswordConfirmationError,
    InvalidAmountError,
)
from .customer_records import (
    resolve_customer,
    find_customer_by_email,
    update_customer,
    adjust_balance,
)
from .customer_registration import register_customer
from .customer_authentication import authenticate_customer
from .session import (
    CustomerSession,
    SessionHolder,
    FileSessionStorage,
    MemorySessionStorage,
)
from .profile_management import update_profile
from .balance_management import top_up_balance

__all__ = [
    # Exceptions
    'AccountsServiceError',
    'UserRegistrationError',
    'InvalidCredentialsError',
    'NotAuthenticatedError',
    'CustomerNotFoundError',
    'ProfileValidationError',
    'EmailAlreadyUsedError',
    'PasswordChangeError',
    'PasswordConfirmationError',
    'InvalidAmountError',
    # Services
    'resolve_customer',
    'find_customer_by_email',
    'update_customer',
    'adjust_balance',
    'register_customer',
    'authenticate_customer',
    'CustomerSession',
    'SessionHolder',
    'FileSessionStorage',
    'MemorySessionStorage',
    'update_profile',
    'top_up_balance',
]
