"""Domain-specific exceptions for accounts services."""


class AccountsServiceError(Exception):
    """Base exception for accounts services."""
    pass


class UserRegistrationError(AccountsServiceError):
    """Raised when customer sign-up fails."""
    pass


class InvalidCredentialsError(AccountsServiceError):
    """Raised when authentication credentials are invalid."""
    pass


class NotAuthenticatedError(AccountsServiceError):
    """Raised when an operation needs a signed-in customer and there is none."""
    pass


class CustomerNotFoundError(AccountsServiceError):
    """Raised when no customer document carries the requested id."""
    pass


class ProfileValidationError(AccountsServiceError):
    """Raised when required profile fields are missing or malformed."""
    pass


class EmailAlreadyUsedError(AccountsServiceError):
    """Raised when an email address already belongs to another customer."""
    pass


class PasswordChangeError(AccountsServiceError):
    """Raised when a requested password change is incomplete or too weak."""
    pass


class PasswordConfirmationError(AccountsServiceError):
    """Raised when the current password does not match."""
    pass


class InvalidAmountError(AccountsServiceError):
    """Raised when a balance top-up amount is not a positive number."""
    pass
