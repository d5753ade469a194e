"""Password hashing for customer documents."""

from django.contrib.auth.hashers import check_password, identify_hasher, make_password
from django.utils.crypto import constant_time_compare

MIN_PASSWORD_LENGTH = 6


def hash_password(raw_password: str) -> str:
    """Hash with the configured Django hasher (salted per record)."""
    return make_password(raw_password)


def is_hashed(stored: str) -> bool:
    """Whether ``stored`` is an encoded hash rather than a legacy plaintext value."""
    if not stored:
        return False
    try:
        identify_hasher(stored)
    except ValueError:
        return False
    return True


def verify_password(raw_password: str, stored: str) -> tuple[bool, bool]:
    """
    Check a password against its stored value.

    Customer documents written before passwords were hashed hold the
    plaintext. Those are compared in constant time and reported as needing an
    upgrade so the caller can re-hash them.

    Returns:
        (matches, needs_rehash)
    """
    if not stored or raw_password is None:
        return False, False

    if is_hashed(stored):
        return check_password(raw_password, stored), False

    return constant_time_compare(raw_password, stored), True
