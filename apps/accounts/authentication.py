"""
JWT authentication for customers.

Customers are store documents, not Django users. Tokens carry the logical
customer id in the ``customer_id`` claim and authenticate as a
``CustomerSession``, the same identity object the purchase workflow receives.
"""

import logging

from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import RefreshToken

from apps.store.services import InvalidRecordError
from .services.customer_records import resolve_customer
from .services.exceptions import CustomerNotFoundError
from .services.session import CustomerSession

logger = logging.getLogger(__name__)


def tokens_for_session(session: CustomerSession) -> dict:
    """Issue a refresh/access token pair for a signed-in customer."""
    refresh = RefreshToken.for_user(session)
    refresh['email'] = session.email
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


class CustomerJWTAuthentication(JWTAuthentication):
    """Resolves the token's customer from the document store."""

    def get_user(self, validated_token):
        try:
            customer_id = int(validated_token[api_settings.USER_ID_CLAIM])
        except (KeyError, TypeError, ValueError):
            raise InvalidToken('Token contained no recognizable customer identification')

        try:
            customer = resolve_customer(customer_id)
        except (CustomerNotFoundError, InvalidRecordError):
            logger.info("Token presented for unknown customer %s", customer_id)
            raise AuthenticationFailed('Customer not found', code='user_not_found')

        return CustomerSession.from_customer(customer)
