import pytest
from rest_framework.test import APIClient

from apps.accounts.authentication import tokens_for_session
from apps.accounts.services import CustomerSession, MemorySessionStorage, SessionHolder
from apps.store.tests.factories import make_customer


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def customer(db):
    """A customer with a 50.00 balance."""
    make_customer(1, 'minh@gmail.com', balance='50.00', name='Minh')
    return 1


@pytest.fixture
def other_customer(db):
    make_customer(2, 'other@example.com', name='Other')
    return 2


@pytest.fixture
def legacy_customer(db):
    """A customer whose password was stored in plaintext under a generated key."""
    make_customer(3, 'legacy@example.com', password='plain123', key='f3a9c2d1', hashed=False)
    return 3


@pytest.fixture
def session(customer):
    return CustomerSession(customer_id=customer, email='minh@gmail.com', name='Minh')


@pytest.fixture
def holder():
    return SessionHolder(MemorySessionStorage())


@pytest.fixture
def authenticated_client(api_client, session):
    """Return an authenticated API client using JWT."""
    tokens = tokens_for_session(session)
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
    return api_client
