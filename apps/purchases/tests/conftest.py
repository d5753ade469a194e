import pytest
from rest_framework.test import APIClient

from apps.accounts.authentication import tokens_for_session
from apps.accounts.services import CustomerSession
from apps.store.tests.factories import make_course, make_customer, make_teacher


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def courses(db):
    """Two courses by one teacher."""
    make_teacher(1, 'Sarah Johnson')
    make_course(1, 'Beginner Yoga Flow', price='$29.99', teacher_id=1)
    make_course(2, 'Advanced Ashtanga', price='$49.99', teacher_id=1)
    return {'flow': 1, 'ashtanga': 2}


@pytest.fixture
def buyer(db):
    """A customer with a 50.00 balance."""
    make_customer(1, 'minh@gmail.com', balance='50.00', name='Minh')
    return 1


@pytest.fixture
def legacy_buyer(db):
    """A customer stored under a generated key."""
    make_customer(7, 'legacy@example.com', balance='100.00', key='0b5e1f2a')
    return 7


@pytest.fixture
def session(buyer):
    return CustomerSession(customer_id=buyer, email='minh@gmail.com', name='Minh')


@pytest.fixture
def authenticated_client(api_client, session):
    """Return an authenticated API client using JWT."""
    tokens = tokens_for_session(session)
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
    return api_client
