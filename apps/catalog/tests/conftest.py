import pytest
from rest_framework.test import APIClient

from apps.accounts.authentication import tokens_for_session
from apps.accounts.services import CustomerSession
from apps.store.tests.factories import make_course, make_customer, make_grant, make_teacher


@pytest.fixture
def catalogue(db):
    """Four courses; course 3 is a private class, course 4's teacher is missing."""
    make_teacher(1, 'Sarah Johnson', Bio='Gentle flows.', Specialties='Hatha, Yin')
    make_teacher(2, 'Michael Chen')
    make_course(1, 'Beginner Yoga Flow', price='$29.99', teacher_id=1, category='Beginner')
    make_course(2, 'Power Vinyasa Flow', price='$39.99', teacher_id=2, category='Intermediate')
    make_course(3, 'Private Session', price='€80', teacher_id=1, category='All Levels')
    make_course(4, 'Morning Flow', price='N/A', teacher_id=99, duration='20 min')
    return [1, 2, 3, 4]


@pytest.fixture
def customer(db):
    make_customer(1, 'minh@gmail.com', balance='50.00', name='Minh')
    return 1


@pytest.fixture
def owned_course(customer, catalogue):
    """The customer owns course 2."""
    make_grant(customer, 2)
    return 2


@pytest.fixture
def authenticated_client(customer):
    client = APIClient()
    tokens = tokens_for_session(CustomerSession(customer_id=customer, email='minh@gmail.com'))
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
    return client
