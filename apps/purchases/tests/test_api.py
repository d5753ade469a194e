import pytest
from django.urls import reverse
from rest_framework import status
from unittest import mock

from apps.store.services import StoreUnavailableError


# =============================================================================
# Purchase Tests
# =============================================================================

@pytest.mark.django_db
class TestPurchaseEndpoint:
    """Tests for POST /api/purchases/"""

    def test_requires_authentication(self, api_client, courses):
        response = api_client.post(reverse('purchases:purchase-list'), {'course_id': 1}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_purchase(self, authenticated_client, courses):
        response = authenticated_client.post(
            reverse('purchases:purchase-list'),
            {'course_id': courses['flow'], 'payment_method': 'debit_card'},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['course_title'] == 'Beginner Yoga Flow'
        assert response.data['price'] == '29.99'
        assert response.data['balance'] == '20.01'
        assert response.data['payment_method'] == 'Debit Card'
        assert response.data['already_owned'] is False

    def test_repeat_purchase_returns_original_receipt(self, authenticated_client, courses):
        url = reverse('purchases:purchase-list')
        first = authenticated_client.post(url, {'course_id': courses['flow']}, format='json')
        second = authenticated_client.post(url, {'course_id': courses['flow']}, format='json')

        assert second.status_code == status.HTTP_200_OK
        assert second.data['already_owned'] is True
        assert second.data['transaction_id'] == first.data['transaction_id']
        assert second.data['balance'] == '20.01'

    def test_insufficient_funds(self, authenticated_client, courses):
        url = reverse('purchases:purchase-list')
        authenticated_client.post(url, {'course_id': courses['flow']}, format='json')

        response = authenticated_client.post(url, {'course_id': courses['ashtanga']}, format='json')

        assert response.status_code == status.HTTP_402_PAYMENT_REQUIRED
        assert response.data['error'].startswith('Insufficient balance')

    def test_unknown_course(self, authenticated_client, courses):
        response = authenticated_client.post(
            reverse('purchases:purchase-list'), {'course_id': 404}, format='json',
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_unknown_payment_method(self, authenticated_client, courses):
        response = authenticated_client.post(
            reverse('purchases:purchase-list'),
            {'course_id': courses['flow'], 'payment_method': 'bitcoin'},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_store_failure(self, authenticated_client, courses):
        with mock.patch(
            'apps.purchases.services.purchase_workflow.record_transaction',
            side_effect=StoreUnavailableError('down'),
        ):
            response = authenticated_client.post(
                reverse('purchases:purchase-list'), {'course_id': courses['flow']}, format='json',
            )

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.data['error'] == 'Purchase failed, please try again'


# =============================================================================
# Ledger Tests
# =============================================================================

@pytest.mark.django_db
class TestLedgerEndpoints:

    def test_transactions(self, authenticated_client, courses):
        authenticated_client.post(reverse('accounts:top-up'), {'amount': '10'}, format='json')
        authenticated_client.post(
            reverse('purchases:purchase-list'), {'course_id': courses['flow']}, format='json',
        )

        response = authenticated_client.get(reverse('purchases:purchase-transactions'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 2
        assert [t['payment_method'] for t in response.data['results']] == ['Credit Card', 'Balance Update']
        assert response.data['results'][0]['signed_amount'] == '-29.99'

    def test_ledger(self, authenticated_client, courses):
        authenticated_client.post(
            reverse('purchases:purchase-list'), {'course_id': courses['flow']}, format='json',
        )

        response = authenticated_client.get(
            reverse('purchases:purchase-ledger'), {'opening_balance': '50.00'},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_consistent'] is True
        assert response.data['stored_balance'] == '20.01'
        assert response.data['summary']['debits'] == '29.99'

    def test_store_unavailable_is_503(self, authenticated_client, courses):
        with mock.patch(
            'apps.purchases.views.list_customer_transactions',
            side_effect=StoreUnavailableError('down'),
        ):
            response = authenticated_client.get(reverse('purchases:purchase-transactions'))

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
