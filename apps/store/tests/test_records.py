"""Tests for reading store documents into typed records."""

from decimal import Decimal

import pytest

from apps.store.records import (
    Course,
    CourseGrant,
    Customer,
    LedgerTransaction,
    grant_key,
    to_money,
)
from apps.store.services import InvalidRecordError


class TestRecordBoundary:

    def test_customer_fields_match_any_casing(self):
        customer = Customer.from_document({
            'id': '5', 'ID': 5, 'email': 'a@b.c', 'PASSWORD': 'x', 'balance': '12.5',
        })

        assert customer.id == 5
        assert customer.email == 'a@b.c'
        assert customer.balance == Decimal('12.50')
        assert customer.key == '5'

    def test_store_key_is_not_the_logical_id(self):
        with pytest.raises(InvalidRecordError):
            Customer.from_document({'id': '5', 'Email': 'a@b.c'})

    def test_password_is_hidden_from_repr(self):
        customer = Customer(id=1, email='a@b.c', password='secret')

        assert 'secret' not in repr(customer)

    def test_course_duration_accepts_legacy_strings(self):
        course = Course.from_document({'Id': 1, 'Name': 'Flow', 'Duration': '45 min', 'Price': '$29.99'})

        assert course.duration_minutes == 45
        assert course.price_text == '$29.99'

    def test_grants_read_both_spellings(self):
        lower = CourseGrant.from_document({'customerId': 3, 'courseId': 9})
        upper = CourseGrant.from_document({'CustomerId': 3, 'CourseId': 9})

        assert lower.customer_id == upper.customer_id == 3
        assert lower.course_id == upper.course_id == 9

    def test_grant_key_is_composite(self):
        assert grant_key(3, 9) == '3_9'

    def test_transaction_amount_is_written_with_two_decimals(self):
        transaction = LedgerTransaction(
            id=1, customer_id=2, amount=Decimal('29.9'), payment_method='Credit Card',
        )

        assert transaction.to_document()['Amount'] == '29.90'
        assert transaction.signed_amount == Decimal('-29.9')

    def test_top_up_is_a_credit(self):
        transaction = LedgerTransaction.from_document({
            'Id': 1, 'CustomerId': 2, 'Amount': '10.00', 'PaymentMethod': 'Balance Update', 'Status': 'true',
        })

        assert transaction.is_credit
        assert transaction.status is True

    @pytest.mark.parametrize('raw,expected', [
        (None, Decimal('0.00')),
        ('', Decimal('0.00')),
        ('abc', Decimal('0.00')),
        (20.005, Decimal('20.00')),
        ('7', Decimal('7.00')),
    ])
    def test_to_money(self, raw, expected):
        assert to_money(raw) == expected
