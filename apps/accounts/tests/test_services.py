"""
Service layer tests for accounts app.

Tests:
- Sign-up (id allocation, validation, duplicates)
- Sign-in (hashed and legacy plaintext passwords)
- Session holder lifecycle and persistence
- Customer resolution when the store key differs from the Id
- Profile updates and password changes
- Balance top-ups
"""

import json
import threading
from datetime import date
from decimal import Decimal

import pytest
from django.contrib.auth.hashers import identify_hasher
from django.db import connection
from django.test import TransactionTestCase

from apps.accounts.services import (
    CustomerNotFoundError,
    CustomerSession,
    EmailAlreadyUsedError,
    FileSessionStorage,
    InvalidAmountError,
    InvalidCredentialsError,
    NotAuthenticatedError,
    PasswordChangeError,
    PasswordConfirmationError,
    ProfileValidationError,
    SessionHolder,
    UserRegistrationError,
    adjust_balance,
    authenticate_customer,
    find_customer_by_email,
    register_customer,
    resolve_customer,
    top_up_balance,
    update_profile,
)
from apps.accounts.services.customer_records import claim_email
from apps.accounts.services.passwords import verify_password
from apps.store.records import CUSTOMER_EMAILS, CUSTOMERS, MAX_BALANCE, TRANSACTIONS
from apps.store.services import PreconditionFailedError, StoreError, get_collection, get_document
from apps.store.tests.factories import make_customer


# ============================================================================
# REGISTRATION TESTS
# ============================================================================

@pytest.mark.django_db
class TestRegistration:

    def test_register_allocates_next_id(self, customer, other_customer):
        created = register_customer(
            email='New@Example.com ',
            password='secret123',
            name='New Customer',
            date_of_birth=date(1995, 5, 17),
        )

        assert created.id == 3
        assert created.email == 'new@example.com'
        assert created.balance == Decimal('0.00')

        document = get_document(CUSTOMERS, '3')
        assert document['Balance'] == 0
        assert document['DateOfBirth'] == '1995-05-17'
        assert document['ImageUrl'] is None
        assert document['DateCreated']

    def test_register_hashes_password(self, db):
        created = register_customer(email='a@example.com', password='secret123', name='A')

        stored = get_document(CUSTOMERS, str(created.id))['Password']
        assert stored != 'secret123'
        identify_hasher(stored)

    def test_first_customer_gets_id_one(self, db):
        assert register_customer(email='a@example.com', password='secret123', name='A').id == 1

    def test_duplicate_email_rejected(self, customer):
        with pytest.raises(UserRegistrationError, match='User already exists'):
            register_customer(email='MINH@gmail.com', password='secret123', name='Dup')

    def test_register_claims_email(self, db):
        created = register_customer(email='A@Example.com', password='secret123', name='A')

        claims = get_collection(CUSTOMER_EMAILS)
        assert [(c['Email'], c['CustomerId']) for c in claims] == [('a@example.com', created.id)]

    def test_email_claimed_by_unfinished_sign_up_is_rejected(self, db):
        # Claimed by a sign-up whose customer document is not written yet
        claim_email('a@example.com', 99)

        with pytest.raises(UserRegistrationError, match='User already exists'):
            register_customer(email='A@example.com', password='secret123', name='A')

        assert get_collection(CUSTOMERS) == []

    def test_short_password_rejected(self, db):
        with pytest.raises(UserRegistrationError, match='at least 6'):
            register_customer(email='a@example.com', password='12345', name='A')

    def test_missing_fields_rejected(self, db):
        with pytest.raises(UserRegistrationError, match='fill in all fields'):
            register_customer(email='a@example.com', password='secret123', name='  ')


# ============================================================================
# AUTHENTICATION TESTS
# ============================================================================

@pytest.mark.django_db
class TestAuthentication:

    def test_valid_credentials(self, customer):
        authenticated = authenticate_customer(email='minh@gmail.com', password='secret123')

        assert authenticated.id == customer

    def test_email_is_case_insensitive(self, customer):
        assert authenticate_customer(email=' MINH@Gmail.com', password='secret123').id == customer

    def test_wrong_password_and_unknown_email_look_the_same(self, customer):
        with pytest.raises(InvalidCredentialsError) as wrong_password:
            authenticate_customer(email='minh@gmail.com', password='nope')
        with pytest.raises(InvalidCredentialsError) as unknown_email:
            authenticate_customer(email='ghost@example.com', password='secret123')

        assert str(wrong_password.value) == str(unknown_email.value) == 'Invalid email or password'

    def test_legacy_plaintext_password_is_rehashed(self, legacy_customer):
        authenticate_customer(email='legacy@example.com', password='plain123')

        stored = get_document(CUSTOMERS, 'f3a9c2d1')['Password']
        assert stored != 'plain123'
        assert verify_password('plain123', stored) == (True, False)

    def test_legacy_plaintext_wrong_password(self, legacy_customer):
        with pytest.raises(InvalidCredentialsError):
            authenticate_customer(email='legacy@example.com', password='plain1234')

        assert get_document(CUSTOMERS, 'f3a9c2d1')['Password'] == 'plain123'


# ============================================================================
# SESSION HOLDER TESTS
# ============================================================================

@pytest.mark.django_db
class TestSessionHolder:

    def test_starts_signed_out(self, holder):
        assert not holder.is_signed_in
        with pytest.raises(NotAuthenticatedError, match='Please log in'):
            holder.require_session()

    def test_sign_in_and_out(self, holder, customer):
        session = holder.sign_in(email='minh@gmail.com', password='secret123')

        assert holder.is_signed_in
        assert holder.require_session() == session
        assert session.customer_id == customer
        assert session.name == 'Minh'

        holder.sign_out()
        assert holder.session is None

    def test_failed_sign_in_stays_signed_out(self, holder, customer):
        with pytest.raises(InvalidCredentialsError):
            holder.sign_in(email='minh@gmail.com', password='wrong')

        assert not holder.is_signed_in

    def test_sign_up_does_not_sign_in(self, holder, db):
        created = holder.sign_up(email='new@example.com', password='secret123', name='New')

        assert created.id == 1
        assert not holder.is_signed_in

    def test_session_survives_restart(self, tmp_path, customer):
        path = tmp_path / 'session.json'
        SessionHolder(FileSessionStorage(path)).sign_in(email='minh@gmail.com', password='secret123')

        restarted = SessionHolder(FileSessionStorage(path))
        restored = restarted.rehydrate()

        assert restored.customer_id == customer
        assert restarted.is_signed_in
        assert 'secret123' not in path.read_text()

    def test_sign_out_removes_stored_session(self, tmp_path, customer):
        path = tmp_path / 'session.json'
        holder = SessionHolder(FileSessionStorage(path))
        holder.sign_in(email='minh@gmail.com', password='secret123')

        holder.sign_out()

        assert not path.exists()
        assert SessionHolder(FileSessionStorage(path)).rehydrate() is None

    def test_malformed_stored_session_is_discarded(self, tmp_path):
        path = tmp_path / 'session.json'
        path.write_text(json.dumps({'email': 'missing-id@example.com'}))

        holder = SessionHolder(FileSessionStorage(path))

        assert holder.rehydrate() is None
        assert not path.exists()

    def test_session_round_trips_through_dict(self):
        session = CustomerSession(customer_id=4, email='a@b.c', name='A', signed_in_at='now')

        assert CustomerSession.from_dict(session.to_dict()) == session


# ============================================================================
# CUSTOMER RESOLUTION TESTS
# ============================================================================

@pytest.mark.django_db
class TestCustomerResolution:

    def test_resolves_by_conventional_key(self, customer):
        assert resolve_customer(customer).key == '1'

    def test_falls_back_to_id_query(self, legacy_customer):
        resolved = resolve_customer(legacy_customer)

        assert resolved.key == 'f3a9c2d1'
        assert resolved.email == 'legacy@example.com'

    def test_ignores_key_owned_by_another_customer(self, db):
        # After a renumbering, key "7" holds customer 9 while customer 7 lives elsewhere
        make_customer(9, 'nine@example.com', key='7')
        make_customer(7, 'seven@example.com', key='abc')

        assert resolve_customer(7).email == 'seven@example.com'
        assert resolve_customer(9).key == '7'

    def test_unknown_customer(self, db):
        with pytest.raises(CustomerNotFoundError):
            resolve_customer(404)

    def test_adjust_balance_writes_to_resolved_key(self, legacy_customer):
        assert adjust_balance(legacy_customer, Decimal('5.25')) == Decimal('5.25')
        assert get_document(CUSTOMERS, 'f3a9c2d1')['Balance'] == 5.25
        assert get_document(CUSTOMERS, str(legacy_customer)) is None

    def test_adjust_balance_respects_minimum(self, customer):
        with pytest.raises(PreconditionFailedError):
            adjust_balance(customer, Decimal('-50.01'), minimum=0)

        assert resolve_customer(customer).balance == Decimal('50.00')

    def test_find_customer_by_email_matches_stored_casing(self, db):
        make_customer(5, 'Mixed@Example.com')

        assert find_customer_by_email('mixed@example.com').id == 5
        assert find_customer_by_email('Mixed@Example.com').id == 5


# ============================================================================
# PROFILE TESTS
# ============================================================================

@pytest.mark.django_db
class TestUpdateProfile:

    def test_updates_fields(self, customer):
        updated = update_profile(
            customer_id=customer,
            name=' Minh Tran ',
            email='minh.tran@gmail.com',
            phone_number='555-0199',
            date_of_birth=date(1991, 2, 3),
            image_url='https://example.com/a.png',
        )

        assert updated.name == 'Minh Tran'
        assert updated.email == 'minh.tran@gmail.com'
        assert updated.phone_number == '555-0199'
        assert updated.date_of_birth == '1991-02-03'
        assert updated.image_url == 'https://example.com/a.png'
        assert updated.balance == Decimal('50.00')

    def test_updates_customer_under_generated_key(self, legacy_customer):
        update_profile(customer_id=legacy_customer, name='Renamed', email='legacy@example.com')

        assert get_document(CUSTOMERS, 'f3a9c2d1')['Name'] == 'Renamed'
        assert len(get_collection(CUSTOMERS)) == 1

    def test_name_and_email_required(self, customer):
        with pytest.raises(ProfileValidationError):
            update_profile(customer_id=customer, name='', email='minh@gmail.com')

    def test_email_taken_by_other_customer(self, customer, other_customer):
        with pytest.raises(EmailAlreadyUsedError):
            update_profile(customer_id=customer, name='Minh', email='other@example.com')

    def test_email_change_moves_claim(self, customer):
        claim_email('minh@gmail.com', customer)

        update_profile(customer_id=customer, name='Minh', email='minh.tran@gmail.com')

        assert [c['Email'] for c in get_collection(CUSTOMER_EMAILS)] == ['minh.tran@gmail.com']
        # The old address is free again
        assert register_customer(email='minh@gmail.com', password='secret123', name='New').id == 2

    def test_email_claimed_by_another_customer(self, customer):
        claim_email('taken@example.com', 8)

        with pytest.raises(EmailAlreadyUsedError):
            update_profile(customer_id=customer, name='Minh', email='taken@example.com')

        assert resolve_customer(customer).email == 'minh@gmail.com'

    def test_password_change(self, customer):
        update_profile(
            customer_id=customer,
            name='Minh',
            email='minh@gmail.com',
            current_password='secret123',
            new_password='newpass1',
            confirm_password='newpass1',
        )

        assert authenticate_customer(email='minh@gmail.com', password='newpass1').id == customer

    def test_password_change_requires_current_password(self, customer):
        with pytest.raises(PasswordChangeError, match='current password'):
            update_profile(
                customer_id=customer, name='Minh', email='minh@gmail.com',
                new_password='newpass1', confirm_password='newpass1',
            )

    def test_password_change_rejects_wrong_current_password(self, customer):
        with pytest.raises(PasswordConfirmationError):
            update_profile(
                customer_id=customer, name='Minh', email='minh@gmail.com',
                current_password='wrong', new_password='newpass1', confirm_password='newpass1',
            )

    @pytest.mark.parametrize('new_password,confirm_password', [
        ('short', 'short'),
        ('newpass1', 'newpass2'),
    ])
    def test_password_change_validation(self, customer, new_password, confirm_password):
        with pytest.raises(PasswordChangeError):
            update_profile(
                customer_id=customer, name='Minh', email='minh@gmail.com',
                current_password='secret123',
                new_password=new_password,
                confirm_password=confirm_password,
            )

        assert authenticate_customer(email='minh@gmail.com', password='secret123')

    def test_unknown_customer(self, db):
        with pytest.raises(CustomerNotFoundError):
            update_profile(customer_id=99, name='X', email='x@example.com')


# ============================================================================
# TOP-UP TESTS
# ============================================================================

@pytest.mark.django_db
class TestTopUp:

    def test_top_up_credits_balance_and_records_transaction(self, customer):
        updated, transaction = top_up_balance(customer_id=customer, amount='25.50')

        assert updated.balance == Decimal('75.50')
        assert transaction.amount == Decimal('25.50')
        assert transaction.payment_method == 'Balance Update'

        document = get_document(TRANSACTIONS, str(transaction.id))
        assert document['Amount'] == '25.50'
        assert document['CustomerId'] == customer
        assert document['Status'] is True

    @pytest.mark.parametrize('amount,message', [
        ('', 'Please enter an amount'),
        (None, 'Please enter an amount'),
        ('abc', 'valid positive amount'),
        ('-5', 'valid positive amount'),
        ('0', 'valid positive amount'),
        ('NaN', 'valid positive amount'),
        ('1e30', 'valid positive amount'),
        ('99999999999', 'Amount cannot exceed'),
    ])
    def test_invalid_amounts(self, customer, amount, message):
        with pytest.raises(InvalidAmountError, match=message):
            top_up_balance(customer_id=customer, amount=amount)

        assert get_collection(TRANSACTIONS) == []

    def test_balance_ceiling_writes_nothing(self, customer):
        with pytest.raises(InvalidAmountError, match='Balance cannot exceed'):
            top_up_balance(customer_id=customer, amount='9999999999.99')

        assert resolve_customer(customer).balance == Decimal('50.00')
        assert get_collection(TRANSACTIONS) == []

    def test_top_up_to_balance_ceiling(self, customer):
        updated, _ = top_up_balance(customer_id=customer, amount='9999999949.99')

        assert updated.balance == MAX_BALANCE

    def test_unknown_customer_writes_nothing(self, db):
        with pytest.raises(CustomerNotFoundError):
            top_up_balance(customer_id=42, amount='10')

        assert get_collection(TRANSACTIONS) == []


# ============================================================================
# CONCURRENCY TESTS
# ============================================================================

class TestConcurrentRegistration(TransactionTestCase):
    """Sign-ups racing for one email address never both succeed."""

    def test_concurrent_sign_ups_share_no_email(self):
        created = []
        rejected = []
        errors = []

        def sign_up(index):
            try:
                created.append(register_customer(
                    email='race@example.com',
                    password='secret123',
                    name=f'Racer {index}',
                ))
            except UserRegistrationError:
                rejected.append(index)
            except StoreError:
                # SQLite may refuse a concurrent writer outright
                errors.append(index)
            finally:
                connection.close()

        threads = [threading.Thread(target=sign_up, args=(i,)) for i in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(created) + len(rejected) + len(errors) == 5
        assert len(created) <= 1

        stored = [d for d in get_collection(CUSTOMERS) if d.get('Email') == 'race@example.com']
        assert len(stored) == len(created)
        assert len(get_collection(CUSTOMER_EMAILS)) == len(created)
