"""Tests for the storefront terminal client."""

from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from apps.accounts.services import resolve_customer


@pytest.fixture
def session_file(settings, tmp_path):
    settings.CUSTOMER_SESSION_FILE = str(tmp_path / 'session.json')
    return tmp_path / 'session.json'


def storefront(*args):
    out = StringIO()
    call_command('storefront', *args, stdout=out)
    return out.getvalue()


@pytest.mark.django_db
class TestStorefrontCommand:

    def test_commands_need_login(self, session_file, buyer):
        with pytest.raises(CommandError):
            storefront('whoami')

    def test_wrong_password(self, session_file, buyer):
        with pytest.raises(CommandError, match='Invalid email or password'):
            storefront('login', '--email', 'minh@gmail.com', '--password', 'wrong')

        assert not session_file.exists()

    def test_login_persists_between_runs(self, session_file, buyer):
        output = storefront('login', '--email', 'minh@gmail.com', '--password', 'secret123')

        assert 'Welcome back, Minh!' in output
        assert session_file.exists()
        assert 'Balance: $50.00' in storefront('whoami')

    def test_buy_then_list(self, session_file, buyer, courses):
        storefront('login', '--email', 'minh@gmail.com', '--password', 'secret123')

        output = storefront('buy', '1', '--method', 'paypal')

        assert 'Purchased "Beginner Yoga Flow"!' in output
        assert 'via PayPal' in output
        assert 'Balance: $20.01' in output
        assert 'Beginner Yoga Flow' in storefront('mine')
        assert 'Beginner Yoga Flow' not in storefront('discover')
        assert '-$29.99' in storefront('transactions')

    def test_insufficient_funds_is_a_command_error(self, session_file, buyer, courses):
        storefront('login', '--email', 'minh@gmail.com', '--password', 'secret123')

        with pytest.raises(CommandError, match='Insufficient balance'):
            storefront('buy', '2')

        assert resolve_customer(buyer).balance == 50

    def test_top_up(self, session_file, buyer):
        storefront('login', '--email', 'minh@gmail.com', '--password', 'secret123')

        output = storefront('top-up', '25')

        assert 'Added $25.00' in output
        assert 'Balance: $75.00' in output

    def test_logout_clears_session(self, session_file, buyer):
        storefront('login', '--email', 'minh@gmail.com', '--password', 'secret123')
        storefront('logout')

        assert not session_file.exists()
        with pytest.raises(CommandError):
            storefront('whoami')
