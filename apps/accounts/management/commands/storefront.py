"""
Terminal storefront client.

Drives the same session holder and workflows as the API, with the signed-in
session kept in ``settings.CUSTOMER_SESSION_FILE`` between runs.

Usage:
    python manage.py storefront login --email minh@gmail.com
    python manage.py storefront whoami
    python manage.py storefront discover --search flow --public
    python manage.py storefront buy 2 --method paypal
    python manage.py storefront top-up 50
    python manage.py storefront transactions
    python manage.py storefront logout
"""

from getpass import getpass

from django.core.management.base import BaseCommand, CommandError

from apps.accounts.services import (
    AccountsServiceError,
    SessionHolder,
    resolve_customer,
    top_up_balance,
)
from apps.catalog.services import (
    CatalogServiceError,
    is_private_class,
    list_discover_courses,
    list_my_courses,
)
from apps.purchases.services import (
    PAYMENT_METHODS,
    PurchaseServiceError,
    list_customer_transactions,
    purchase_course,
)
from apps.store.services import StoreError

ACTIONS = ['login', 'logout', 'whoami', 'discover', 'mine', 'buy', 'top-up', 'transactions']


class Command(BaseCommand):
    help = 'Browse and buy courses from the terminal'

    def add_arguments(self, parser):
        parser.add_argument('action', choices=ACTIONS)
        parser.add_argument(
            'value',
            nargs='?',
            help='Course id for "buy", amount for "top-up"',
        )
        parser.add_argument('--email', help='Email for "login"')
        parser.add_argument('--password', help='Password for "login" (prompted when omitted)')
        parser.add_argument('--search', help='Filter course lists by text')
        visibility = parser.add_mutually_exclusive_group()
        visibility.add_argument('--private', action='store_true', help='Private classes only')
        visibility.add_argument('--public', action='store_true', help='Public classes only')
        parser.add_argument(
            '--method',
            default='credit_card',
            choices=list(PAYMENT_METHODS),
            help='Payment method for "buy"',
        )

    def handle(self, *args, **options):
        self.holder = SessionHolder.from_settings()
        self.holder.rehydrate()

        handler = getattr(self, 'do_' + options['action'].replace('-', '_'))
        try:
            handler(options)
        except (AccountsServiceError, CatalogServiceError, PurchaseServiceError, StoreError) as e:
            raise CommandError(str(e))

    def do_login(self, options):
        email = options['email'] or input('Email: ')
        password = options['password'] or getpass('Password: ')
        session = self.holder.sign_in(email=email, password=password)
        self.stdout.write(self.style.SUCCESS(f'Welcome back, {session.name or session.email}!'))

    def do_logout(self, options):
        self.holder.sign_out()
        self.stdout.write(self.style.SUCCESS('Logged out.'))

    def do_whoami(self, options):
        session = self.holder.require_session()
        customer = resolve_customer(session.customer_id)
        self.stdout.write(f'{customer.name} <{customer.email}> (customer {customer.id})')
        self.stdout.write(f'Balance: ${customer.balance:.2f}')

    def _visibility(self, options):
        if options['private']:
            return True
        if options['public']:
            return False
        return None

    def _write_courses(self, courses):
        if not courses:
            self.stdout.write('No courses found.')
            return
        for course in courses:
            marker = ' [private]' if is_private_class(course) else ''
            self.stdout.write(
                f'  {course.id:>3}  {course.title} | {course.instructor} | '
                f'{course.duration} | {course.level} | ${course.price:.2f}{marker}'
            )

    def do_discover(self, options):
        session = self.holder.require_session()
        self._write_courses(list_discover_courses(
            customer_id=session.customer_id,
            search=options['search'],
            private=self._visibility(options),
        ))

    def do_mine(self, options):
        session = self.holder.require_session()
        self._write_courses(list_my_courses(
            customer_id=session.customer_id,
            search=options['search'],
            private=self._visibility(options),
        ))

    def do_buy(self, options):
        session = self.holder.require_session()
        try:
            course_id = int(options['value'])
        except (TypeError, ValueError):
            raise CommandError('Usage: storefront buy <course id>')

        receipt = purchase_course(
            session=session,
            course_id=course_id,
            payment_method=options['method'],
        )
        if receipt.already_owned:
            self.stdout.write(self.style.WARNING(f'You already own "{receipt.course_title}".'))
        else:
            self.stdout.write(self.style.SUCCESS(f'Purchased "{receipt.course_title}"!'))
        self.stdout.write(f'  Price: ${receipt.price:.2f} via {receipt.payment_method}')
        self.stdout.write(f'  Transaction: {receipt.transaction_id}')
        self.stdout.write(f'  Balance: ${receipt.balance:.2f}')

    def do_top_up(self, options):
        session = self.holder.require_session()
        customer, transaction = top_up_balance(
            customer_id=session.customer_id,
            amount=options['value'],
        )
        self.stdout.write(self.style.SUCCESS(
            f'Balance updated successfully! Added ${transaction.amount:.2f}'
        ))
        self.stdout.write(f'  Balance: ${customer.balance:.2f}')

    def do_transactions(self, options):
        session = self.holder.require_session()
        transactions = list_customer_transactions(session.customer_id)
        if not transactions:
            self.stdout.write('No transactions yet.')
            return
        for transaction in transactions:
            sign = '+' if transaction.is_credit else '-'
            self.stdout.write(
                f'  {transaction.id:>4}  {transaction.date_time} | '
                f'{transaction.payment_method} | {sign}${transaction.amount:.2f}'
            )
