"""
Management command to hash customer passwords still stored in plaintext.

Sign-in upgrades a plaintext password the first time its owner logs in; this
upgrades the customers who have not logged in since.

Usage:
    python manage.py hash_legacy_passwords --dry-run
    python manage.py hash_legacy_passwords
"""

from django.core.management.base import BaseCommand

from apps.accounts.services.customer_records import update_customer
from apps.accounts.services.passwords import hash_password, is_hashed
from apps.store.records import CUSTOMERS, Customer
from apps.store.services import InvalidRecordError, atomic, get_collection


class Command(BaseCommand):
    help = 'Hash any plaintext passwords left in customer documents'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be hashed without making changes',
        )

    def handle(self, *args, **options):
        legacy = []
        for document in get_collection(CUSTOMERS):
            try:
                customer = Customer.from_document(document)
            except InvalidRecordError:
                continue
            if customer.password and not is_hashed(customer.password):
                legacy.append(customer)

        if not legacy:
            self.stdout.write(
                self.style.SUCCESS('No plaintext passwords found. All good!')
            )
            return

        self.stdout.write(f'\nFound {len(legacy)} customer(s) with a plaintext password:\n')
        for customer in legacy:
            self.stdout.write(f'  - {customer.id} | {customer.email}')

        if options['dry_run']:
            self.stdout.write(
                self.style.WARNING('\n--dry-run mode: No changes made.')
            )
            return

        with atomic():
            for customer in legacy:
                update_customer(customer.id, {'Password': hash_password(customer.password)})

        self.stdout.write(
            self.style.SUCCESS(f'\n✓ Successfully hashed {len(legacy)} password(s)!')
        )
