"""
Management command to re-key customer documents to their logical id.

Customers created before integer keys were introduced are stored under
generated keys. Lookups fall back to a query on ``Id`` for those, but every
other customer is stored under ``str(Id)``; this moves the rest there too.

Usage:
    python manage.py fix_customer_keys --dry-run
    python manage.py fix_customer_keys
"""

from django.core.management.base import BaseCommand

from apps.store.records import CUSTOMERS, Customer
from apps.store.services import (
    InvalidRecordError,
    add_document_with_id,
    atomic,
    delete_document,
    get_collection,
)


class Command(BaseCommand):
    help = 'Store every customer document under the key str(Id)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be re-keyed without making changes',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']

        documents = get_collection(CUSTOMERS)
        keys = {document['id'] for document in documents}
        moves = []
        seen_ids = set()

        for document in documents:
            try:
                customer = Customer.from_document(document)
            except InvalidRecordError as e:
                self.stdout.write(self.style.WARNING(f'  Skipping {document["id"]}: {e}'))
                continue

            if customer.id in seen_ids:
                self.stdout.write(self.style.WARNING(
                    f'  Skipping {document["id"]}: duplicate Id {customer.id}'
                ))
                continue
            seen_ids.add(customer.id)

            if customer.key != str(customer.id):
                moves.append((document, customer))

        # A target key held by a document that is not moving away is a conflict
        moving_keys = {document['id'] for document, _ in moves}
        conflicts = [
            (document, customer) for document, customer in moves
            if str(customer.id) in keys and str(customer.id) not in moving_keys
        ]
        moves = [move for move in moves if move not in conflicts]
        for document, customer in conflicts:
            self.stdout.write(self.style.WARNING(
                f'  Cannot move {document["id"]}: key {customer.id} is taken'
            ))

        if not moves:
            self.stdout.write(
                self.style.SUCCESS('No customer documents need re-keying. All good!')
            )
            return

        self.stdout.write(f'\nFound {len(moves)} customer document(s) to re-key:\n')
        for document, customer in moves:
            self.stdout.write(f'  - {customer.email} | {document["id"]} -> {customer.id}')

        if dry_run:
            self.stdout.write(
                self.style.WARNING('\n--dry-run mode: No changes made.')
            )
            return

        with atomic():
            for document, _ in moves:
                delete_document(CUSTOMERS, document['id'])
            for document, customer in moves:
                data = {name: value for name, value in document.items() if name != 'id'}
                add_document_with_id(CUSTOMERS, customer.id, data)

        self.stdout.write(
            self.style.SUCCESS(f'\n✓ Successfully re-keyed {len(moves)} customer document(s)!')
        )
