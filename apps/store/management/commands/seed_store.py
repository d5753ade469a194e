"""
Management command to seed the document store with the sample catalogue.

Usage:
    python manage.py seed_store
    python manage.py seed_store --reset --balance 100

This creates:
- 8 teachers
- 8 courses, one per teacher
- a test customer (minh@gmail.com / 123456)
"""

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.utils import timezone

from apps.accounts.services.customer_records import claim_email, find_customer_by_email
from apps.accounts.services.passwords import hash_password
from apps.store.models import Document
from apps.store.records import (
    COURSE_GRANTS,
    COURSES,
    CUSTOMER_EMAILS,
    CUSTOMERS,
    TEACHERS,
    TRANSACTIONS,
    Customer,
)
from apps.store.services import add_document_with_id, allocate_id, atomic
from apps.store.services.counters import COUNTERS_COLLECTION

TEST_EMAIL = 'minh@gmail.com'
TEST_PASSWORD = '123456'

SAMPLE_COURSES = [
    ('Beginner Yoga Flow', 'Sarah Johnson', 45, 'Beginner', '$29.99',
     'Perfect for beginners looking to start their yoga journey with gentle poses and breathing techniques.'),
    ('Power Vinyasa Flow', 'Michael Chen', 60, 'Intermediate', '$39.99',
     'Dynamic flow sequence that builds strength and flexibility through continuous movement.'),
    ('Restorative Yoga', 'Emma Davis', 30, 'All Levels', '$24.99',
     'Deep relaxation practice using props to support the body in gentle, healing poses.'),
    ('Advanced Ashtanga', 'David Rodriguez', 90, 'Advanced', '$49.99',
     'Traditional Ashtanga sequence for experienced practitioners seeking a challenging practice.'),
    ('Yin Yoga Deep Stretch', 'Lisa Wang', 75, 'Intermediate', '$34.99',
     'Long-held poses that target deep connective tissues and promote flexibility.'),
    ('Morning Flow', 'Alex Thompson', 20, 'Beginner', '$19.99',
     'Quick morning routine to energize your day with sun salutations and gentle stretches.'),
    ('Meditation & Mindfulness', 'Priya Patel', 15, 'All Levels', '$14.99',
     'Guided meditation practice to cultivate mindfulness and inner peace.'),
    ('Yoga for Athletes', 'Chris Martinez', 50, 'Intermediate', '$44.99',
     'Specialized sequences designed to complement athletic training and improve performance.'),
]


class Command(BaseCommand):
    help = 'Seed the document store with sample teachers, courses and a test customer'

    def add_arguments(self, parser):
        parser.add_argument(
            '--reset',
            action='store_true',
            help='Delete all store collections before seeding',
        )
        parser.add_argument(
            '--balance',
            default='0',
            help='Starting balance of the test customer',
        )

    def handle(self, *args, **options):
        with atomic():
            if options['reset']:
                self.stdout.write('Clearing store collections...')
                self.clear_data()

            self.stdout.write('Seeding store...')
            self.create_catalogue()
            self.create_test_customer(Decimal(str(options['balance'])))

        self.stdout.write(self.style.SUCCESS('Store seeded successfully!'))
        self.stdout.write('')
        self.stdout.write('Test account:')
        self.stdout.write(f'  {TEST_EMAIL} / {TEST_PASSWORD}')

    def clear_data(self):
        """Delete every document of the storefront collections."""
        collections = [
            CUSTOMERS, CUSTOMER_EMAILS, COURSES, TEACHERS,
            COURSE_GRANTS, TRANSACTIONS, COUNTERS_COLLECTION,
        ]
        deleted, _ = Document.objects.filter(collection__in=collections).delete()
        self.stdout.write(f'  Deleted {deleted} document(s)')

    def create_catalogue(self):
        for index, (title, instructor, minutes, level, price, description) in enumerate(SAMPLE_COURSES, start=1):
            add_document_with_id(TEACHERS, index, {
                'Id': index,
                'Name': instructor,
                'Experience': f'{index + 3} years',
                'DateStartedTeaching': f'{2021 - index}-01-01',
            })
            add_document_with_id(COURSES, index, {
                'Id': index,
                'Name': title,
                'Description': description,
                'Duration': minutes,
                'Category': level,
                'Price': price,
                'TeacherId': index,
            })
            self.stdout.write(f'  Added course "{title}" ({instructor})')

    def create_test_customer(self, balance):
        if find_customer_by_email(TEST_EMAIL) is not None:
            self.stdout.write(f"  Customer {TEST_EMAIL} already exists, skipped")
            return

        customer_id = allocate_id(CUSTOMERS, seed_collection=CUSTOMERS)
        customer = Customer(
            id=customer_id,
            email=TEST_EMAIL,
            password=hash_password(TEST_PASSWORD),
            name='Minh',
            date_created=timezone.localdate().isoformat(),
            balance=balance,
            key=str(customer_id),
        )
        claim_email(TEST_EMAIL, customer_id)
        add_document_with_id(CUSTOMERS, customer.key, customer.to_document())
        self.stdout.write(f'  Added customer {customer.email} with balance {balance:.2f}')
