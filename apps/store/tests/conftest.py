import pytest

from apps.store.services import add_document_with_id


@pytest.fixture
def people(db):
    """Three documents in a scratch collection, keyed by their Id."""
    records = [
        {'Id': 1, 'Name': 'Ada', 'Age': 36, 'City': 'London'},
        {'Id': 2, 'Name': 'Grace', 'Age': 45, 'City': 'Arlington'},
        {'Id': 3, 'Name': 'Linus', 'Age': 28, 'City': 'Helsinki'},
    ]
    for record in records:
        add_document_with_id('people', record['Id'], record)
    return records


@pytest.fixture
def wallet(db):
    """A document with a numeric balance."""
    add_document_with_id('wallets', 'w1', {'Owner': 'Ada', 'Balance': 50})
    return 'w1'
