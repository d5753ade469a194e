"""
Collision-free integer ids.

Sequences live as counter documents in the ``_counters`` collection and are
advanced under a row lock. A sequence that does not exist yet starts from the
largest integer id already present in its seed collection, so the first id
handed out matches what "max existing + 1" would have produced, but two
concurrent callers can never receive the same value.
"""

import logging
from typing import Optional

from django.db import IntegrityError, transaction

from apps.store.models import Document
from .documents import translate_store_errors, matching_field

logger = logging.getLogger(__name__)

COUNTERS_COLLECTION = '_counters'


def _max_existing_id(collection: str, field: str) -> int:
    highest = 0
    for data in Document.objects.filter(collection=collection).values_list('data', flat=True):
        value = data.get(matching_field(data, field))
        try:
            highest = max(highest, int(value))
        except (TypeError, ValueError):
            continue
    return highest


def _lock_counter(sequence: str, seed_collection: Optional[str], seed_field: str) -> Document:
    counter = (
        Document.objects
        .select_for_update()
        .filter(collection=COUNTERS_COLLECTION, key=sequence)
        .first()
    )
    if counter is not None:
        return counter

    start = _max_existing_id(seed_collection, seed_field) if seed_collection else 0
    try:
        with transaction.atomic():
            counter = Document.objects.create(
                collection=COUNTERS_COLLECTION,
                key=sequence,
                data={'value': start},
            )
        logger.info("Started sequence %s at %s", sequence, start)
        return counter
    except IntegrityError:
        # Another caller created the counter first
        return (
            Document.objects
            .select_for_update()
            .get(collection=COUNTERS_COLLECTION, key=sequence)
        )


@translate_store_errors
def allocate_id(
    sequence: str,
    *,
    seed_collection: Optional[str] = None,
    seed_field: str = 'Id',
) -> int:
    """
    Return the next integer of ``sequence``.

    Args:
        sequence: Counter name
        seed_collection: Collection whose existing ids bound the sequence;
            keys already taken there are skipped
        seed_field: Integer id field inside the seed collection

    Returns:
        A positive integer never returned before for this sequence
    """
    with transaction.atomic():
        counter = _lock_counter(sequence, seed_collection, seed_field)
        next_value = int(counter.data.get('value', 0)) + 1

        if seed_collection:
            while Document.objects.filter(
                collection=seed_collection, key=str(next_value)
            ).exists():
                next_value += 1

        counter.data = {'value': next_value}
        counter.save(update_fields=['data', 'updated_at'])

    return next_value
