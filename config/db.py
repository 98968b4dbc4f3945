import logging
from contextlib import contextmanager

from django.db import OperationalError, transaction

from .errors import TransactionAbort

logger = logging.getLogger(__name__)


@contextmanager
def atomic_unit(label):
    """
    transaction.atomic() that reports storage-level conflicts (serialization
    failure, deadlock, lock timeout) as a retryable TransactionAbort. The
    whole unit is rolled back before the error reaches the caller.
    """
    try:
        with transaction.atomic():
            yield
    except OperationalError as e:
        logger.warning("%s aborted by the database: %s", label, e)
        raise TransactionAbort('Concurrent update detected, please retry', code='TRANSACTION_ABORTED')


def compare_and_swap(queryset, expected, **changes):
    """
    UPDATE ... WHERE <expected> guarded write. Raises TransactionAbort when
    the row no longer holds the expected values, so a stale read can never
    be committed.
    """
    updated = queryset.filter(**expected).update(**changes)
    if updated != 1:
        raise TransactionAbort('Concurrent update detected, please retry', code='TRANSACTION_ABORTED')
    return updated
