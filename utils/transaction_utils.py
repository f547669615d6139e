"""
Transaction Utilities for the Storefront Backend
================================================

Transaction helpers for the order ledger: an atomic block that reports database
failures as ``TransactionError`` and a retry decorator for lock contention.

Usage Examples:
    # Context manager
    with atomic_operation("save order"):
        order.save()
        OrderItem.objects.bulk_create(items)

    # Function decorator
    @retry_on_deadlock(max_retries=3)
    def update_status(order_id, status):
        ...
"""

import logging
import time
from contextlib import contextmanager
from functools import wraps

from django.db import DatabaseError, OperationalError, transaction

logger = logging.getLogger(__name__)

# Messages raised by the supported backends when a lock could not be taken
LOCK_CONTENTION_MARKERS = (
    "deadlock",  # PostgreSQL / MySQL
    "database is locked",  # SQLite
    "could not obtain lock",
)


class TransactionError(Exception):
    """Raised when a database transaction fails and was rolled back"""

    pass


class DeadlockError(TransactionError):
    """Raised when lock contention persists after all retries"""

    pass


def is_lock_contention(error: Exception) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in LOCK_CONTENTION_MARKERS)


@contextmanager
def atomic_operation(operation_name="Unknown", using="default"):
    """
    Context manager for an all-or-nothing block of writes.

    Any ``DatabaseError`` raised inside the block rolls back every write made in
    it and is re-raised as ``TransactionError``. Other exceptions roll back too
    and propagate unchanged.

    Args:
        operation_name (str): Name of the operation for logging
        using (str): Database alias

    Usage:
        with atomic_operation("Order save"):
            order.save()
            OrderItem.objects.filter(order=order).delete()
    """
    start_time = time.time()
    logger.debug(f"Starting atomic operation: {operation_name}")

    try:
        with transaction.atomic(using=using):
            yield
    except DatabaseError as e:
        elapsed = time.time() - start_time
        logger.error(f"Operation '{operation_name}' rolled back after {elapsed:.3f}s: {e}")
        if is_lock_contention(e):
            raise DeadlockError(f"{operation_name} failed on lock contention: {e}") from e
        raise TransactionError(f"{operation_name} failed: {e}") from e

    elapsed = time.time() - start_time
    logger.debug(f"Operation '{operation_name}' committed in {elapsed:.3f}s")


def retry_on_deadlock(max_retries=3, delay=0.1, backoff=2.0):
    """
    Decorator to retry operations on lock contention with exponential backoff.

    Args:
        max_retries (int): Maximum number of retry attempts
        delay (float): Initial delay between retries in seconds
        backoff (float): Backoff multiplier for delay
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            current_delay = delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except (DeadlockError, OperationalError) as e:
                    if not is_lock_contention(e) and not isinstance(e, DeadlockError):
                        raise
                    if attempt >= max_retries:
                        raise DeadlockError(f"Lock contention persisted after {max_retries} retries: {e}") from e
                    logger.warning(
                        f"Lock contention in {func.__name__}, retrying in {current_delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(current_delay)
                    current_delay *= backoff

        return wrapper

    return decorator
