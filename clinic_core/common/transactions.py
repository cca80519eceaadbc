# clinic_core/common/transactions.py
from __future__ import annotations

import functools
import logging

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, OperationalError, transaction

from clinic_core.common.api.exceptions import ConcurrencyConflict

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected
RETRYABLE_SQLSTATES = {"40001", "40P01"}


def is_retryable(exc: BaseException) -> bool:
    cause = exc.__cause__ or exc.__context__
    sqlstate = getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)
    if sqlstate in RETRYABLE_SQLSTATES:
        return True
    # sqlite reports lock contention as plain OperationalError text
    return "database is locked" in str(exc).lower()


def atomic_with_retry(fn=None, *, attempts: int | None = None, using: str = DEFAULT_DB_ALIAS):
    """
    Runs the wrapped callable in a single transaction and re-runs it from scratch
    on serialization failures / deadlocks, up to CLINIC_TX_MAX_RETRIES attempts.

    When called inside an already-open transaction the outer owner controls the
    commit, so there is nothing to retry: the failure is converted and re-raised.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            max_attempts = attempts or getattr(settings, "CLINIC_TX_MAX_RETRIES", 3)
            nested = transaction.get_connection(using).in_atomic_block

            for attempt in range(1, max_attempts + 1):
                try:
                    with transaction.atomic(using=using):
                        return func(*args, **kwargs)
                except OperationalError as exc:
                    if not is_retryable(exc):
                        raise
                    if nested or attempt >= max_attempts:
                        logger.warning(
                            "%s aborted after %s attempt(s): %s", func.__qualname__, attempt, exc
                        )
                        raise ConcurrencyConflict() from exc
                    logger.info("%s hit a transaction conflict, retrying (%s/%s)", func.__qualname__, attempt, max_attempts)

        return wrapper

    if fn is not None:
        return decorator(fn)
    return decorator
