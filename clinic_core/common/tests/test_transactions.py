import pytest
from django.db import OperationalError, transaction

from clinic_core.common.api.exceptions import ConcurrencyConflict
from clinic_core.common.transactions import atomic_with_retry, is_retryable


class _SerializationFailure(Exception):
    sqlstate = "40001"


def _conflict():
    try:
        raise _SerializationFailure()
    except _SerializationFailure as cause:
        raise OperationalError("could not serialize access") from cause


def test_is_retryable():
    with pytest.raises(OperationalError) as exc:
        _conflict()
    assert is_retryable(exc.value)
    assert not is_retryable(OperationalError("no such table"))


@pytest.mark.django_db(transaction=True)
def test_retries_then_succeeds():
    calls = []

    @atomic_with_retry
    def flaky():
        calls.append(1)
        if len(calls) < 3:
            _conflict()
        return "ok"

    assert flaky() == "ok"
    assert len(calls) == 3


@pytest.mark.django_db(transaction=True)
def test_gives_up_with_conflict_error():
    calls = []

    @atomic_with_retry(attempts=2)
    def always():
        calls.append(1)
        _conflict()

    with pytest.raises(ConcurrencyConflict):
        always()
    assert len(calls) == 2


@pytest.mark.django_db(transaction=True)
def test_nested_call_is_not_retried():
    calls = []

    @atomic_with_retry
    def inner():
        calls.append(1)
        _conflict()

    with pytest.raises(ConcurrencyConflict):
        with transaction.atomic():
            inner()
    assert len(calls) == 1


@pytest.mark.django_db(transaction=True)
def test_other_operational_errors_propagate():
    @atomic_with_retry
    def broken():
        raise OperationalError("disk I/O error")

    with pytest.raises(OperationalError):
        broken()
