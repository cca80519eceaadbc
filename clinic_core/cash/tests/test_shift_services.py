# clinic_core/cash/tests/test_shift_services.py
from decimal import Decimal

import pytest
from rest_framework.exceptions import ValidationError

from clinic_core.cash import services as cash_services
from clinic_core.cash.models import MovementType, Shift, ShiftStatus
from clinic_core.cash.services import ShiftService
from clinic_core.common.api.exceptions import ConflictError, ShiftClosed

pytestmark = pytest.mark.django_db


def test_ensure_active_shift_twice_yields_one_open_shift(user):
    a = ShiftService.ensure_active_shift(operator_id=user.id)
    b = ShiftService.ensure_active_shift(operator_id=user.id)

    assert a.id == b.id
    assert Shift.objects.filter(operator=user, status=ShiftStatus.OPEN).count() == 1


def test_ensure_active_shift_recovers_from_lost_insert_race(user, monkeypatch):
    winner = Shift.objects.create(operator=user, status=ShiftStatus.OPEN, started_at="2025-01-01T08:00:00Z")

    # both callers missed the lookup; the insert hits the partial unique constraint
    monkeypatch.setattr(cash_services, "get_open_shift", lambda **kwargs: None)

    shift = ShiftService.ensure_active_shift(operator_id=user.id)
    assert shift.id == winner.id
    assert Shift.objects.filter(operator=user).count() == 1


def test_open_shift_conflicts_when_one_is_open(user):
    ShiftService.open_shift(operator_id=user.id, opening_cash="500")
    with pytest.raises(ConflictError):
        ShiftService.open_shift(operator_id=user.id)


def test_open_shift_seeds_system_cash(user):
    shift = ShiftService.open_shift(operator_id=user.id, opening_cash="500")
    assert shift.system_cash == Decimal("500.00")


def test_collection_and_refund_move_running_totals(shift):
    ShiftService.record_collection(shift=shift, amount="300", description="fee")
    ShiftService.record_refund(shift=shift, amount="120", description="refund")

    shift.refresh_from_db()
    assert shift.system_cash == Decimal("180.00")
    assert shift.total_collected == Decimal("300.00")
    assert shift.total_refunded == Decimal("120.00")
    assert [m.movement_type for m in shift.movements.order_by("created_at")] == [
        MovementType.COLLECTION,
        MovementType.REFUND,
    ]


def test_movement_amount_must_be_positive(shift):
    with pytest.raises(ValidationError):
        ShiftService.record_collection(shift=shift, amount="0")
    assert shift.movements.count() == 0


def test_close_shift_computes_variance_and_blocks_movements(user, shift):
    ShiftService.record_collection(shift=shift, amount="1000")

    closed = ShiftService.close_shift(shift_id=shift.id, closing_cash="950", operator_id=user.id)
    assert closed.status == ShiftStatus.CLOSED
    assert closed.variance == Decimal("-50.00")
    assert closed.ended_at is not None

    with pytest.raises(ShiftClosed):
        ShiftService.record_collection(shift=closed, amount="10")
    with pytest.raises(ShiftClosed):
        ShiftService.close_shift(shift_id=shift.id, closing_cash="950")


def test_resolve_shift_falls_back_when_supplied_shift_is_closed(user, shift):
    ShiftService.close_shift(shift_id=shift.id, closing_cash="0")

    resolved = ShiftService.resolve_shift(operator_id=user.id, shift_id=shift.id)
    assert resolved.id != shift.id
    assert resolved.status == ShiftStatus.OPEN


def test_reversal_on_closed_shift_updates_variance(shift):
    ShiftService.record_collection(shift=shift, amount="200")
    ShiftService.close_shift(shift_id=shift.id, closing_cash="200")

    ShiftService.reverse_collection(shift_id=shift.id, amount="200")

    shift.refresh_from_db()
    assert shift.system_cash == Decimal("0.00")
    assert shift.total_collected == Decimal("0.00")
    assert shift.variance == Decimal("200.00")
