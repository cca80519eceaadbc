# clinic_core/billing/tests/test_orchestrator.py
from decimal import Decimal

import pytest
from rest_framework.exceptions import ValidationError

from clinic_core.admissions.services import AdmissionService
from clinic_core.billing.orchestrator import LedgerOrchestrator
from clinic_core.cash.models import Shift, ShiftStatus
from clinic_core.cash.services import ShiftService

pytestmark = pytest.mark.django_db


def test_check_paid_rejects_overpayment_and_negative():
    with pytest.raises(ValidationError):
        LedgerOrchestrator.check_paid(paid_amount="10.01", grand_total=Decimal("10.00"))
    with pytest.raises(ValidationError):
        LedgerOrchestrator.check_paid(paid_amount="-1", grand_total=Decimal("10.00"))
    assert LedgerOrchestrator.check_paid(paid_amount=None, grand_total=Decimal("10.00")) == Decimal("0.00")


def test_shift_closed_mid_request_moves_cash_to_active_shift(user, department, monkeypatch):
    stale = ShiftService.ensure_active_shift(operator_id=user.id)
    ShiftService.close_shift(shift_id=stale.id, closing_cash="0")
    stale.refresh_from_db()

    # the handler resolved a shift that has since been closed
    monkeypatch.setattr(ShiftService, "resolve_shift", staticmethod(lambda **kwargs: stale))

    result = AdmissionService.create(
        operator_id=user.id,
        patient={"first_name": "Moved"},
        department_id=department.id,
    )

    payment = result.settlement.payment
    assert payment is not None
    assert payment.shift_id != stale.id
    active = Shift.objects.get(operator=user, status=ShiftStatus.OPEN)
    assert payment.shift_id == active.id
    assert active.total_collected == Decimal("300.00")
    # the failed attempt left nothing behind on the closed shift
    assert stale.movements.count() == 0
    assert stale.payments.count() == 0
