# clinic_core/inventory/tests/test_sale_services.py
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from clinic_core.accounts.models import Account
from clinic_core.audit.models import AuditEvent
from clinic_core.billing.models import Charge, Payment, ServiceType
from clinic_core.cash.models import CashMovement, Shift
from clinic_core.common.api.exceptions import DateOutOfRange, InsufficientStock
from clinic_core.common.numbering import year_two_digit
from clinic_core.inventory.models import Sale, SaleLine, StockBatch
from clinic_core.inventory.services import SaleService, StockItemService, StockLedger
from clinic_core.patients.models import Patient

pytestmark = pytest.mark.django_db


@pytest.fixture
def stocked(user):
    today = timezone.localdate()
    item = StockItemService.create(generic_name="Omeprazole", strength="20mg")
    b1 = StockLedger.receive(item_id=item.id, quantity=5, unit_price="4.00", received_date=today - timedelta(days=2))
    b2 = StockLedger.receive(item_id=item.id, quantity=10, unit_price="5.00", received_date=today - timedelta(days=1))
    return item, b1, b2


def _sell(user, item, **kwargs):
    kwargs.setdefault("patient", {"first_name": "Rumana"})
    return SaleService.sell(operator_id=user.id, item_id=item.id, **kwargs)


def test_sale_consumes_fifo_and_bills(user, stocked):
    item, b1, b2 = stocked

    result = _sell(user, item, quantity=8)
    sale = result.sale

    assert sale.sale_number == f"SALE-{year_two_digit()}-00001"
    assert sale.total_amount == Decimal("35.00")  # 5 x 4 + 3 x 5
    assert sale.paid_amount == Decimal("35.00")
    assert sale.due_amount == Decimal("0.00")
    assert list(SaleLine.objects.filter(sale=sale).order_by("line_total").values_list("batch_id", "quantity")) == [
        (b2.id, 3),
        (b1.id, 5),
    ]

    item.refresh_from_db()
    assert item.current_stock == 7

    charge = Charge.objects.get(sale=sale)
    assert charge.service_type == ServiceType.MEDICINE_SALE
    assert charge.final_amount == Decimal("35.00")
    assert result.settlement.payment.receipt_number.startswith("RCP-")

    shift = Shift.objects.get(operator=user)
    assert shift.system_cash == Decimal("35.00")

    event = AuditEvent.objects.get(event_code="medicine_sale.created")
    assert "2 batches" in event.description


def test_override_price_applies_to_every_line(user, stocked):
    item, _, _ = stocked
    sale = _sell(user, item, quantity=8, unit_price_override="6.00", paid_amount="10.00").sale

    assert sale.total_amount == Decimal("48.00")
    assert set(sale.lines.values_list("unit_price", flat=True)) == {Decimal("6.00")}
    assert Account.objects.get(patient=sale.patient).total_due == Decimal("38.00")


def test_insufficient_stock_writes_nothing(user, stocked):
    item, b1, b2 = stocked

    with pytest.raises(InsufficientStock):
        _sell(user, item, quantity=16)

    assert Sale.objects.count() == 0
    assert Patient.objects.count() == 0
    assert sorted(StockBatch.objects.values_list("remaining_qty", flat=True)) == [5, 10]


def test_sale_date_bounds(user, stocked):
    item, _, _ = stocked
    today = timezone.localdate()

    with pytest.raises(DateOutOfRange):
        _sell(user, item, quantity=1, sale_date=today + timedelta(days=1))
    with pytest.raises(DateOutOfRange):
        _sell(user, item, quantity=1, sale_date=today - timedelta(days=10))
    assert Sale.objects.count() == 0


def test_overpayment_rolls_back_stock(user, stocked):
    item, _, _ = stocked

    with pytest.raises(ValidationError):
        _sell(user, item, quantity=1, paid_amount="100.00")

    item.refresh_from_db()
    assert item.current_stock == 15
    assert Sale.objects.count() == 0


def test_overpayment_is_rejected_before_stock_moves(user, stocked, monkeypatch):
    item, _, _ = stocked
    taken = []
    monkeypatch.setattr(StockLedger, "take", staticmethod(lambda **kwargs: taken.append(kwargs)))

    with pytest.raises(ValidationError):
        _sell(user, item, quantity=8, unit_price_override="6.00", paid_amount="48.01")
    with pytest.raises(ValidationError):
        _sell(user, item, quantity=8, paid_amount="35.01")

    assert taken == []
    assert Patient.objects.count() == 0
    item.refresh_from_db()
    assert item.current_stock == 15


def test_delete_restocks_and_reverses(user, stocked):
    item, b1, b2 = stocked
    sale = _sell(user, item, quantity=8, paid_amount="20.00").sale
    patient_id = sale.patient_id

    summary = SaleService.delete(operator_id=user.id, sale_id=sale.id)

    assert summary["restocked"] == 8
    b1.refresh_from_db()
    b2.refresh_from_db()
    assert (b1.remaining_qty, b2.remaining_qty) == (5, 10)
    item.refresh_from_db()
    assert item.current_stock == 15

    assert not Sale.objects.exists()
    assert not Charge.objects.exists()
    assert not Payment.objects.exists()
    assert not CashMovement.objects.exists()

    account = Account.objects.get(patient_id=patient_id)
    assert account.total_charges == Decimal("0.00")
    assert account.total_paid == Decimal("0.00")
    assert Shift.objects.get(operator=user).system_cash == Decimal("0.00")
