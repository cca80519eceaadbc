# clinic_core/inventory/tests/test_stock_ledger.py
from datetime import timedelta
from decimal import Decimal

import pytest
from django.db.models import Sum
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from clinic_core.common.api.exceptions import DateOutOfRange, InsufficientStock
from clinic_core.inventory.models import StockBatch, StockItem, Supplier
from clinic_core.inventory.services import StockItemService, StockLedger

pytestmark = pytest.mark.django_db


@pytest.fixture
def item(user):
    return StockItemService.create(generic_name="Paracetamol", brand_name="Napa", strength="500mg", group_name="Analgesic")


def _stock_matches_batches(item):
    item.refresh_from_db()
    remaining = StockBatch.objects.filter(item=item).aggregate(s=Sum("remaining_qty"))["s"] or 0
    assert item.current_stock == remaining


def test_receive_creates_separate_batches(user, item):
    today = timezone.localdate()
    b1 = StockLedger.receive(item_id=item.id, quantity=5, unit_price="2.00", received_date=today - timedelta(days=3),
                             supplier_name="Square Pharma", operator_id=user.id)
    b2 = StockLedger.receive(item_id=item.id, quantity=10, unit_price="2.50", supplier_name="square pharma",
                             operator_id=user.id)

    assert b1.id != b2.id
    assert b2.remaining_qty == 10
    assert b2.total_amount == Decimal("25.00")
    assert b1.supplier_id == b2.supplier_id
    assert Supplier.objects.count() == 1
    _stock_matches_batches(item)
    assert item.current_stock == 15


def test_receive_validation(user, item):
    today = timezone.localdate()
    with pytest.raises(ValidationError):
        StockLedger.receive(item_id=item.id, quantity=0, unit_price="1.00")
    with pytest.raises(ValidationError):
        StockLedger.receive(item_id=item.id, quantity=1, unit_price="-1.00")
    with pytest.raises(DateOutOfRange):
        StockLedger.receive(item_id=item.id, quantity=1, unit_price="1.00", received_date=today + timedelta(days=1))
    with pytest.raises(ValidationError):
        StockLedger.receive(item_id=item.id, quantity=1, unit_price="1.00", expiry_date=today - timedelta(days=1))
    assert StockBatch.objects.count() == 0


def test_consume_is_fifo_across_batches(user, item):
    today = timezone.localdate()
    b1 = StockLedger.receive(item_id=item.id, quantity=5, unit_price="2.00", received_date=today - timedelta(days=2))
    b2 = StockLedger.receive(item_id=item.id, quantity=10, unit_price="3.00", received_date=today - timedelta(days=1))

    taken = StockLedger.consume(item_id=item.id, quantity=8, as_of_date=today)

    assert [(c.batch.id, c.quantity, c.unit_price) for c in taken] == [
        (b1.id, 5, Decimal("2.00")),
        (b2.id, 3, Decimal("3.00")),
    ]
    b1.refresh_from_db()
    b2.refresh_from_db()
    assert b1.remaining_qty == 0
    assert b2.remaining_qty == 7
    _stock_matches_batches(item)


def test_consume_more_than_available_changes_nothing(user, item):
    b = StockLedger.receive(item_id=item.id, quantity=10, unit_price="1.00")

    with pytest.raises(InsufficientStock):
        StockLedger.consume(item_id=item.id, quantity=12, as_of_date=timezone.localdate())

    b.refresh_from_db()
    assert b.remaining_qty == 10
    _stock_matches_batches(item)


def test_consume_before_first_intake_is_rejected(user, item):
    today = timezone.localdate()
    StockLedger.receive(item_id=item.id, quantity=10, unit_price="1.00", received_date=today)

    with pytest.raises(DateOutOfRange):
        StockLedger.consume(item_id=item.id, quantity=1, as_of_date=today - timedelta(days=1))


def test_restore_caps_at_original_quantity(user, item):
    b = StockLedger.receive(item_id=item.id, quantity=4, unit_price="1.00")
    StockLedger.consume(item_id=item.id, quantity=3, as_of_date=timezone.localdate())

    restored = StockLedger.restore(consumptions=[(b.id, 10)])

    assert restored == 3
    b.refresh_from_db()
    assert b.remaining_qty == 4
    _stock_matches_batches(item)


def test_item_defaults(item):
    item = StockItem.objects.get(id=item.id)
    assert item.display_name == "Napa 500mg"
    assert item.group.name == "Analgesic"
    assert item.low_stock_threshold == 10
    assert item.is_low_stock


def test_allocate_plans_fifo_without_writing(user, item):
    today = timezone.localdate()
    b1 = StockLedger.receive(item_id=item.id, quantity=5, unit_price="2.00", received_date=today - timedelta(days=2))
    b2 = StockLedger.receive(item_id=item.id, quantity=10, unit_price="3.00", received_date=today - timedelta(days=1))

    plan = StockLedger.allocate(item_id=item.id, quantity=8, as_of_date=today)

    assert [(c.batch.id, c.quantity) for c in plan] == [(b1.id, 5), (b2.id, 3)]
    assert sorted(StockBatch.objects.values_list("remaining_qty", flat=True)) == [5, 10]
    _stock_matches_batches(item)
    assert item.current_stock == 15
