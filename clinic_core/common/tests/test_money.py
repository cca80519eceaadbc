from decimal import Decimal

import pytest
from rest_framework.exceptions import ValidationError

from clinic_core.common.money import compute_discount, compute_totals, non_negative, to_money


def test_to_money_rounds_half_up():
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(3) == Decimal("3.00")
    assert to_money(None) == Decimal("0.00")


@pytest.mark.parametrize("raw", ["abc", "NaN", "Infinity"])
def test_to_money_rejects_garbage(raw):
    with pytest.raises(ValidationError):
        to_money(raw, "paid_amount")


def test_non_negative():
    with pytest.raises(ValidationError) as exc:
        non_negative("-0.01", "seat_rent")
    assert "seat_rent" in exc.value.detail


def test_percentage_discount():
    totals = compute_totals(["1000", "500"], discount_type="percentage", discount_value="10")
    assert totals.subtotal == Decimal("1500.00")
    assert totals.discount_amount == Decimal("150.00")
    assert totals.grand_total == Decimal("1350.00")


def test_discount_is_capped_at_subtotal():
    assert compute_discount(Decimal("200.00"), "value", "500") == Decimal("200.00")


def test_explicit_amount_used_without_type():
    assert compute_discount(Decimal("200.00"), None, None, "25") == Decimal("25.00")


def test_bad_discount_inputs():
    with pytest.raises(ValidationError):
        compute_discount(Decimal("100.00"), "percentage", "101")
    with pytest.raises(ValidationError):
        compute_discount(Decimal("100.00"), "bogus", "1")
