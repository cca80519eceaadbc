# clinic_core/common/money.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

from rest_framework.exceptions import ValidationError

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


class DiscountType:
    PERCENTAGE = "percentage"
    VALUE = "value"

    CHOICES = [
        (PERCENTAGE, "Percentage"),
        (VALUE, "Fixed amount"),
    ]
    ALL = {PERCENTAGE, VALUE}


def to_money(value, field_name: str = "amount") -> Decimal:
    """
    Accepts Decimal / str / int / float and converts to a 2-place Decimal.
    Raises ValidationError for invalid values.
    """
    if value is None or value == "":
        return ZERO
    if not isinstance(value, Decimal):
        try:
            # str() handles int/float/str uniformly
            value = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise ValidationError({field_name: "Invalid decimal value."})
    if not value.is_finite():
        raise ValidationError({field_name: "Invalid decimal value."})
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def non_negative(value, field_name: str) -> Decimal:
    amount = to_money(value, field_name)
    if amount < ZERO:
        raise ValidationError({field_name: "Must be >= 0"})
    return amount


def compute_discount(
    subtotal: Decimal,
    discount_type: str | None,
    discount_value=None,
    fallback_amount=None,
) -> Decimal:
    """
    percentage -> subtotal * value / 100
    value      -> value as a fixed amount
    otherwise  -> fallback_amount (an explicit amount) or zero

    The result is capped at the subtotal, so a discount never makes a charge negative.
    """
    subtotal = to_money(subtotal, "subtotal")

    if discount_type and discount_type not in DiscountType.ALL:
        raise ValidationError({"discount_type": f"Unknown discount type '{discount_type}'."})

    if discount_type and discount_value not in (None, ""):
        value = non_negative(discount_value, "discount_value")
        if discount_type == DiscountType.PERCENTAGE:
            if value > Decimal("100"):
                raise ValidationError({"discount_value": "Percentage discount must be <= 100."})
            discount = subtotal * value / Decimal("100")
        else:
            discount = value
    else:
        discount = non_negative(fallback_amount, "discount_amount")

    discount = to_money(discount, "discount_amount")
    return min(max(discount, ZERO), subtotal)


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    discount_amount: Decimal
    grand_total: Decimal


def compute_totals(
    line_amounts: Iterable,
    *,
    discount_type: str | None = None,
    discount_value=None,
    discount_amount=None,
) -> Totals:
    subtotal = sum((non_negative(a, "line_amount") for a in line_amounts), ZERO)
    discount = compute_discount(subtotal, discount_type, discount_value, discount_amount)
    return Totals(
        subtotal=subtotal,
        discount_amount=discount,
        grand_total=to_money(subtotal - discount),
    )
