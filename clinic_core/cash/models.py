# clinic_core/cash/models.py
from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q

from clinic_core.common.models import BaseModel, money_field


class ShiftStatus(models.TextChoices):
    OPEN = "OPEN", "Open"
    CLOSED = "CLOSED", "Closed"


class Shift(BaseModel):
    """
    One operator's cash drawer session.

    system_cash is what the drawer should hold: opening_cash + collections - refunds.
    Running totals are only ever changed with F() updates.
    """
    operator = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="shifts")
    status = models.CharField(max_length=16, choices=ShiftStatus.choices, default=ShiftStatus.OPEN)

    opening_cash = money_field()
    system_cash = money_field()
    total_collected = money_field()
    total_refunded = money_field()

    closing_cash = money_field(null=True, blank=True, default=None)
    variance = money_field(null=True, blank=True, default=None)

    started_at = models.DateTimeField()
    ended_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        db_table = "cash_shift"
        constraints = [
            models.UniqueConstraint(
                fields=["operator"],
                condition=Q(status="OPEN"),
                name="uq_shift_one_open_per_operator",
            ),
        ]
        indexes = [
            models.Index(fields=["operator", "status"]),
            models.Index(fields=["started_at"]),
        ]

    @property
    def is_open(self) -> bool:
        return self.status == ShiftStatus.OPEN

    def __str__(self) -> str:
        return f"Shift {self.operator_id} {self.started_at:%Y-%m-%d %H:%M} ({self.status})"


class MovementType(models.TextChoices):
    COLLECTION = "COLLECTION", "Collection"
    REFUND = "REFUND", "Refund"


class CashMovement(BaseModel):
    """
    Append-only drawer journal. Amount is always positive; movement_type gives the sign.
    """
    shift = models.ForeignKey(Shift, on_delete=models.PROTECT, related_name="movements")
    amount = money_field()
    movement_type = models.CharField(max_length=16, choices=MovementType.choices)
    description = models.CharField(max_length=255, blank=True)

    payment = models.ForeignKey(
        "billing.Payment",
        on_delete=models.PROTECT,
        related_name="cash_movements",
        null=True,
        blank=True,
    )
    # set on refunds produced by edits so the owning record can reverse them
    charge = models.ForeignKey(
        "billing.Charge",
        on_delete=models.SET_NULL,
        related_name="refund_movements",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "cash_movement"
        indexes = [
            models.Index(fields=["shift", "created_at"]),
            models.Index(fields=["movement_type"]),
        ]

    @property
    def signed_amount(self):
        return self.amount if self.movement_type == MovementType.COLLECTION else -self.amount
