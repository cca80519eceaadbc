# clinic_core/cash/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet
from rest_framework.exceptions import NotFound

from clinic_core.cash.models import CashMovement, Shift, ShiftStatus


def get_open_shift(*, operator_id: int) -> Shift | None:
    return Shift.objects.filter(operator_id=operator_id, status=ShiftStatus.OPEN).first()


def get_shift(*, shift_id: UUID) -> Shift:
    try:
        return Shift.objects.get(id=shift_id)
    except Shift.DoesNotExist:
        raise NotFound("Shift not found.")


def list_shifts(*, operator_id: int | None = None, status: str | None = None) -> QuerySet[Shift]:
    qs = Shift.objects.select_related("operator")
    if operator_id is not None:
        qs = qs.filter(operator_id=operator_id)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-started_at")


def list_movements(*, shift_id: UUID) -> QuerySet[CashMovement]:
    return (
        CashMovement.objects.filter(shift_id=shift_id)
        .select_related("payment")
        .order_by("created_at")
    )
