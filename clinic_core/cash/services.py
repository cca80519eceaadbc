# clinic_core/cash/services.py
from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from clinic_core.cash.models import CashMovement, MovementType, Shift, ShiftStatus
from clinic_core.cash.selectors import get_open_shift
from clinic_core.common.api.exceptions import ConflictError, ShiftClosed
from clinic_core.common.money import ZERO, non_negative, to_money

logger = logging.getLogger(__name__)


class ShiftService:
    @staticmethod
    def _positive(amount, field_name: str = "amount") -> Decimal:
        amount = to_money(amount, field_name)
        if amount <= ZERO:
            raise ValidationError({field_name: "Must be > 0"})
        return amount

    @staticmethod
    def ensure_active_shift(*, operator_id: int) -> Shift:
        """
        The operator's open shift, opening one if needed.

        Two concurrent callers may both miss the lookup; the partial unique
        constraint lets only one insert through and the other re-reads it.
        """
        shift = get_open_shift(operator_id=operator_id)
        if shift is not None:
            return shift

        try:
            with transaction.atomic():
                shift = Shift.objects.create(
                    operator_id=operator_id,
                    status=ShiftStatus.OPEN,
                    started_at=timezone.now(),
                )
        except IntegrityError:
            return Shift.objects.get(operator_id=operator_id, status=ShiftStatus.OPEN)

        logger.info("Opened shift %s for operator %s", shift.id, operator_id)
        return shift

    @staticmethod
    def open_shift(*, operator_id: int, opening_cash=ZERO, notes: str = "") -> Shift:
        opening_cash = non_negative(opening_cash, "opening_cash")

        if get_open_shift(operator_id=operator_id) is not None:
            raise ConflictError("A shift is already open for this operator.")

        try:
            with transaction.atomic():
                shift = Shift.objects.create(
                    operator_id=operator_id,
                    status=ShiftStatus.OPEN,
                    opening_cash=opening_cash,
                    system_cash=opening_cash,
                    started_at=timezone.now(),
                    notes=notes or "",
                )
        except IntegrityError:
            raise ConflictError("A shift is already open for this operator.")

        logger.info("Opened shift %s for operator %s with %s", shift.id, operator_id, opening_cash)
        return shift

    @staticmethod
    def resolve_shift(*, operator_id: int, shift_id: UUID | None = None) -> Shift:
        """
        The handler-supplied shift when it is still open; otherwise the operator's active shift.
        """
        if shift_id:
            shift = Shift.objects.filter(id=shift_id, status=ShiftStatus.OPEN).first()
            if shift is not None:
                return shift
        return ShiftService.ensure_active_shift(operator_id=operator_id)

    @staticmethod
    def _bump_open(shift: Shift, **deltas) -> None:
        # conditional on status so a concurrent close cannot be overtaken
        updated = Shift.objects.filter(id=shift.id, status=ShiftStatus.OPEN).update(
            **{field: F(field) + delta for field, delta in deltas.items()}
        )
        if not updated:
            raise ShiftClosed()

    @staticmethod
    def record_collection(
        *,
        shift: Shift,
        amount,
        payment=None,
        description: str = "",
    ) -> CashMovement:
        amount = ShiftService._positive(amount)
        ShiftService._bump_open(shift, system_cash=amount, total_collected=amount)
        return CashMovement.objects.create(
            shift=shift,
            amount=amount,
            movement_type=MovementType.COLLECTION,
            payment=payment,
            description=description[:255],
        )

    @staticmethod
    def record_refund(
        *,
        shift: Shift,
        amount,
        description: str = "",
        charge=None,
    ) -> CashMovement:
        amount = ShiftService._positive(amount)
        ShiftService._bump_open(shift, system_cash=-amount, total_refunded=amount)
        return CashMovement.objects.create(
            shift=shift,
            amount=amount,
            movement_type=MovementType.REFUND,
            charge=charge,
            description=description[:255],
        )

    @staticmethod
    def _reverse(shift_id: UUID, **deltas) -> None:
        Shift.objects.filter(id=shift_id).update(**{field: F(field) + delta for field, delta in deltas.items()})
        # a closed shift keeps its counted cash; only the expected side moves
        Shift.objects.filter(id=shift_id, status=ShiftStatus.CLOSED).update(
            variance=F("closing_cash") - F("system_cash")
        )

    @staticmethod
    def reverse_collection(*, shift_id: UUID, amount) -> None:
        amount = to_money(amount)
        ShiftService._reverse(shift_id, system_cash=-amount, total_collected=-amount)

    @staticmethod
    def reverse_refund(*, shift_id: UUID, amount) -> None:
        amount = to_money(amount)
        ShiftService._reverse(shift_id, system_cash=amount, total_refunded=-amount)

    @staticmethod
    @transaction.atomic
    def close_shift(*, shift_id: UUID, closing_cash, operator_id: int | None = None) -> Shift:
        closing_cash = non_negative(closing_cash, "closing_cash")

        try:
            shift = Shift.objects.select_for_update().get(id=shift_id)
        except Shift.DoesNotExist:
            raise NotFound("Shift not found.")

        if operator_id is not None and shift.operator_id != operator_id:
            raise ValidationError({"shift": "Only the shift's operator can close it."})
        if shift.status != ShiftStatus.OPEN:
            raise ShiftClosed("Shift is already closed.")

        shift.status = ShiftStatus.CLOSED
        shift.closing_cash = closing_cash
        shift.variance = to_money(closing_cash - shift.system_cash)
        shift.ended_at = timezone.now()
        shift.save(update_fields=["status", "closing_cash", "variance", "ended_at", "updated_at"])

        logger.info("Closed shift %s: expected %s, counted %s", shift.id, shift.system_cash, closing_cash)
        return shift
