# clinic_core/billing/orchestrator.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, TypeVar
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from clinic_core.accounts.services import AccountLedger
from clinic_core.audit.services import AuditContext, AuditService
from clinic_core.billing.models import Charge, Payment, PaymentMethod
from clinic_core.billing.services import ChargeService, PaymentService, ReversalService
from clinic_core.cash.models import CashMovement, Shift
from clinic_core.cash.services import ShiftService
from clinic_core.common.api.exceptions import ShiftClosed
from clinic_core.common.money import ZERO, Totals, non_negative

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Settlement:
    """Cash effect of posting or editing a billable record."""
    charge: Charge
    paid_diff: Decimal
    payment: Payment | None = None
    refund: CashMovement | None = None


class LedgerOrchestrator:
    """
    Financial half of every billable-record operation. Callers own the
    transaction (atomic_with_retry) and must validate before calling in.
    """

    @staticmethod
    def check_paid(*, paid_amount, grand_total: Decimal) -> Decimal:
        paid = non_negative(paid_amount, "paid_amount")
        if paid > grand_total:
            raise ValidationError({"paid_amount": f"Paid amount {paid} exceeds the total {grand_total}."})
        return paid

    @staticmethod
    def _on_open_shift(*, operator_id: int, shift_id: UUID | None, fn: Callable[[Shift], T]) -> T:
        """
        Runs fn against the resolved shift; if that shift was closed in the
        meantime, retries once on the operator's active shift.
        """
        shift = ShiftService.resolve_shift(operator_id=operator_id, shift_id=shift_id)
        try:
            with transaction.atomic():
                return fn(shift)
        except ShiftClosed:
            logger.info("Shift %s closed mid-request; moving cash to the active shift of %s", shift.id, operator_id)
            shift = ShiftService.ensure_active_shift(operator_id=operator_id)
            return fn(shift)

    @staticmethod
    def _collect(*, charge: Charge, amount: Decimal, operator_id: int, shift_id: UUID | None,
                 method: str = PaymentMethod.CASH) -> Payment:
        return LedgerOrchestrator._on_open_shift(
            operator_id=operator_id,
            shift_id=shift_id,
            fn=lambda shift: PaymentService.collect(
                charge=charge, amount=amount, shift=shift, operator_id=operator_id, method=method
            ),
        )

    @staticmethod
    def post_new_charge(
        *,
        record,
        patient_id: UUID,
        service_name: str,
        department_code: str,
        totals: Totals,
        paid_amount,
        operator_id: int,
        shift_id: UUID | None = None,
        method: str = PaymentMethod.CASH,
    ) -> Settlement:
        paid = LedgerOrchestrator.check_paid(paid_amount=paid_amount, grand_total=totals.grand_total)

        charge = ChargeService.create(
            record=record,
            patient_id=patient_id,
            service_name=service_name,
            department_code=department_code,
            totals=totals,
        )
        AccountLedger.apply_deltas(patient_id=patient_id, charge_delta=totals.grand_total, paid_delta=paid)

        payment = None
        if paid > ZERO:
            payment = LedgerOrchestrator._collect(
                charge=charge, amount=paid, operator_id=operator_id, shift_id=shift_id, method=method
            )
        return Settlement(charge=charge, paid_diff=paid, payment=payment)

    @staticmethod
    def settle_edit(
        *,
        record,
        patient_id: UUID,
        totals: Totals,
        old_paid: Decimal,
        new_paid,
        operator_id: int,
        shift_id: UUID | None = None,
        service_name: str | None = None,
    ) -> Settlement:
        """
        diff > 0: new Payment + Allocation + COLLECTION
        diff < 0: REFUND movement linked to the charge, no Payment row
        diff = 0: no cash effect
        """
        paid = LedgerOrchestrator.check_paid(paid_amount=new_paid, grand_total=totals.grand_total)
        charge = ChargeService.primary_for(record)
        old_grand = charge.final_amount
        diff = paid - old_paid

        payment = refund = None
        if diff > ZERO:
            payment = LedgerOrchestrator._collect(
                charge=charge, amount=diff, operator_id=operator_id, shift_id=shift_id
            )
        elif diff < ZERO:
            refund = LedgerOrchestrator._on_open_shift(
                operator_id=operator_id,
                shift_id=shift_id,
                fn=lambda shift: ShiftService.record_refund(
                    shift=shift,
                    amount=-diff,
                    description=f"Refund {charge.service_name}",
                    charge=charge,
                ),
            )

        ChargeService.update_amounts(charge=charge, totals=totals, service_name=service_name)
        AccountLedger.apply_deltas(
            patient_id=patient_id,
            charge_delta=totals.grand_total - old_grand,
            paid_delta=diff,
        )
        return Settlement(charge=charge, paid_diff=diff, payment=payment, refund=refund)

    @staticmethod
    def reverse(
        *,
        record,
        entity_type: str,
        operator_id: int | None,
        context: AuditContext | None = None,
    ) -> dict:
        charges = list(ChargeService.for_record(record, lock=True))
        deltas = ReversalService.reverse_charges(charges=charges)

        charge_total = sum((c for c, _ in deltas.values()), ZERO)
        paid_total = sum((p for _, p in deltas.values()), ZERO)

        AuditService.deleted(
            event_code="ledger.reversed",
            entity_type=entity_type,
            entity_id=record.pk,
            actor_user_id=operator_id,
            description=f"Financials reversed: charges {charge_total}, net paid {paid_total}",
            metadata={
                "charges": [str(c.id) for c in charges],
                "charge_total": str(charge_total),
                "paid_total": str(paid_total),
            },
            context=context,
        )
        return {"charges": len(charges), "charge_total": charge_total, "paid_total": paid_total}
