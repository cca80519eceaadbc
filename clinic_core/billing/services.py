# clinic_core/billing/services.py
from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from django.db.models import QuerySet
from rest_framework.exceptions import ValidationError

from clinic_core.accounts.services import AccountLedger
from clinic_core.billing.models import (
    LINK_FIELDS,
    Charge,
    Payment,
    PaymentAllocation,
    PaymentMethod,
    service_type_for,
)
from clinic_core.cash.models import CashMovement, MovementType, Shift
from clinic_core.cash.services import ShiftService
from clinic_core.common.money import ZERO, Totals, to_money
from clinic_core.common.numbering import next_receipt_number


class ChargeService:
    @staticmethod
    def create(
        *,
        record,
        patient_id: UUID,
        service_name: str,
        department_code: str,
        totals: Totals,
    ) -> Charge:
        charge = Charge(
            patient_id=patient_id,
            service_name=service_name[:255],
            department_code=department_code or "",
            original_amount=totals.subtotal,
            discount_amount=totals.discount_amount,
            final_amount=totals.grand_total,
        )
        charge.link_to(record)
        charge.save()
        return charge

    @staticmethod
    def update_amounts(*, charge: Charge, totals: Totals, service_name: str | None = None) -> Charge:
        charge.original_amount = totals.subtotal
        charge.discount_amount = totals.discount_amount
        charge.final_amount = totals.grand_total
        fields = ["original_amount", "discount_amount", "final_amount", "updated_at"]
        if service_name:
            charge.service_name = service_name[:255]
            fields.append("service_name")
        charge.save(update_fields=fields)
        return charge

    @staticmethod
    def for_record(record, *, lock: bool = False) -> QuerySet[Charge]:
        qs = Charge.objects.filter(**{LINK_FIELDS[service_type_for(record)]: record})
        if lock:
            qs = qs.select_for_update()
        return qs.order_by("created_at")

    @staticmethod
    def primary_for(record) -> Charge:
        charge = ChargeService.for_record(record, lock=True).first()
        if charge is None:
            raise ValidationError({"charge": f"No charge is linked to {record._meta.label} {record.pk}."})
        return charge


class PaymentService:
    @staticmethod
    def collect(
        *,
        charge: Charge,
        amount,
        shift: Shift,
        operator_id: int | None,
        method: str = PaymentMethod.CASH,
        notes: str = "",
    ) -> Payment:
        """
        Payment + full allocation to `charge` + COLLECTION on `shift`.
        Raises ShiftClosed (after writing) if the shift closed underneath; run in a savepoint.
        """
        amount = to_money(amount)
        if amount <= ZERO:
            raise ValidationError({"amount": "Payment amount must be > 0."})
        if method not in PaymentMethod.values:
            raise ValidationError({"method": f"Unknown payment method '{method}'."})

        payment = Payment.objects.create(
            patient_id=charge.patient_id,
            amount=amount,
            method=method,
            collected_by_id=operator_id,
            shift=shift,
            receipt_number=next_receipt_number(),
            notes=(notes or "")[:255],
        )
        PaymentAllocation.objects.create(payment=payment, charge=charge, allocated_amount=amount)
        ShiftService.record_collection(
            shift=shift,
            amount=amount,
            payment=payment,
            description=f"{payment.receipt_number} {charge.service_name}",
        )
        return payment


class ReversalService:
    """
    Undoes every financial trace of a set of charges: allocations, payments,
    their collections, edit refunds, and the account totals.
    """

    @staticmethod
    def reverse_charges(*, charges: list[Charge]) -> dict[UUID, tuple[Decimal, Decimal]]:
        if not charges:
            return {}

        charge_ids = [c.id for c in charges]
        allocations = list(PaymentAllocation.objects.filter(charge_id__in=charge_ids))
        payment_ids = {a.payment_id for a in allocations}

        collections = list(
            CashMovement.objects.filter(payment_id__in=payment_ids, movement_type=MovementType.COLLECTION)
        )
        refunds = list(CashMovement.objects.filter(charge_id__in=charge_ids, movement_type=MovementType.REFUND))

        deltas: dict[UUID, tuple[Decimal, Decimal]] = {}
        patient_of = {c.id: c.patient_id for c in charges}
        for c in charges:
            ch, paid = deltas.get(c.patient_id, (ZERO, ZERO))
            deltas[c.patient_id] = (ch + c.final_amount, paid)
        for a in allocations:
            pid = patient_of[a.charge_id]
            ch, paid = deltas[pid]
            deltas[pid] = (ch, paid + a.allocated_amount)
        for r in refunds:
            pid = patient_of[r.charge_id]
            ch, paid = deltas[pid]
            deltas[pid] = (ch, paid - r.amount)

        PaymentAllocation.objects.filter(id__in=[a.id for a in allocations]).delete()

        for m in collections:
            ShiftService.reverse_collection(shift_id=m.shift_id, amount=m.amount)
        CashMovement.objects.filter(id__in=[m.id for m in collections]).delete()
        Payment.objects.filter(id__in=payment_ids).delete()

        for r in refunds:
            ShiftService.reverse_refund(shift_id=r.shift_id, amount=r.amount)
        CashMovement.objects.filter(id__in=[r.id for r in refunds]).delete()

        for patient_id, (charge_total, paid_total) in deltas.items():
            AccountLedger.apply_deltas(patient_id=patient_id, charge_delta=-charge_total, paid_delta=-paid_total)

        Charge.objects.filter(id__in=charge_ids).delete()
        return deltas
