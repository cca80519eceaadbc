# clinic_core/admissions/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from django.conf import settings
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from clinic_core.admissions.constants import (
    BASELINE_FEE,
    CANCELED_REMARK_PREFIX,
    CLINICAL_FIELDS,
    FEE_COMPONENTS,
    TRANSITIONS,
    AdmissionStatus,
    TransitionRule,
)
from clinic_core.admissions.models import Admission
from clinic_core.audit.services import AuditContext, AuditService
from clinic_core.billing.orchestrator import LedgerOrchestrator, Settlement
from clinic_core.common.money import ZERO, Totals, compute_totals, non_negative, to_money
from clinic_core.common.numbering import next_registration_number
from clinic_core.common.transactions import atomic_with_retry
from clinic_core.departments.models import Department, Doctor
from clinic_core.departments.selectors import get_department, get_doctor, registration_code
from clinic_core.patients.services import HospitalData, PatientData, PatientService

logger = logging.getLogger(__name__)

FINANCIAL_FIELDS = set(FEE_COMPONENTS) | {"discount_type", "discount_value", "discount_amount", "paid_amount"}


def baseline_admission_fee() -> Decimal:
    return to_money(getattr(settings, "CLINIC_ADMISSION_FEE", Decimal("300.00")))


@dataclass(frozen=True)
class AdmissionResult:
    admission: Admission
    settlement: Settlement
    rule: str = TransitionRule.UPDATE


@dataclass(frozen=True)
class _Financials:
    fees: dict[str, Decimal]
    discount_type: str | None
    discount_value: Decimal | None
    totals: Totals
    paid_amount: Decimal


class AdmissionService:
    @staticmethod
    def _financials(
        *,
        fees: dict,
        discount_type: str | None,
        discount_value,
        discount_amount,
        paid_amount,
    ) -> _Financials:
        clean_fees = {name: non_negative(fees.get(name), name) for name in FEE_COMPONENTS}
        totals = compute_totals(
            clean_fees.values(),
            discount_type=discount_type or None,
            discount_value=discount_value,
            discount_amount=discount_amount,
        )
        # paid defaults to the full grand total
        paid = totals.grand_total if paid_amount is None else non_negative(paid_amount, "paid_amount")
        LedgerOrchestrator.check_paid(paid_amount=paid, grand_total=totals.grand_total)
        return _Financials(
            fees=clean_fees,
            discount_type=discount_type or None,
            discount_value=None if discount_value in (None, "") else non_negative(discount_value, "discount_value"),
            totals=totals,
            paid_amount=paid,
        )

    @staticmethod
    def _apply(admission: Admission, fin: _Financials) -> None:
        for name, value in fin.fees.items():
            setattr(admission, name, value)
        admission.total_amount = fin.totals.subtotal
        admission.discount_type = fin.discount_type
        admission.discount_value = fin.discount_value
        admission.discount_amount = fin.totals.discount_amount
        admission.grand_total = fin.totals.grand_total
        admission.paid_amount = fin.paid_amount
        admission.due_amount = fin.totals.grand_total - fin.paid_amount

    @staticmethod
    def _resolve_staff(department_id: UUID | None, doctor_id: UUID | None) -> tuple[Department | None, Doctor | None]:
        department = get_department(department_id=department_id) if department_id else None
        doctor = get_doctor(doctor_id=doctor_id) if doctor_id else None
        return department, doctor

    @staticmethod
    @atomic_with_retry
    def create(
        *,
        operator_id: int,
        patient: dict,
        hospital: dict | None = None,
        department_id: UUID | None = None,
        doctor_id: UUID | None = None,
        data: dict | None = None,
        shift_id: UUID | None = None,
        context: AuditContext | None = None,
    ) -> AdmissionResult:
        """
        Registers an admission and posts its charge; the front desk collects the
        fee up front, so paid_amount defaults to the grand total.
        """
        data = dict(data or {})

        # validate everything before the first write
        patient_data = PatientData.from_dict(patient)
        hospital_data = HospitalData.from_dict(hospital) if hospital else None
        PatientService.validate(patient_data, hospital_data)

        department, doctor = AdmissionService._resolve_staff(department_id, doctor_id)

        status = data.get("status") or AdmissionStatus.ADMITTED
        if status not in AdmissionStatus.values:
            raise ValidationError({"status": f"Unknown status '{status}'."})
        if status == AdmissionStatus.CANCELED:
            raise ValidationError({"status": "An admission cannot be created as canceled."})

        fees = {name: data.get(name) for name in FEE_COMPONENTS}
        fees[BASELINE_FEE] = baseline_admission_fee()
        fin = AdmissionService._financials(
            fees=fees,
            discount_type=data.get("discount_type"),
            discount_value=data.get("discount_value"),
            discount_amount=data.get("discount_amount"),
            paid_amount=data.get("paid_amount"),
        )

        # writes
        upserted = PatientService.upsert(
            patient_data=patient_data,
            hospital_data=hospital_data,
            actor_user_id=operator_id,
        )
        code = registration_code(department)

        admission = Admission(
            patient=upserted.patient,
            department=department,
            doctor=doctor,
            admission_number=next_registration_number(code),
            status=status,
            created_by_id=operator_id,
            modified_by_id=operator_id,
            **{f: (data.get(f) or "") for f in CLINICAL_FIELDS},
        )
        if data.get("date_admitted"):
            admission.date_admitted = data["date_admitted"]
        if status == AdmissionStatus.DISCHARGED or data.get("is_discharged"):
            admission.is_discharged = True
            admission.date_discharged = data.get("date_discharged") or timezone.now()
        AdmissionService._apply(admission, fin)
        admission.save()

        settlement = LedgerOrchestrator.post_new_charge(
            record=admission,
            patient_id=admission.patient_id,
            service_name=f"Admission {admission.admission_number}",
            department_code=code,
            totals=fin.totals,
            paid_amount=fin.paid_amount,
            operator_id=operator_id,
            shift_id=shift_id,
        )

        AuditService.created(
            event_code="admission.created",
            entity_type="Admission",
            entity_id=admission.id,
            actor_user_id=operator_id,
            description=(
                f"Admission {admission.admission_number} for {admission.patient.full_name}: "
                f"total {fin.totals.grand_total}, paid {fin.paid_amount}"
            ),
            metadata={
                "admission_number": admission.admission_number,
                "patient_id": str(admission.patient_id),
                "patient_is_new": upserted.is_new,
                "grand_total": str(fin.totals.grand_total),
                "paid_amount": str(fin.paid_amount),
                "receipt_number": settlement.payment.receipt_number if settlement.payment else None,
            },
            context=context,
        )
        logger.info("Admission %s created by %s", admission.admission_number, operator_id)
        return AdmissionResult(admission=admission, settlement=settlement)

    @staticmethod
    def _next_financials(admission: Admission, rule: str, data: dict) -> _Financials:
        if rule == TransitionRule.CANCEL:
            return AdmissionService._financials(
                fees={},
                discount_type=None,
                discount_value=None,
                discount_amount=None,
                paid_amount=ZERO,
            )

        if rule == TransitionRule.RESTORE:
            fees = {name: data.get(name) for name in FEE_COMPONENTS}
            fees[BASELINE_FEE] = baseline_admission_fee()
            return AdmissionService._financials(
                fees=fees,
                discount_type=data.get("discount_type"),
                discount_value=data.get("discount_value"),
                discount_amount=data.get("discount_amount"),
                paid_amount=data.get("paid_amount"),
            )

        if admission.status == AdmissionStatus.CANCELED:
            # a canceled admission keeps its zeroed financials until restored
            return AdmissionService._financials(
                fees={},
                discount_type=None,
                discount_value=None,
                discount_amount=None,
                paid_amount=ZERO,
            )

        def overlay(name):
            return data[name] if name in data else getattr(admission, name)

        fees = {name: overlay(name) for name in FEE_COMPONENTS}
        discount_type = overlay("discount_type")
        discount_value = overlay("discount_value")
        # a typed discount recomputes; an untyped one carries its stored amount unless the type was just cleared
        if "discount_amount" in data:
            discount_amount = data["discount_amount"]
        elif "discount_type" in data:
            discount_amount = ZERO
        else:
            discount_amount = admission.discount_amount
        return AdmissionService._financials(
            fees=fees,
            discount_type=discount_type,
            discount_value=discount_value,
            discount_amount=discount_amount,
            paid_amount=admission.paid_amount if data.get("paid_amount") is None else data["paid_amount"],
        )

    @staticmethod
    @atomic_with_retry
    def update(
        *,
        operator_id: int,
        admission_id: UUID,
        data: dict,
        shift_id: UUID | None = None,
        context: AuditContext | None = None,
    ) -> AdmissionResult:
        data = dict(data or {})
        try:
            admission = Admission.objects.select_for_update().select_related("patient").get(id=admission_id)
        except Admission.DoesNotExist:
            raise NotFound("Admission not found.")

        old_status = admission.status
        new_status = data.get("status") or old_status
        if new_status not in AdmissionStatus.values:
            raise ValidationError({"status": f"Unknown status '{new_status}'."})
        rule = TRANSITIONS[(old_status, new_status)]

        department, doctor = AdmissionService._resolve_staff(data.get("department_id"), data.get("doctor_id"))
        fin = AdmissionService._next_financials(admission, rule, data)

        old_paid = admission.paid_amount
        old_grand = admission.grand_total

        # writes
        for f in CLINICAL_FIELDS:
            if f in data:
                setattr(admission, f, data[f] or "")
        if department is not None:
            admission.department = department
        if doctor is not None:
            admission.doctor = doctor

        if rule == TransitionRule.CANCEL:
            if not admission.remarks.startswith(CANCELED_REMARK_PREFIX):
                admission.remarks = f"{CANCELED_REMARK_PREFIX} {admission.remarks}".strip()
        elif rule == TransitionRule.RESTORE:
            if admission.remarks.startswith(CANCELED_REMARK_PREFIX) and "remarks" not in data:
                admission.remarks = admission.remarks[len(CANCELED_REMARK_PREFIX):].strip()

        if "is_discharged" in data:
            admission.is_discharged = bool(data["is_discharged"])
            admission.date_discharged = (
                (data.get("date_discharged") or admission.date_discharged or timezone.now())
                if admission.is_discharged
                else None
            )
        elif new_status == AdmissionStatus.DISCHARGED and not admission.is_discharged:
            admission.is_discharged = True
            admission.date_discharged = data.get("date_discharged") or timezone.now()

        admission.status = new_status
        admission.modified_by_id = operator_id
        AdmissionService._apply(admission, fin)
        admission.save()

        settlement = LedgerOrchestrator.settle_edit(
            record=admission,
            patient_id=admission.patient_id,
            totals=fin.totals,
            old_paid=old_paid,
            new_paid=fin.paid_amount,
            operator_id=operator_id,
            shift_id=shift_id,
        )

        AuditService.updated(
            event_code=f"admission.{rule}" if rule != TransitionRule.UPDATE else "admission.updated",
            entity_type="Admission",
            entity_id=admission.id,
            actor_user_id=operator_id,
            description=(
                f"Admission {admission.admission_number} {old_status} -> {new_status}: "
                f"total {old_grand} -> {fin.totals.grand_total}, paid {old_paid} -> {fin.paid_amount}"
            ),
            metadata={
                "rule": str(rule),
                "old_status": old_status,
                "new_status": new_status,
                "old_grand_total": str(old_grand),
                "new_grand_total": str(fin.totals.grand_total),
                "paid_diff": str(settlement.paid_diff),
                "updated_fields": sorted(data.keys()),
            },
            context=context,
        )
        return AdmissionResult(admission=admission, settlement=settlement, rule=rule)

    @staticmethod
    @atomic_with_retry
    def delete(*, operator_id: int | None, admission_id: UUID, context: AuditContext | None = None) -> dict:
        try:
            admission = Admission.objects.select_for_update().get(id=admission_id)
        except Admission.DoesNotExist:
            raise NotFound("Admission not found.")

        summary = LedgerOrchestrator.reverse(
            record=admission,
            entity_type="Admission",
            operator_id=operator_id,
            context=context,
        )
        number, admission_pk = admission.admission_number, admission.id
        admission.delete()

        AuditService.deleted(
            event_code="admission.deleted",
            entity_type="Admission",
            entity_id=admission_pk,
            actor_user_id=operator_id,
            description=f"Deleted admission {number}",
            metadata={"admission_number": number, "charge_total": str(summary["charge_total"])},
            context=context,
        )
        return summary
