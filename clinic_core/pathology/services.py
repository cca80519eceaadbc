# clinic_core/pathology/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from clinic_core.audit.services import AuditContext, AuditService
from clinic_core.billing.orchestrator import LedgerOrchestrator, Settlement
from clinic_core.catalog.selectors import get_active_prices
from clinic_core.common.money import Totals, compute_totals, non_negative
from clinic_core.common.numbering import PATHOLOGY_PREFIX, next_registration_number
from clinic_core.common.transactions import atomic_with_retry
from clinic_core.departments.selectors import get_doctor
from clinic_core.pathology.models import PathologyTest
from clinic_core.patients.services import HospitalData, PatientData, PatientService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathologyResult:
    test: PathologyTest
    settlement: Settlement


class PathologyService:
    @staticmethod
    def price_tests(codes) -> list[dict]:
        """
        Catalog prices for the selected codes, in request order. Unknown or
        inactive codes fail the whole order.
        """
        codes = [(c or "").strip().upper() for c in (codes or [])]
        codes = [c for c in codes if c]
        if not codes:
            raise ValidationError({"selected_tests": "Select at least one test."})
        if len(set(codes)) != len(codes):
            raise ValidationError({"selected_tests": "Duplicate test codes."})

        prices = get_active_prices(codes=codes)
        missing = [c for c in codes if c not in prices]
        if missing:
            raise ValidationError({"selected_tests": f"Unknown or inactive tests: {', '.join(missing)}."})

        return [{"code": c, "name": prices[c].name, "price": str(prices[c].default_price)} for c in codes]

    @staticmethod
    def _check_date(test_date: date | None) -> date:
        test_date = test_date or timezone.localdate()
        if test_date > timezone.localdate():
            raise ValidationError({"test_date": "Test date cannot be in the future."})
        return test_date

    @staticmethod
    def _totals(line_items: list[dict], data: dict, base: PathologyTest | None = None) -> Totals:
        def pick(name):
            if name in data:
                return data[name]
            return getattr(base, name) if base is not None else None

        discount_amount = pick("discount_amount")
        if base is not None and "discount_type" in data and "discount_amount" not in data:
            discount_amount = None
        return compute_totals(
            [item["price"] for item in line_items],
            discount_type=pick("discount_type") or None,
            discount_value=pick("discount_value"),
            discount_amount=discount_amount,
        )

    @staticmethod
    def _apply(test: PathologyTest, line_items: list[dict], totals: Totals, paid, data: dict) -> None:
        test.selected_tests = [item["code"] for item in line_items]
        test.line_items = line_items
        test.test_charge = totals.subtotal
        if "discount_type" in data:
            test.discount_type = data["discount_type"] or None
        if "discount_value" in data:
            dv = data["discount_value"]
            test.discount_value = None if dv in (None, "") else non_negative(dv, "discount_value")
        test.discount_amount = totals.discount_amount
        test.grand_total = totals.grand_total
        test.paid_amount = paid
        test.due_amount = totals.grand_total - paid

    @staticmethod
    @atomic_with_retry
    def create(
        *,
        operator_id: int,
        patient: dict,
        hospital: dict | None = None,
        ordered_by_id: UUID | None = None,
        data: dict | None = None,
        shift_id: UUID | None = None,
        context: AuditContext | None = None,
    ) -> PathologyResult:
        data = dict(data or {})

        patient_data = PatientData.from_dict(patient)
        hospital_data = HospitalData.from_dict(hospital) if hospital else None
        PatientService.validate(patient_data, hospital_data)

        if not ordered_by_id:
            raise ValidationError({"ordered_by": "Ordering doctor is required."})
        ordered_by = get_doctor(doctor_id=ordered_by_id)
        done_by = get_doctor(doctor_id=data["done_by_id"]) if data.get("done_by_id") else None

        test_date = PathologyService._check_date(data.get("test_date"))
        line_items = PathologyService.price_tests(data.get("selected_tests"))
        totals = PathologyService._totals(line_items, data)
        paid = totals.grand_total if data.get("paid_amount") is None else data["paid_amount"]
        paid = LedgerOrchestrator.check_paid(paid_amount=paid, grand_total=totals.grand_total)

        # writes
        upserted = PatientService.upsert(patient_data=patient_data, hospital_data=hospital_data, actor_user_id=operator_id)
        test = PathologyTest(
            patient=upserted.patient,
            test_number=next_registration_number(PATHOLOGY_PREFIX),
            test_date=test_date,
            test_category=data.get("test_category") or "",
            remarks=data.get("remarks") or "",
            is_completed=bool(data.get("is_completed", False)),
            ordered_by=ordered_by,
            done_by=done_by,
            created_by_id=operator_id,
            modified_by_id=operator_id,
        )
        PathologyService._apply(test, line_items, totals, paid, data)
        test.save()

        settlement = LedgerOrchestrator.post_new_charge(
            record=test,
            patient_id=test.patient_id,
            service_name=f"Pathology {test.test_number}: {', '.join(test.selected_tests)}",
            department_code=PATHOLOGY_PREFIX,
            totals=totals,
            paid_amount=paid,
            operator_id=operator_id,
            shift_id=shift_id,
        )

        AuditService.created(
            event_code="pathology.created",
            entity_type="PathologyTest",
            entity_id=test.id,
            actor_user_id=operator_id,
            description=f"Pathology order {test.test_number} ({len(line_items)} tests): total {totals.grand_total}, paid {paid}",
            metadata={
                "test_number": test.test_number,
                "selected_tests": test.selected_tests,
                "grand_total": str(totals.grand_total),
                "paid_amount": str(paid),
                "receipt_number": settlement.payment.receipt_number if settlement.payment else None,
            },
            context=context,
        )
        return PathologyResult(test=test, settlement=settlement)

    @staticmethod
    @atomic_with_retry
    def update(
        *,
        operator_id: int,
        test_id: UUID,
        data: dict,
        shift_id: UUID | None = None,
        context: AuditContext | None = None,
    ) -> PathologyResult:
        data = dict(data or {})
        try:
            test = PathologyTest.objects.select_for_update().get(id=test_id)
        except PathologyTest.DoesNotExist:
            raise NotFound("Pathology test not found.")

        ordered_by = get_doctor(doctor_id=data["ordered_by_id"]) if data.get("ordered_by_id") else None
        done_by = get_doctor(doctor_id=data["done_by_id"]) if data.get("done_by_id") else None
        if "test_date" in data:
            data["test_date"] = PathologyService._check_date(data["test_date"])

        if "selected_tests" in data:
            line_items = PathologyService.price_tests(data["selected_tests"])
        else:
            line_items = list(test.line_items)
        totals = PathologyService._totals(line_items, data, base=test)
        new_paid = data["paid_amount"] if data.get("paid_amount") is not None else test.paid_amount
        new_paid = LedgerOrchestrator.check_paid(paid_amount=new_paid, grand_total=totals.grand_total)

        old_paid, old_grand = test.paid_amount, test.grand_total

        # writes
        for f in ("test_date", "test_category", "remarks", "is_completed"):
            if f in data:
                setattr(test, f, data[f] if data[f] is not None else "")
        if ordered_by is not None:
            test.ordered_by = ordered_by
        if done_by is not None:
            test.done_by = done_by
        test.modified_by_id = operator_id
        PathologyService._apply(test, line_items, totals, new_paid, data)
        test.save()

        settlement = LedgerOrchestrator.settle_edit(
            record=test,
            patient_id=test.patient_id,
            totals=totals,
            old_paid=old_paid,
            new_paid=new_paid,
            operator_id=operator_id,
            shift_id=shift_id,
            service_name=f"Pathology {test.test_number}: {', '.join(test.selected_tests)}",
        )

        AuditService.updated(
            event_code="pathology.updated",
            entity_type="PathologyTest",
            entity_id=test.id,
            actor_user_id=operator_id,
            description=(
                f"Pathology order {test.test_number}: total {old_grand} -> {totals.grand_total}, "
                f"paid {old_paid} -> {new_paid}"
            ),
            metadata={
                "old_grand_total": str(old_grand),
                "new_grand_total": str(totals.grand_total),
                "paid_diff": str(settlement.paid_diff),
                "updated_fields": sorted(data.keys()),
            },
            context=context,
        )
        return PathologyResult(test=test, settlement=settlement)

    @staticmethod
    @atomic_with_retry
    def delete(*, operator_id: int | None, test_id: UUID, context: AuditContext | None = None) -> dict:
        try:
            test = PathologyTest.objects.select_for_update().get(id=test_id)
        except PathologyTest.DoesNotExist:
            raise NotFound("Pathology test not found.")

        summary = LedgerOrchestrator.reverse(
            record=test, entity_type="PathologyTest", operator_id=operator_id, context=context
        )
        number, test_pk = test.test_number, test.id
        test.delete()

        AuditService.deleted(
            event_code="pathology.deleted",
            entity_type="PathologyTest",
            entity_id=test_pk,
            actor_user_id=operator_id,
            description=f"Deleted pathology order {number}",
            metadata={"test_number": number},
            context=context,
        )
        return summary
