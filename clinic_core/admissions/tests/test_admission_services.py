# clinic_core/admissions/tests/test_admission_services.py
from decimal import Decimal

import pytest
from rest_framework.exceptions import NotFound, ValidationError

from clinic_core.accounts.models import Account
from clinic_core.admissions.constants import AdmissionStatus, TransitionRule
from clinic_core.admissions.models import Admission
from clinic_core.admissions.services import AdmissionService
from clinic_core.audit.models import AuditEvent
from clinic_core.billing.models import Charge, Payment, PaymentAllocation, ServiceType
from clinic_core.cash.models import CashMovement, MovementType, Shift
from clinic_core.cash.services import ShiftService
from clinic_core.common.numbering import year_two_digit
from clinic_core.patients.models import Patient

pytestmark = pytest.mark.django_db


def _create(user, department, **data):
    return AdmissionService.create(
        operator_id=user.id,
        patient={"first_name": "Rokeya", "last_name": "Akter", "phone_number": "01711111111"},
        department_id=department.id,
        data=data,
    )


def _account(patient_id):
    return Account.objects.get(patient_id=patient_id)


def test_create_posts_charge_payment_and_collection(user, department, doctor):
    result = AdmissionService.create(
        operator_id=user.id,
        patient={"first_name": "Rokeya"},
        department_id=department.id,
        doctor_id=doctor.id,
        data={"ward": "B", "seat_number": "12"},
    )
    adm = result.admission

    assert adm.admission_number == f"GYNE-{year_two_digit()}-00001"
    assert adm.admission_fee == Decimal("300.00")
    assert adm.grand_total == Decimal("300.00")
    assert adm.paid_amount == Decimal("300.00")
    assert adm.due_amount == Decimal("0.00")

    charge = Charge.objects.get(admission=adm)
    assert charge.service_type == ServiceType.ADMISSION
    assert charge.final_amount == Decimal("300.00")

    payment = Payment.objects.get()
    assert payment.receipt_number == f"RCP-{year_two_digit()}-000001"
    assert payment.collected_by_id == user.id
    assert PaymentAllocation.objects.get(payment=payment).charge_id == charge.id

    movement = CashMovement.objects.get()
    assert movement.movement_type == MovementType.COLLECTION
    assert movement.payment_id == payment.id

    account = _account(adm.patient_id)
    assert (account.total_charges, account.total_paid, account.total_due) == (
        Decimal("300.00"),
        Decimal("300.00"),
        Decimal("0.00"),
    )

    assert AuditEvent.objects.filter(entity_id=adm.id, event_code="admission.created").count() == 1


def test_admission_fee_from_payload_is_ignored(user, department):
    adm = _create(user, department, admission_fee="5").admission
    assert adm.admission_fee == Decimal("300.00")


def test_sequence_numbers_increment_per_department(user, department):
    a = _create(user, department).admission
    b = _create(user, department).admission
    assert a.admission_number.endswith("-00001")
    assert b.admission_number.endswith("-00002")


def test_discount_and_partial_payment(user, department):
    adm = _create(
        user,
        department,
        service_charge="700",
        discount_type="percentage",
        discount_value="10",
        paid_amount="500",
    ).admission

    assert adm.total_amount == Decimal("1000.00")
    assert adm.discount_amount == Decimal("100.00")
    assert adm.grand_total == Decimal("900.00")
    assert adm.due_amount == Decimal("400.00")
    assert _account(adm.patient_id).total_due == Decimal("400.00")


def test_zero_paid_creates_no_payment(user, department):
    _create(user, department, paid_amount="0")
    assert Payment.objects.count() == 0
    assert CashMovement.objects.count() == 0


def test_validation_happens_before_any_write(user, department):
    with pytest.raises(ValidationError):
        _create(user, department, paid_amount="301")
    with pytest.raises(ValidationError):
        _create(user, department, discount_type="bogus", discount_value="5")
    with pytest.raises(ValidationError):
        _create(user, department, status=AdmissionStatus.CANCELED)

    assert Patient.objects.count() == 0
    assert Admission.objects.count() == 0
    assert Shift.objects.count() == 0


def test_unknown_doctor_is_not_found(user, department):
    import uuid

    with pytest.raises(NotFound):
        AdmissionService.create(
            operator_id=user.id,
            patient={"first_name": "X"},
            department_id=department.id,
            doctor_id=uuid.uuid4(),
        )
    assert Patient.objects.count() == 0


def test_paid_300_to_450_to_200(user, department):
    adm = _create(user, department, service_charge="200", paid_amount="300").admission

    r1 = AdmissionService.update(operator_id=user.id, admission_id=adm.id, data={"paid_amount": "450"})
    assert r1.settlement.paid_diff == Decimal("150.00")
    assert r1.settlement.payment.amount == Decimal("150.00")
    assert Payment.objects.count() == 2
    assert PaymentAllocation.objects.filter(allocated_amount=Decimal("150.00")).count() == 1
    assert CashMovement.objects.filter(movement_type=MovementType.COLLECTION).count() == 2
    assert _account(adm.patient_id).total_paid == Decimal("450.00")

    r2 = AdmissionService.update(operator_id=user.id, admission_id=adm.id, data={"paid_amount": "200"})
    assert r2.settlement.payment is None
    assert Payment.objects.count() == 2
    refund = CashMovement.objects.get(movement_type=MovementType.REFUND)
    assert refund.amount == Decimal("250.00")
    assert refund.charge.admission_id == adm.id

    account = _account(adm.patient_id)
    assert account.total_paid == Decimal("200.00")
    assert account.total_due == Decimal("300.00")
    assert account.total_due == account.total_charges - account.total_paid


def test_cancel_then_restore_round_trip(user, department):
    adm = _create(user, department).admission
    before_paid = _account(adm.patient_id).total_paid

    canceled = AdmissionService.update(
        operator_id=user.id, admission_id=adm.id, data={"status": AdmissionStatus.CANCELED}
    )
    assert canceled.rule == TransitionRule.CANCEL
    adm.refresh_from_db()
    assert adm.grand_total == Decimal("0.00")
    assert adm.paid_amount == Decimal("0.00")
    assert adm.admission_fee == Decimal("0.00")
    assert adm.remarks.startswith("[CANCELED]")
    assert _account(adm.patient_id).total_charges == Decimal("0.00")

    restored = AdmissionService.update(
        operator_id=user.id, admission_id=adm.id, data={"status": AdmissionStatus.ADMITTED}
    )
    assert restored.rule == TransitionRule.RESTORE
    adm.refresh_from_db()
    assert adm.admission_fee == Decimal("300.00")
    assert adm.paid_amount == Decimal("300.00")
    assert not adm.remarks.startswith("[CANCELED]")

    assert _account(adm.patient_id).total_paid == before_paid
    refunds = CashMovement.objects.filter(movement_type=MovementType.REFUND)
    collections = CashMovement.objects.filter(movement_type=MovementType.COLLECTION)
    assert [r.amount for r in refunds] == [Decimal("300.00")]
    # creation + restore
    assert [c.amount for c in collections] == [Decimal("300.00"), Decimal("300.00")]


def test_canceled_admission_ignores_financial_edits(user, department):
    adm = _create(user, department).admission
    AdmissionService.update(operator_id=user.id, admission_id=adm.id, data={"status": AdmissionStatus.CANCELED})

    AdmissionService.update(
        operator_id=user.id, admission_id=adm.id, data={"service_charge": "900", "ward": "C"}
    )
    adm.refresh_from_db()
    assert adm.grand_total == Decimal("0.00")
    assert adm.ward == "C"


def test_discharge_sets_date(user, department):
    adm = _create(user, department).admission
    AdmissionService.update(operator_id=user.id, admission_id=adm.id, data={"status": AdmissionStatus.DISCHARGED})
    adm.refresh_from_db()
    assert adm.is_discharged is True
    assert adm.date_discharged is not None


def test_create_then_delete_restores_every_total(user, department, patient):
    shift = ShiftService.ensure_active_shift(operator_id=user.id)
    # pre-existing activity on the same patient
    AdmissionService.create(
        operator_id=user.id, patient={"id": patient.id, "first_name": "Test"}, department_id=department.id
    )
    account_before = _account(patient.id)
    shift.refresh_from_db()
    shift_before = (shift.system_cash, shift.total_collected, shift.total_refunded)

    adm = AdmissionService.create(
        operator_id=user.id,
        patient={"id": patient.id, "first_name": "Test"},
        department_id=department.id,
        data={"service_charge": "500", "paid_amount": "600"},
    ).admission
    AdmissionService.update(operator_id=user.id, admission_id=adm.id, data={"paid_amount": "800"})
    AdmissionService.update(operator_id=user.id, admission_id=adm.id, data={"paid_amount": "100"})

    AdmissionService.delete(operator_id=user.id, admission_id=adm.id)

    account_after = _account(patient.id)
    shift.refresh_from_db()
    assert (account_after.total_charges, account_after.total_paid, account_after.total_due) == (
        account_before.total_charges,
        account_before.total_paid,
        account_before.total_due,
    )
    assert (shift.system_cash, shift.total_collected, shift.total_refunded) == shift_before
    assert not Admission.objects.filter(id=adm.id).exists()
    assert not Charge.objects.filter(admission_id=adm.id).exists()
    assert Payment.objects.count() == 1
    assert AuditEvent.objects.filter(entity_id=adm.id, event_code="ledger.reversed").count() == 1


def test_closed_shift_falls_back_to_active_shift(user, department):
    stale = ShiftService.ensure_active_shift(operator_id=user.id)
    ShiftService.close_shift(shift_id=stale.id, closing_cash="0")

    result = AdmissionService.create(
        operator_id=user.id,
        patient={"first_name": "Late"},
        department_id=department.id,
        shift_id=stale.id,
    )
    payment = result.settlement.payment
    assert payment.shift_id != stale.id
    assert payment.shift.status == "OPEN"
    stale.refresh_from_db()
    assert stale.total_collected == Decimal("0.00")


def test_delete_unknown_admission_is_not_found(user):
    import uuid

    with pytest.raises(NotFound):
        AdmissionService.delete(operator_id=user.id, admission_id=uuid.uuid4())
