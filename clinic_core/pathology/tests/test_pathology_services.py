# clinic_core/pathology/tests/test_pathology_services.py
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from clinic_core.accounts.models import Account
from clinic_core.billing.models import Charge, ServiceType
from clinic_core.cash.models import CashMovement, MovementType
from clinic_core.catalog.services import ServiceItemService
from clinic_core.common.numbering import year_two_digit
from clinic_core.pathology.models import PathologyTest
from clinic_core.pathology.services import PathologyService
from clinic_core.patients.models import Patient

pytestmark = pytest.mark.django_db


@pytest.fixture
def catalog(db):
    ServiceItemService.upsert(code="CBC", name="Complete Blood Count", default_price=200)
    ServiceItemService.upsert(code="TSH", name="Thyroid Stimulating Hormone", default_price=900)
    ServiceItemService.upsert(code="OLD", name="Retired test", default_price=50, is_active=False)


def _order(user, doctor, **data):
    data.setdefault("selected_tests", ["CBC", "TSH"])
    return PathologyService.create(
        operator_id=user.id,
        patient={"first_name": "Selina"},
        ordered_by_id=doctor.id,
        data=data,
    )


def test_create_prices_from_catalog(user, doctor, catalog):
    result = _order(user, doctor, discount_type="value", discount_value="100", paid_amount="500")
    t = result.test

    assert t.test_number == f"PATH-{year_two_digit()}-00001"
    assert t.selected_tests == ["CBC", "TSH"]
    assert [i["price"] for i in t.line_items] == ["200.00", "900.00"]
    assert t.test_charge == Decimal("1100.00")
    assert t.grand_total == Decimal("1000.00")
    assert t.due_amount == Decimal("500.00")

    charge = Charge.objects.get(pathology_test=t)
    assert charge.service_type == ServiceType.PATHOLOGY_TEST
    assert charge.department_code == "PATH"

    account = Account.objects.get(patient_id=t.patient_id)
    assert account.total_due == Decimal("500.00")


def test_unknown_or_inactive_codes_fail_before_writes(user, doctor, catalog):
    with pytest.raises(ValidationError):
        _order(user, doctor, selected_tests=["CBC", "NOPE"])
    with pytest.raises(ValidationError):
        _order(user, doctor, selected_tests=["OLD"])
    with pytest.raises(ValidationError):
        _order(user, doctor, selected_tests=[])
    assert Patient.objects.count() == 0
    assert PathologyTest.objects.count() == 0


def test_ordered_by_is_required(user, catalog):
    with pytest.raises(ValidationError):
        PathologyService.create(operator_id=user.id, patient={"first_name": "X"}, data={"selected_tests": ["CBC"]})


def test_future_test_date_is_rejected(user, doctor, catalog):
    with pytest.raises(ValidationError):
        _order(user, doctor, test_date=timezone.localdate() + timedelta(days=1))


def test_edit_selected_tests_reprices_and_refunds(user, doctor, catalog):
    t = _order(user, doctor).test
    assert t.paid_amount == Decimal("1100.00")

    result = PathologyService.update(
        operator_id=user.id,
        test_id=t.id,
        data={"selected_tests": ["CBC"], "paid_amount": "200"},
    )
    t.refresh_from_db()
    assert t.grand_total == Decimal("200.00")
    assert result.settlement.refund.amount == Decimal("900.00")

    charge = Charge.objects.get(pathology_test=t)
    assert charge.final_amount == Decimal("200.00")
    account = Account.objects.get(patient_id=t.patient_id)
    assert (account.total_charges, account.total_paid, account.total_due) == (
        Decimal("200.00"),
        Decimal("200.00"),
        Decimal("0.00"),
    )


def test_edit_overpaid_is_rejected(user, doctor, catalog):
    t = _order(user, doctor).test
    with pytest.raises(ValidationError):
        PathologyService.update(operator_id=user.id, test_id=t.id, data={"selected_tests": ["CBC"]})
    t.refresh_from_db()
    assert t.selected_tests == ["CBC", "TSH"]


def test_mark_completed_has_no_cash_effect(user, doctor, catalog):
    t = _order(user, doctor).test
    result = PathologyService.update(operator_id=user.id, test_id=t.id, data={"is_completed": True, "done_by_id": doctor.id})
    assert result.settlement.paid_diff == Decimal("0.00")
    assert CashMovement.objects.count() == 1


def test_delete_reverses_everything(user, doctor, catalog):
    t = _order(user, doctor).test
    PathologyService.update(operator_id=user.id, test_id=t.id, data={"paid_amount": "100"})

    PathologyService.delete(operator_id=user.id, test_id=t.id)

    account = Account.objects.get(patient_id=t.patient_id)
    assert (account.total_charges, account.total_paid, account.total_due) == (
        Decimal("0.00"),
        Decimal("0.00"),
        Decimal("0.00"),
    )
    assert CashMovement.objects.filter(movement_type=MovementType.REFUND).count() == 0
    assert not PathologyTest.objects.exists()
