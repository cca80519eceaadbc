# clinic_core/billing/tests/test_charge_link.py
import pytest
from rest_framework.exceptions import ValidationError

from clinic_core.admissions.services import AdmissionService
from clinic_core.billing.models import Charge, ServiceType

pytestmark = pytest.mark.django_db


def test_charge_without_link_is_rejected(patient):
    with pytest.raises(ValidationError):
        Charge(patient=patient, service_type=ServiceType.ADMISSION, service_name="x").save()
    assert Charge.objects.count() == 0


def test_charge_tag_must_match_link(user, department):
    adm = AdmissionService.create(
        operator_id=user.id, patient={"first_name": "A"}, department_id=department.id
    ).admission
    charge = Charge.objects.get(admission=adm)

    charge.service_type = ServiceType.PATHOLOGY_TEST
    with pytest.raises(ValidationError):
        charge.save()


def test_link_to_rejects_non_billable_record(patient):
    with pytest.raises(ValidationError):
        Charge(patient=patient).link_to(patient)


def test_link_to_sets_tag(user, department):
    adm = AdmissionService.create(
        operator_id=user.id, patient={"first_name": "A"}, department_id=department.id
    ).admission
    charge = Charge(patient_id=adm.patient_id).link_to(adm)
    assert charge.service_type == ServiceType.ADMISSION
    assert charge.linked_record == adm
