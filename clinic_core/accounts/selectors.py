from __future__ import annotations

from uuid import UUID

from rest_framework.exceptions import NotFound

from clinic_core.accounts.models import Account
from clinic_core.patients.models import Patient


def get_account(*, patient_id: UUID) -> Account:
    """
    Patients without any ledger activity read as an all-zero account.
    """
    if not Patient.objects.filter(id=patient_id).exists():
        raise NotFound("Patient not found.")
    account = Account.objects.select_related("patient").filter(patient_id=patient_id).first()
    return account or Account(patient_id=patient_id)
