# clinic_core/patients/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import Q, QuerySet
from rest_framework.exceptions import NotFound

from clinic_core.patients.models import Patient


def get_patient(*, patient_id: UUID) -> Patient:
    try:
        return Patient.objects.select_related("hospital").get(id=patient_id)
    except Patient.DoesNotExist:
        raise NotFound("Patient not found.")


def search_patients(*, q: str | None = None) -> QuerySet[Patient]:
    qs = Patient.objects.select_related("hospital")

    qv = (q or "").strip()
    if qv:
        qs = qs.filter(
            Q(full_name__icontains=qv)
            | Q(phone_number__icontains=qv)
            | Q(email__icontains=qv)
            | Q(guardian_name__icontains=qv)
        )

    return qs.order_by("-created_at")
