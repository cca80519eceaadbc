# clinic_core/admissions/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet
from rest_framework.exceptions import NotFound

from clinic_core.admissions.models import Admission


def admissions_filtered() -> QuerySet[Admission]:
    return Admission.objects.select_related("patient", "department", "doctor").order_by("-date_admitted")


def get_admission(*, admission_id: UUID) -> Admission:
    try:
        return admissions_filtered().get(id=admission_id)
    except Admission.DoesNotExist:
        raise NotFound("Admission not found.")
