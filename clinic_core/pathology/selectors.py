from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet
from rest_framework.exceptions import NotFound

from clinic_core.pathology.models import PathologyTest


def tests_filtered() -> QuerySet[PathologyTest]:
    return PathologyTest.objects.select_related("patient", "ordered_by", "done_by").order_by("-test_date", "-created_at")


def get_test(*, test_id: UUID) -> PathologyTest:
    try:
        return tests_filtered().get(id=test_id)
    except PathologyTest.DoesNotExist:
        raise NotFound("Pathology test not found.")
