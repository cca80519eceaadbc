# clinic_core/billing/selectors.py
from __future__ import annotations

from django.db.models import QuerySet

from clinic_core.billing.models import Charge, Payment


def charges_filtered() -> QuerySet[Charge]:
    return Charge.objects.select_related("patient").prefetch_related("allocations").order_by("-created_at")


def payments_filtered() -> QuerySet[Payment]:
    return (
        Payment.objects.select_related("patient", "shift", "collected_by")
        .prefetch_related("allocations")
        .order_by("-received_at")
    )
