from __future__ import annotations

from django.db.models import QuerySet

from clinic_core.audit.models import AuditEvent


def audit_events() -> QuerySet[AuditEvent]:
    return AuditEvent.objects.select_related("actor_user").order_by("-occurred_at")
