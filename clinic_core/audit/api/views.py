# clinic_core/audit/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import viewsets

from clinic_core.audit.api.serializers import AuditEventSerializer
from clinic_core.audit.filters import AuditEventFilter
from clinic_core.audit.models import AuditEvent
from clinic_core.audit.selectors import audit_events
from clinic_core.common.api.pagination import paginate


class AuditEventViewSet(viewsets.GenericViewSet):
    """
    Activity log, newest first. Filter by entity_type / entity_id to get the
    history of one admission, pathology test or sale.
    """
    serializer_class = AuditEventSerializer
    queryset = AuditEvent.objects.none()
    filterset_class = AuditEventFilter
    search_fields = ["description", "event_code"]

    @extend_schema(tags=["Audit"], responses={200: AuditEventSerializer(many=True)})
    def list(self, request):
        qs = self.filter_queryset(audit_events())
        return paginate(request, qs, AuditEventSerializer)
