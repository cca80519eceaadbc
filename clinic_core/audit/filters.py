import django_filters

from clinic_core.audit.models import AuditEvent


class AuditEventFilter(django_filters.FilterSet):
    entity_id = django_filters.UUIDFilter(field_name="entity_id")
    actor_user_id = django_filters.NumberFilter(field_name="actor_user_id")
    occurred_from = django_filters.IsoDateTimeFilter(field_name="occurred_at", lookup_expr="gte")
    occurred_to = django_filters.IsoDateTimeFilter(field_name="occurred_at", lookup_expr="lte")

    class Meta:
        model = AuditEvent
        fields = ["entity_type", "entity_id", "event_code", "action", "actor_user_id"]
