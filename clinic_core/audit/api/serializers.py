# clinic_core/audit/api/serializers.py
from rest_framework import serializers

from clinic_core.audit.models import AuditEvent


class AuditEventSerializer(serializers.ModelSerializer):
    actor_username = serializers.CharField(source="actor_user.username", read_only=True, default=None)

    class Meta:
        model = AuditEvent
        fields = [
            "id",
            "event_code",
            "action",
            "entity_type",
            "entity_id",
            "actor_user",
            "actor_username",
            "occurred_at",
            "description",
            "metadata",
            "ip_address",
        ]
        read_only_fields = fields
