# clinic_core/audit/models.py
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

from clinic_core.common.models import BaseModel


class AuditAction(models.TextChoices):
    CREATE = "CREATE", "Create"
    UPDATE = "UPDATE", "Update"
    DELETE = "DELETE", "Delete"


class AuditEvent(BaseModel):
    """
    Immutable activity log row. Written as a side-channel: a failed write is
    logged and never blocks the financial transaction it describes.
    """
    event_code = models.CharField(max_length=128, db_index=True)  # e.g. "admission.created"
    action = models.CharField(max_length=16, choices=AuditAction.choices, db_index=True)
    entity_type = models.CharField(max_length=128, db_index=True)  # e.g. "Admission"
    entity_id = models.UUIDField(db_index=True)

    actor_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="audit_events",
        null=True,
        blank=True,
    )

    occurred_at = models.DateTimeField(auto_now_add=True, db_index=True)
    description = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, encoder=DjangoJSONEncoder)

    # session / device context
    session_id = models.CharField(max_length=128, blank=True)
    ip_address = models.CharField(max_length=64, blank=True)
    user_agent = models.CharField(max_length=512, blank=True)
    device_fingerprint = models.CharField(max_length=128, blank=True)

    class Meta:
        db_table = "audit_audit_event"
        indexes = [
            models.Index(fields=["entity_type", "entity_id"]),
            models.Index(fields=["event_code", "occurred_at"]),
        ]
