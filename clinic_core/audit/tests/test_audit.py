import uuid

import pytest
from django.db import DatabaseError

from clinic_core.audit.models import AuditAction, AuditEvent
from clinic_core.audit.services import AuditContext, AuditService

pytestmark = pytest.mark.django_db


def test_log_records_event_with_context(user):
    entity_id = uuid.uuid4()
    event = AuditService.created(
        event_code="admission.created",
        entity_type="Admission",
        entity_id=entity_id,
        actor_user_id=user.id,
        description="Admitted",
        metadata={"paid_amount": "300.00"},
        context=AuditContext(ip_address="10.0.0.7", user_agent="pytest"),
    )

    assert event.action == AuditAction.CREATE
    stored = AuditEvent.objects.get(id=event.id)
    assert stored.entity_id == entity_id
    assert stored.ip_address == "10.0.0.7"
    assert stored.metadata == {"paid_amount": "300.00"}


def test_failed_write_does_not_raise(user, monkeypatch):
    def boom(**kwargs):
        raise DatabaseError("audit table unavailable")

    monkeypatch.setattr(AuditEvent.objects, "create", boom)

    assert AuditService.deleted(
        event_code="sale.deleted", entity_type="Sale", entity_id=uuid.uuid4(), actor_user_id=user.id
    ) is None


def test_list_filters(api_client, user):
    target = uuid.uuid4()
    AuditService.created(event_code="x.created", entity_type="Sale", entity_id=target, actor_user_id=user.id)
    AuditService.updated(event_code="x.updated", entity_type="Sale", entity_id=target, actor_user_id=user.id)
    AuditService.created(event_code="y.created", entity_type="Admission", entity_id=uuid.uuid4(), actor_user_id=None)

    resp = api_client.get("/api/v1/audit/events/", {"entity_type": "Sale", "entity_id": str(target)})
    assert resp.status_code == 200
    assert {e["event_code"] for e in resp.data["results"]} == {"x.created", "x.updated"}

    resp = api_client.get("/api/v1/audit/events/", {"entity_id": "nope"})
    assert resp.status_code == 400
    assert resp.data["error"]["code"] == "validation_error"
