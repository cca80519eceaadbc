# clinic_core/audit/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from uuid import UUID

from django.db import DatabaseError, transaction

from clinic_core.audit.models import AuditAction, AuditEvent
from clinic_core.common.middleware import client_ip

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditContext:
    """Session/device details captured by the request handler."""
    session_id: str = ""
    ip_address: str = ""
    user_agent: str = ""
    device_fingerprint: str = ""

    @classmethod
    def from_request(cls, request) -> "AuditContext":
        if request is None:
            return cls()
        session = getattr(request, "session", None)
        return cls(
            session_id=(getattr(session, "session_key", None) or "")[:128],
            ip_address=client_ip(request)[:64],
            user_agent=(request.META.get("HTTP_USER_AGENT") or "")[:512],
            device_fingerprint=(request.META.get("HTTP_X_DEVICE_FINGERPRINT") or "")[:128],
        )


EMPTY_CONTEXT = AuditContext()


class AuditService:
    """
    Activity log writer.

    Each write runs in its own savepoint; if it fails the savepoint is rolled
    back, the failure is logged, and the surrounding ledger transaction carries on.
    """

    @staticmethod
    def log(
        *,
        event_code: str,
        action: str,
        entity_type: str,
        entity_id: UUID,
        actor_user_id: int | None,
        description: str = "",
        metadata: Optional[Dict[str, Any]] = None,
        context: AuditContext | None = None,
    ) -> AuditEvent | None:
        context = context or EMPTY_CONTEXT
        try:
            with transaction.atomic():
                return AuditEvent.objects.create(
                    event_code=event_code,
                    action=action,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    actor_user_id=actor_user_id,
                    description=description,
                    metadata=metadata or {},
                    session_id=context.session_id,
                    ip_address=context.ip_address,
                    user_agent=context.user_agent,
                    device_fingerprint=context.device_fingerprint,
                )
        except (DatabaseError, TypeError, ValueError):
            logger.exception("Audit write failed for %s %s (%s)", entity_type, entity_id, event_code)
            return None

    @staticmethod
    def created(**kwargs) -> AuditEvent | None:
        return AuditService.log(action=AuditAction.CREATE, **kwargs)

    @staticmethod
    def updated(**kwargs) -> AuditEvent | None:
        return AuditService.log(action=AuditAction.UPDATE, **kwargs)

    @staticmethod
    def deleted(**kwargs) -> AuditEvent | None:
        return AuditService.log(action=AuditAction.DELETE, **kwargs)
