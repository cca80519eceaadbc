# clinic_core/common/api/params.py
from __future__ import annotations

from uuid import UUID

from rest_framework.exceptions import NotFound
from rest_framework.exceptions import ValidationError as DRFValidationError


def uuid_or_none(value: str | None, field_name: str) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        raise DRFValidationError({field_name: "Invalid UUID"})


def path_uuid(pk) -> UUID:
    """
    Router lookups accept any slug; a malformed id simply matches nothing.
    """
    try:
        return UUID(str(pk))
    except ValueError:
        raise NotFound()


def operator_id(request) -> int | None:
    return getattr(request.user, "id", None)
