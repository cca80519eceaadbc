# clinic_core/catalog/services.py
from __future__ import annotations

from rest_framework.exceptions import ValidationError

from clinic_core.catalog.models import ServiceCategory, ServiceItem
from clinic_core.common.money import non_negative


class ServiceItemService:
    @staticmethod
    def upsert(
        *,
        code: str,
        name: str,
        default_price,
        category: str = ServiceCategory.PATHOLOGY,
        department: str = "",
        is_active: bool = True,
    ) -> ServiceItem:
        code = (code or "").strip().upper()
        if not code:
            raise ValidationError({"code": "This field is required."})
        if category not in ServiceCategory.values:
            raise ValidationError({"category": f"Unknown category '{category}'."})

        default_price = non_negative(default_price, "default_price")

        obj, _ = ServiceItem.objects.update_or_create(
            code=code,
            defaults={
                "name": name,
                "category": category,
                "default_price": default_price,
                "department": department or "",
                "is_active": is_active,
            },
        )
        return obj
