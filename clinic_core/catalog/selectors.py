from __future__ import annotations

from django.db.models import Q

from clinic_core.catalog.models import ServiceItem


def get_active_service_item(*, code: str) -> ServiceItem | None:
    return ServiceItem.objects.filter(code=(code or "").strip().upper(), is_active=True).first()


def get_active_prices(*, codes) -> dict[str, ServiceItem]:
    """
    code -> active item, for the codes that resolve. Callers decide what a miss means.
    """
    wanted = {(c or "").strip().upper() for c in codes}
    return {i.code: i for i in ServiceItem.objects.filter(code__in=wanted, is_active=True)}


def list_service_items(*, category: str | None = None, q: str | None = None, active_only: bool = True):
    qs = ServiceItem.objects.all()
    if active_only:
        qs = qs.filter(is_active=True)
    if category:
        qs = qs.filter(category=category)
    qv = (q or "").strip()
    if qv:
        qs = qs.filter(Q(code__icontains=qv) | Q(name__icontains=qv))
    return qs.order_by("category", "name")
