# clinic_core/catalog/tests/test_service_items.py
from decimal import Decimal

import pytest
from django.core.management import call_command
from rest_framework.exceptions import ValidationError

from clinic_core.catalog.models import ServiceItem
from clinic_core.catalog.selectors import get_active_prices
from clinic_core.catalog.services import ServiceItemService

pytestmark = pytest.mark.django_db


def test_upsert_normalizes_code_and_quantizes_price():
    item = ServiceItemService.upsert(code="cbc", name="CBC", default_price="199.999")
    assert item.code == "CBC"
    assert item.default_price == Decimal("200.00")

    again = ServiceItemService.upsert(code="CBC", name="Complete Blood Count", default_price=250)
    assert again.id == item.id
    assert again.default_price == Decimal("250.00")


def test_upsert_rejects_negative_price_and_unknown_category():
    with pytest.raises(ValidationError):
        ServiceItemService.upsert(code="X", name="X", default_price=-1)
    with pytest.raises(ValidationError):
        ServiceItemService.upsert(code="X", name="X", default_price=1, category="dental")


def test_active_prices_skip_inactive_items():
    ServiceItemService.upsert(code="CBC", name="CBC", default_price=200)
    ServiceItemService.upsert(code="TSH", name="TSH", default_price=900, is_active=False)

    prices = get_active_prices(codes=["cbc", "TSH", "NOPE"])
    assert set(prices) == {"CBC"}


def test_seed_command_is_idempotent():
    call_command("seed_service_catalog")
    n = ServiceItem.objects.count()
    call_command("seed_service_catalog")
    assert ServiceItem.objects.count() == n
    assert ServiceItem.objects.get(code="LIPID-PROFILE").default_price == Decimal("1000.00")


def test_catalog_list_api(api_client):
    ServiceItemService.upsert(code="ECG", name="Electrocardiogram", default_price=300, category="cardiology")
    ServiceItemService.upsert(code="CBC", name="Complete Blood Count", default_price=200)

    resp = api_client.get("/api/v1/catalog/items/", {"category": "cardiology"})
    assert resp.status_code == 200, resp.data
    assert [r["code"] for r in resp.data["results"]] == ["ECG"]
