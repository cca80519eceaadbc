import pytest

from clinic_core.inventory.models import StockItem

pytestmark = pytest.mark.django_db


def _create_item(api_client, **payload):
    payload.setdefault("generic_name", "Amoxicillin")
    resp = api_client.post("/api/v1/inventory/items/", payload, format="json")
    assert resp.status_code == 201, resp.data
    return resp.data


def test_item_receive_sell_delete_flow(api_client):
    item = _create_item(api_client, brand_name="Moxacil", strength="250mg", low_stock_threshold=3)

    resp = api_client.post(
        f"/api/v1/inventory/items/{item['id']}/receive/",
        {"quantity": 10, "unit_price": "8.00", "supplier": "Beximco", "invoice_number": "INV-1"},
        format="json",
    )
    assert resp.status_code == 201, resp.data
    assert resp.data["remaining_qty"] == 10
    assert resp.data["supplier_name"] == "Beximco"

    resp = api_client.post(
        "/api/v1/inventory/sales/",
        {"patient": {"first_name": "Karim"}, "item": item["id"], "quantity": 4, "paid_amount": "0.00"},
        format="json",
    )
    assert resp.status_code == 201, resp.data
    sale_id = resp.data["sale"]["id"]
    assert resp.data["sale"]["total_amount"] == "32.00"
    assert resp.data["sale"]["due_amount"] == "32.00"
    assert len(resp.data["sale"]["lines"]) == 1

    resp = api_client.get(f"/api/v1/inventory/items/{item['id']}/")
    assert resp.data["current_stock"] == 6

    resp = api_client.delete(f"/api/v1/inventory/sales/{sale_id}/")
    assert resp.status_code == 204
    assert StockItem.objects.get(id=item["id"]).current_stock == 10


def test_oversell_is_409(api_client):
    item = _create_item(api_client)
    api_client.post(f"/api/v1/inventory/items/{item['id']}/receive/", {"quantity": 2, "unit_price": "1.00"}, format="json")

    resp = api_client.post(
        "/api/v1/inventory/sales/",
        {"patient": {"first_name": "Karim"}, "item": item["id"], "quantity": 3},
        format="json",
    )
    assert resp.status_code == 409
    assert resp.data["error"]["code"] == "insufficient_stock"


def test_low_stock_filter_and_stats(api_client):
    low = _create_item(api_client, generic_name="Cetirizine", low_stock_threshold=5)
    plenty = _create_item(api_client, generic_name="Metformin", low_stock_threshold=5)
    _create_item(api_client, generic_name="Insulin")
    api_client.post(f"/api/v1/inventory/items/{low['id']}/receive/", {"quantity": 2, "unit_price": "3.00"}, format="json")
    api_client.post(f"/api/v1/inventory/items/{plenty['id']}/receive/", {"quantity": 50, "unit_price": "1.50"}, format="json")

    resp = api_client.get("/api/v1/inventory/items/", {"low_stock": "true", "out_of_stock": "false"})
    assert resp.status_code == 200
    assert [r["generic_name"] for r in resp.data["results"]] == ["Cetirizine"]

    resp = api_client.get("/api/v1/inventory/stats/")
    assert resp.status_code == 200
    assert resp.data["total_items"] == 3
    assert resp.data["low_stock"] == 1
    assert resp.data["out_of_stock"] == 1
    assert resp.data["stock_value"] == "81.00"
    assert resp.data["purchases_total"] == "81.00"
    assert resp.data["sales_count"] == 0


def test_stats_rejects_bad_date(api_client):
    resp = api_client.get("/api/v1/inventory/stats/", {"date_from": "yesterday"})
    assert resp.status_code == 400
    assert "date_from" in resp.data["error"]["details"]


def test_batches_list_in_fifo_order(api_client):
    item = _create_item(api_client)
    for qty in (3, 7):
        api_client.post(f"/api/v1/inventory/items/{item['id']}/receive/", {"quantity": qty, "unit_price": "1.00"}, format="json")

    resp = api_client.get("/api/v1/inventory/batches/", {"item": item["id"], "ordering": "received_date"})
    assert resp.status_code == 200
    assert sorted(r["quantity"] for r in resp.data["results"]) == [3, 7]
