# clinic_core/cash/tests/test_shift_api.py
import pytest

pytestmark = pytest.mark.django_db


def test_current_shift_404_then_open(api_client):
    resp = api_client.get("/api/v1/cash/shifts/current/")
    assert resp.status_code == 404

    resp = api_client.post("/api/v1/cash/shifts/current/", {"opening_cash": "250.00"}, format="json")
    assert resp.status_code == 201, resp.data
    assert resp.data["system_cash"] == "250.00"

    resp = api_client.post("/api/v1/cash/shifts/current/", {}, format="json")
    assert resp.status_code == 409
    assert resp.data["error"]["code"] == "conflict"


def test_close_shift_endpoint(api_client, shift):
    resp = api_client.post(f"/api/v1/cash/shifts/{shift.id}/close/", {"closing_cash": "10.00"}, format="json")
    assert resp.status_code == 200, resp.data
    assert resp.data["status"] == "CLOSED"
    assert resp.data["variance"] == "10.00"

    resp = api_client.post(f"/api/v1/cash/shifts/{shift.id}/close/", {"closing_cash": "10.00"}, format="json")
    assert resp.status_code == 409
    assert resp.data["error"]["code"] == "shift_closed"


def test_other_operator_cannot_close(api_client, other_user):
    from clinic_core.cash.services import ShiftService

    theirs = ShiftService.ensure_active_shift(operator_id=other_user.id)
    resp = api_client.post(f"/api/v1/cash/shifts/{theirs.id}/close/", {"closing_cash": "0"}, format="json")
    assert resp.status_code == 400
    assert resp.data["error"]["code"] == "validation_error"


def test_movements_listing(api_client, shift):
    from clinic_core.cash.services import ShiftService

    ShiftService.record_collection(shift=shift, amount="75", description="walk-in")

    resp = api_client.get(f"/api/v1/cash/shifts/{shift.id}/movements/")
    assert resp.status_code == 200, resp.data
    assert resp.data["count"] == 1
    assert resp.data["results"][0]["movement_type"] == "COLLECTION"
