import pytest
from rest_framework.test import APIClient

pytestmark = pytest.mark.django_db


def test_request_id_is_echoed(api_client):
    resp = api_client.get("/api/v1/patients/", HTTP_X_REQUEST_ID="req-123")
    assert resp.status_code == 200
    assert resp["X-Request-Id"] == "req-123"


def test_not_found_uses_envelope(api_client):
    resp = api_client.get("/api/v1/patients/not-a-uuid/", HTTP_X_REQUEST_ID="req-404")
    assert resp.status_code == 404
    err = resp.data["error"]
    assert err["code"] == "not_found"
    assert err["request_id"] == "req-404"


def test_validation_error_envelope(api_client):
    resp = api_client.post("/api/v1/cash/shifts/current/", {"opening_cash": "-5"}, format="json")
    assert resp.status_code == 400
    assert resp.data["error"]["code"] == "validation_error"
    assert "opening_cash" in resp.data["error"]["details"]


def test_unauthenticated_envelope(db):
    resp = APIClient().get("/api/v1/inventory/stats/")
    assert resp.status_code == 401
    assert resp.data["error"]["code"] == "not_authenticated"
    assert resp.data["error"]["request_id"]
