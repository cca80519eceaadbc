# clinic_core/patients/tests/test_patient_api.py
import pytest

pytestmark = pytest.mark.django_db


def test_patient_search(api_client, patient):
    resp = api_client.get("/api/v1/patients/", {"q": "test pat"})
    assert resp.status_code == 200, resp.data
    assert resp.data["count"] == 1
    assert resp.data["results"][0]["id"] == str(patient.id)


def test_patient_retrieve_unknown_is_enveloped_404(api_client):
    resp = api_client.get("/api/v1/patients/00000000-0000-0000-0000-000000000000/")
    assert resp.status_code == 404
    assert resp.data["error"]["code"] == "not_found"


def test_patient_patch(api_client, patient):
    resp = api_client.patch(f"/api/v1/patients/{patient.id}/", {"guardian_name": "Rahim"}, format="json")
    assert resp.status_code == 200, resp.data
    assert resp.data["guardian_name"] == "Rahim"


def test_requires_authentication(patient):
    from rest_framework.test import APIClient

    resp = APIClient().get("/api/v1/patients/")
    assert resp.status_code == 401
    assert resp.data["error"]["code"] == "not_authenticated"
