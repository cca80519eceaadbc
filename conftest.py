# conftest.py
import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from clinic_core.departments.models import Department, Doctor
from clinic_core.patients.models import Patient


@pytest.fixture
def user(db):
    User = get_user_model()
    return User.objects.create_user(username="frontdesk", password="testpass", is_active=True)


@pytest.fixture
def other_user(db):
    User = get_user_model()
    return User.objects.create_user(username="nightdesk", password="testpass", is_active=True)


@pytest.fixture
def api_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def patient(db):
    return Patient.objects.create(first_name="Test", last_name="Patient", full_name="Test Patient")


@pytest.fixture
def department(db):
    return Department.objects.create(name="Gynecology", code="GYNE")


@pytest.fixture
def doctor(db, department):
    return Doctor.objects.create(full_name="Dr. Rahman", specialization="Gynecology", department=department)


@pytest.fixture
def shift(user):
    """
    Open shift for the default operator.
    """
    from clinic_core.cash.services import ShiftService

    return ShiftService.ensure_active_shift(operator_id=user.id)
