# clinic_core/departments/selectors.py
from __future__ import annotations

from uuid import UUID

from rest_framework.exceptions import NotFound

from clinic_core.common.numbering import DEFAULT_DEPARTMENT_CODE, department_code_for
from clinic_core.departments.models import Department, Doctor


def get_department(*, department_id: UUID) -> Department:
    try:
        return Department.objects.get(id=department_id)
    except Department.DoesNotExist:
        raise NotFound("Department not found.")


def get_doctor(*, doctor_id: UUID) -> Doctor:
    try:
        return Doctor.objects.select_related("department").get(id=doctor_id)
    except Doctor.DoesNotExist:
        raise NotFound("Doctor not found.")


def registration_code(department: Department | None) -> str:
    """
    Stored code wins; otherwise derive it from the department name.
    """
    if department is None:
        return DEFAULT_DEPARTMENT_CODE
    code = (department.code or "").strip().upper()
    return code or department_code_for(department.name)


def list_departments(*, active_only: bool = True):
    qs = Department.objects.all()
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.order_by("name")


def list_doctors(*, department_id: UUID | None = None, active_only: bool = True):
    qs = Doctor.objects.select_related("department")
    if department_id:
        qs = qs.filter(department_id=department_id)
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.order_by("full_name")
