from datetime import date

import pytest

from clinic_core.common.numbering import (
    department_code_for,
    format_receipt_number,
    next_receipt_number,
    next_registration_number,
)

pytestmark = pytest.mark.django_db


def test_registration_numbers_are_sequential_per_prefix_and_year():
    on = date(2025, 3, 1)
    assert next_registration_number("GYNE", on=on) == "GYNE-25-00001"
    assert next_registration_number("GYNE", on=on) == "GYNE-25-00002"
    assert next_registration_number("SURG", on=on) == "SURG-25-00001"
    assert next_registration_number("GYNE", on=date(2026, 1, 1)) == "GYNE-26-00001"


def test_receipt_numbers():
    on = date(2025, 7, 9)
    assert next_receipt_number(on=on) == "RCP-25-000001"
    assert next_receipt_number(on=on) == "RCP-25-000002"
    assert format_receipt_number("25", 123456) == "RCP-25-123456"


def test_department_codes():
    assert department_code_for("Gynecology") == "GYNE"
    assert department_code_for(" Pediatrics ") == "PED"
    assert department_code_for("Dermatology") == "GEN"
