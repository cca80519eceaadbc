# clinic_core/common/numbering.py
from __future__ import annotations

from datetime import date

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from clinic_core.common.models import RegistrationCounter

RECEIPT_PREFIX = "RCP"
PATHOLOGY_PREFIX = "PATH"
MEDICINE_SALE_PREFIX = "SALE"
DEFAULT_DEPARTMENT_CODE = "GEN"

# Department name -> registration code
DEPARTMENT_CODES: dict[str, str] = {
    "Gynecology": "GYNE",
    "Surgery": "SURG",
    "Medicine": "MED",
    "Pediatrics": "PED",
    "Cardiology": "CARD",
    "ENT": "ENT",
    "Orthopedics": "ORTH",
    "Radiology": "RAD",
    "Psychology": "PSY",
    "Eye": "EYE",
    "Pathology": "PATH",
    "Anesthesia": "ANES",
    "General": "GEN",
}


def department_code_for(department_name: str) -> str:
    return DEPARTMENT_CODES.get((department_name or "").strip(), DEFAULT_DEPARTMENT_CODE)


def year_two_digit(on: date | None = None) -> str:
    on = on or timezone.localdate()
    return f"{on.year % 100:02d}"


def format_registration_number(department_code: str, year: str, sequence: int) -> str:
    """GYNE-25-00001"""
    return f"{department_code}-{year}-{sequence:05d}"


def format_receipt_number(year: str, sequence: int) -> str:
    """RCP-25-000001"""
    return f"{RECEIPT_PREFIX}-{year}-{sequence:06d}"


def next_sequence(prefix: str, year: str) -> int:
    """
    Hands out the next value for (prefix, year). Must run inside the caller's
    transaction: the counter row stays locked until it commits.
    """
    counter = (
        RegistrationCounter.objects.select_for_update()
        .filter(prefix=prefix, year=year)
        .first()
    )
    if counter is None:
        try:
            with transaction.atomic():
                RegistrationCounter.objects.create(prefix=prefix, year=year, last_value=0)
        except IntegrityError:
            # created concurrently; fall through to the locked read
            pass
        counter = RegistrationCounter.objects.select_for_update().get(prefix=prefix, year=year)

    RegistrationCounter.objects.filter(pk=counter.pk).update(last_value=F("last_value") + 1)
    counter.refresh_from_db(fields=["last_value"])
    return counter.last_value


def next_registration_number(department_code: str, *, on: date | None = None) -> str:
    yy = year_two_digit(on)
    return format_registration_number(department_code, yy, next_sequence(department_code, yy))


def next_receipt_number(*, on: date | None = None) -> str:
    yy = year_two_digit(on)
    return format_receipt_number(yy, next_sequence(RECEIPT_PREFIX, yy))
