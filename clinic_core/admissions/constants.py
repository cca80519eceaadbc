# clinic_core/admissions/constants.py
from __future__ import annotations

from django.db import models


class AdmissionStatus(models.TextChoices):
    ADMITTED = "Admitted", "Admitted"
    UNDER_TREATMENT = "Under Treatment", "Under Treatment"
    AWAITING_DISCHARGE = "Awaiting Discharge", "Awaiting Discharge"
    DISCHARGED = "Discharged", "Discharged"
    CANCELED = "Canceled", "Canceled"


FEE_COMPONENTS = (
    "admission_fee",
    "service_charge",
    "seat_rent",
    "ot_charge",
    "doctor_charge",
    "surgeon_charge",
    "anesthesia_fee",
    "assistant_doctor_fee",
    "medicine_charge",
    "other_charges",
)

# set by the clinic, never by the payload
BASELINE_FEE = "admission_fee"

CLINICAL_FIELDS = (
    "seat_number",
    "ward",
    "diagnosis",
    "treatment",
    "ot_type",
    "chief_complaint",
    "remarks",
)

CANCELED_REMARK_PREFIX = "[CANCELED]"


class TransitionRule(models.TextChoices):
    CANCEL = "cancel", "Cancel"
    RESTORE = "restore", "Restore"
    UPDATE = "update", "Update"


def _rule(old: str, new: str) -> str:
    if new == AdmissionStatus.CANCELED and old != AdmissionStatus.CANCELED:
        return TransitionRule.CANCEL
    if old == AdmissionStatus.CANCELED and new != AdmissionStatus.CANCELED:
        return TransitionRule.RESTORE
    return TransitionRule.UPDATE


TRANSITIONS: dict[tuple[str, str], str] = {
    (old, new): _rule(old, new) for old in AdmissionStatus.values for new in AdmissionStatus.values
}
