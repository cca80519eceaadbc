# clinic_core/admissions/models.py
from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from clinic_core.admissions.constants import AdmissionStatus
from clinic_core.common.models import BaseModel, money_field
from clinic_core.common.money import DiscountType


class Admission(BaseModel):
    patient = models.ForeignKey("patients.Patient", on_delete=models.PROTECT, related_name="admissions")
    department = models.ForeignKey(
        "departments.Department", on_delete=models.PROTECT, related_name="admissions", null=True, blank=True
    )
    doctor = models.ForeignKey(
        "departments.Doctor", on_delete=models.PROTECT, related_name="admissions", null=True, blank=True
    )

    admission_number = models.CharField(max_length=32, unique=True)
    status = models.CharField(max_length=32, choices=AdmissionStatus.choices, default=AdmissionStatus.ADMITTED)
    date_admitted = models.DateTimeField(default=timezone.now)

    # fee components
    admission_fee = money_field()
    service_charge = money_field()
    seat_rent = money_field()
    ot_charge = money_field()
    doctor_charge = money_field()
    surgeon_charge = money_field()
    anesthesia_fee = money_field()
    assistant_doctor_fee = money_field()
    medicine_charge = money_field()
    other_charges = money_field()

    total_amount = money_field()
    discount_type = models.CharField(max_length=16, choices=DiscountType.CHOICES, null=True, blank=True)
    discount_value = money_field(null=True, blank=True, default=None)
    discount_amount = money_field()
    grand_total = money_field()
    paid_amount = money_field()
    due_amount = money_field()

    # clinical
    seat_number = models.CharField(max_length=32, blank=True)
    ward = models.CharField(max_length=64, blank=True)
    diagnosis = models.TextField(blank=True)
    treatment = models.TextField(blank=True)
    ot_type = models.CharField(max_length=128, blank=True)
    chief_complaint = models.TextField(blank=True)
    remarks = models.TextField(blank=True)

    is_discharged = models.BooleanField(default=False)
    date_discharged = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, related_name="+", null=True, blank=True
    )
    modified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, related_name="+", null=True, blank=True
    )

    class Meta:
        db_table = "admissions_admission"
        indexes = [
            models.Index(fields=["status", "date_admitted"]),
            models.Index(fields=["patient", "date_admitted"]),
        ]

    def __str__(self) -> str:
        return self.admission_number
