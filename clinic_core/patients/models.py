# clinic_core/patients/models.py
from django.db import models
from django.db.models.functions import Lower

from clinic_core.common.models import BaseModel


class Hospital(BaseModel):
    """
    Referring hospital. Matched case-insensitively by name on intake.
    """
    name = models.CharField(max_length=255)
    address = models.CharField(max_length=512, blank=True)
    phone_number = models.CharField(max_length=32, blank=True)
    email = models.EmailField(blank=True)
    website = models.CharField(max_length=255, blank=True)
    type = models.CharField(max_length=64, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "patients_hospital"
        constraints = [
            models.UniqueConstraint(Lower("name"), name="uq_hospital_name_ci"),
        ]

    def __str__(self) -> str:
        return self.name


class Patient(BaseModel):
    first_name = models.CharField(max_length=128)
    last_name = models.CharField(max_length=128, blank=True)
    full_name = models.CharField(max_length=255)
    gender = models.CharField(max_length=32, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)

    phone_number = models.CharField(max_length=32, blank=True)
    email = models.EmailField(blank=True)
    address = models.CharField(max_length=512, blank=True)
    blood_group = models.CharField(max_length=8, blank=True)

    guardian_name = models.CharField(max_length=255, blank=True)
    guardian_phone = models.CharField(max_length=32, blank=True)

    hospital = models.ForeignKey(
        Hospital,
        on_delete=models.SET_NULL,
        related_name="patients",
        null=True,
        blank=True,
    )
    created_by_id = models.IntegerField(null=True, blank=True)

    class Meta:
        db_table = "patients_patient"
        indexes = [
            models.Index(fields=["full_name"]),
            models.Index(fields=["phone_number"]),
        ]

    def __str__(self) -> str:
        return self.full_name
