# clinic_core/departments/models.py
from django.db import models

from clinic_core.common.models import BaseModel


class Department(BaseModel):
    """
    Clinical department. `code` prefixes registration numbers (GYNE-25-00001).
    """
    name = models.CharField(max_length=128)
    code = models.SlugField(max_length=16)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "departments_department"
        constraints = [
            models.UniqueConstraint(fields=["name"], name="uq_department_name"),
        ]

    def __str__(self) -> str:
        return self.name


class Doctor(BaseModel):
    full_name = models.CharField(max_length=255)
    specialization = models.CharField(max_length=128, blank=True)
    department = models.ForeignKey(
        Department,
        on_delete=models.SET_NULL,
        related_name="doctors",
        null=True,
        blank=True,
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "departments_doctor"
        indexes = [models.Index(fields=["full_name"])]

    def __str__(self) -> str:
        return self.full_name
