# clinic_core/catalog/models.py
from __future__ import annotations

from django.db import models

from clinic_core.common.models import BaseModel, money_field


class ServiceCategory(models.TextChoices):
    PATHOLOGY = "pathology", "Pathology"
    IMAGING = "imaging", "Imaging"
    CARDIOLOGY = "cardiology", "Cardiology"
    OTHER = "other", "Other"


class ServiceItem(BaseModel):
    """
    Price list. One record per code; pathology orders are priced from here.
    """
    code = models.SlugField(max_length=64)
    name = models.CharField(max_length=255)
    category = models.CharField(max_length=32, choices=ServiceCategory.choices, default=ServiceCategory.PATHOLOGY)

    department = models.CharField(max_length=64, blank=True)

    default_price = money_field()

    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "catalog_service_item"
        constraints = [
            models.UniqueConstraint(fields=["code"], name="uq_service_item_code"),
        ]
        indexes = [
            models.Index(fields=["category", "is_active"]),
        ]

    def __str__(self) -> str:
        return f"{self.code} ({self.default_price})"
