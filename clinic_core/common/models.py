# clinic_core/common/models.py
from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models


class TimeStampedModel(models.Model):
    """
    Standard timestamps for all entities.
    """
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class BaseModel(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class Meta:
        abstract = True


def money_field(**kwargs) -> models.DecimalField:
    kwargs.setdefault("max_digits", 12)
    kwargs.setdefault("decimal_places", 2)
    kwargs.setdefault("default", Decimal("0.00"))
    return models.DecimalField(**kwargs)


# -------------------------------------------------------------------
# Human-readable number sequences
# -------------------------------------------------------------------

class RegistrationCounter(TimeStampedModel):
    """
    One row per (prefix, year). Rows are locked with select_for_update while a
    number is handed out, so sequences stay gap-free per department and year.

    prefix examples: "GYNE", "PATH", "MED", "RCP"
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    prefix = models.CharField(max_length=16)
    year = models.CharField(max_length=2)
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "common_registration_counter"
        constraints = [
            models.UniqueConstraint(fields=["prefix", "year"], name="uq_registration_counter_prefix_year"),
        ]

    def __str__(self) -> str:
        return f"{self.prefix}-{self.year}: {self.last_value}"
