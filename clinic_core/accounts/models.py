# clinic_core/accounts/models.py
from __future__ import annotations

from django.db import models

from clinic_core.common.models import BaseModel, money_field


class Account(BaseModel):
    """
    Per-patient running totals. total_due == total_charges - total_paid.

    Never saved from Python values; AccountLedger applies F() deltas.
    """
    patient = models.OneToOneField("patients.Patient", on_delete=models.PROTECT, related_name="account")

    total_charges = money_field()
    total_paid = money_field()
    total_due = money_field()

    class Meta:
        db_table = "accounts_account"

    def __str__(self) -> str:
        return f"Account {self.patient_id}: due {self.total_due}"
