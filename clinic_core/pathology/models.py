# clinic_core/pathology/models.py
from __future__ import annotations

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone

from clinic_core.common.models import BaseModel, money_field
from clinic_core.common.money import DiscountType


class PathologyTest(BaseModel):
    """
    One pathology order. line_items snapshots catalog prices at order time:
    [{"code": "CBC", "name": "...", "price": "200.00"}, ...]
    """
    patient = models.ForeignKey("patients.Patient", on_delete=models.PROTECT, related_name="pathology_tests")
    test_number = models.CharField(max_length=32, unique=True)
    test_date = models.DateField(default=timezone.localdate)
    test_category = models.CharField(max_length=64, blank=True)

    selected_tests = models.JSONField(default=list)
    line_items = models.JSONField(default=list, encoder=DjangoJSONEncoder)
    remarks = models.TextField(blank=True)
    is_completed = models.BooleanField(default=False)

    test_charge = money_field()
    discount_type = models.CharField(max_length=16, choices=DiscountType.CHOICES, null=True, blank=True)
    discount_value = money_field(null=True, blank=True, default=None)
    discount_amount = money_field()
    grand_total = money_field()
    paid_amount = money_field()
    due_amount = money_field()

    ordered_by = models.ForeignKey("departments.Doctor", on_delete=models.PROTECT, related_name="ordered_tests")
    done_by = models.ForeignKey(
        "departments.Doctor", on_delete=models.PROTECT, related_name="performed_tests", null=True, blank=True
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, related_name="+", null=True, blank=True
    )
    modified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, related_name="+", null=True, blank=True
    )

    class Meta:
        db_table = "pathology_test"
        indexes = [
            models.Index(fields=["test_date"]),
            models.Index(fields=["patient", "test_date"]),
        ]

    def __str__(self) -> str:
        return self.test_number
