# clinic_core/billing/models.py
from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from clinic_core.common.models import BaseModel, money_field


class ServiceType(models.TextChoices):
    ADMISSION = "ADMISSION", "Admission"
    PATHOLOGY_TEST = "PATHOLOGY_TEST", "Pathology Test"
    MEDICINE_SALE = "MEDICINE_SALE", "Medicine Sale"


# service_type -> the one FK that must be set
LINK_FIELDS = {
    ServiceType.ADMISSION: "admission",
    ServiceType.PATHOLOGY_TEST: "pathology_test",
    ServiceType.MEDICINE_SALE: "sale",
}

# model label -> service_type
RECORD_SERVICE_TYPES = {
    "admissions.Admission": ServiceType.ADMISSION,
    "pathology.PathologyTest": ServiceType.PATHOLOGY_TEST,
    "inventory.Sale": ServiceType.MEDICINE_SALE,
}


def service_type_for(record) -> str:
    try:
        return RECORD_SERVICE_TYPES[record._meta.label]
    except (AttributeError, KeyError):
        raise ValidationError({"record": f"{type(record).__name__} is not a billable record."})


class Charge(BaseModel):
    """
    What a patient owes for one clinical record.

    Tagged link: service_type says which of admission / pathology_test / sale is set,
    and exactly that one is set. Amounts are edited in place.
    """
    patient = models.ForeignKey("patients.Patient", on_delete=models.PROTECT, related_name="charges")
    service_type = models.CharField(max_length=32, choices=ServiceType.choices)

    admission = models.ForeignKey(
        "admissions.Admission", on_delete=models.PROTECT, related_name="charges", null=True, blank=True
    )
    pathology_test = models.ForeignKey(
        "pathology.PathologyTest", on_delete=models.PROTECT, related_name="charges", null=True, blank=True
    )
    sale = models.ForeignKey(
        "inventory.Sale", on_delete=models.PROTECT, related_name="charges", null=True, blank=True
    )

    service_name = models.CharField(max_length=255)
    department_code = models.CharField(max_length=16, blank=True)

    original_amount = money_field()
    discount_amount = money_field()
    final_amount = money_field()

    class Meta:
        db_table = "billing_charge"
        indexes = [
            models.Index(fields=["patient", "created_at"]),
            models.Index(fields=["service_type"]),
        ]

    def link_to(self, record) -> "Charge":
        self.service_type = service_type_for(record)
        for field in LINK_FIELDS.values():
            setattr(self, field, None)
        setattr(self, LINK_FIELDS[self.service_type], record)
        return self

    def validate_link(self) -> None:
        expected = LINK_FIELDS.get(self.service_type)
        if expected is None:
            raise ValidationError({"service_type": f"Unknown service type '{self.service_type}'."})

        set_fields = [f for f in LINK_FIELDS.values() if getattr(self, f"{f}_id") is not None]
        if set_fields != [expected]:
            raise ValidationError(
                {"service_type": f"{self.service_type} charge must link only '{expected}' (got {set_fields or 'none'})."}
            )

    @property
    def linked_record(self):
        field = LINK_FIELDS.get(self.service_type)
        return getattr(self, field) if field else None

    def save(self, *args, **kwargs):
        self.validate_link()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.service_type} {self.service_name}: {self.final_amount}"


class PaymentMethod(models.TextChoices):
    CASH = "CASH", "Cash"
    CARD = "CARD", "Card"
    MOBILE = "MOBILE", "Mobile Banking"


class Payment(BaseModel):
    """
    Money received at the desk. Immutable once created; corrections are new
    payments or refund movements.
    """
    patient = models.ForeignKey("patients.Patient", on_delete=models.PROTECT, related_name="payments")
    amount = money_field()
    method = models.CharField(max_length=16, choices=PaymentMethod.choices, default=PaymentMethod.CASH)

    collected_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="collected_payments", null=True, blank=True
    )
    shift = models.ForeignKey("cash.Shift", on_delete=models.PROTECT, related_name="payments")

    receipt_number = models.CharField(max_length=32, unique=True)
    notes = models.CharField(max_length=255, blank=True)
    received_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "billing_payment"
        indexes = [
            models.Index(fields=["patient", "received_at"]),
            models.Index(fields=["shift"]),
        ]

    def __str__(self) -> str:
        return f"{self.receipt_number}: {self.amount}"


class PaymentAllocation(BaseModel):
    payment = models.ForeignKey(Payment, on_delete=models.PROTECT, related_name="allocations")
    charge = models.ForeignKey(Charge, on_delete=models.PROTECT, related_name="allocations")
    allocated_amount = money_field()

    class Meta:
        db_table = "billing_payment_allocation"
        constraints = [
            models.UniqueConstraint(fields=["payment", "charge"], name="uq_allocation_payment_charge"),
        ]
