# clinic_core/inventory/models.py
from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models.functions import Lower
from django.utils import timezone

from clinic_core.common.models import BaseModel, money_field


def default_low_stock_threshold() -> int:
    return int(getattr(settings, "CLINIC_DEFAULT_LOW_STOCK_THRESHOLD", 10))


class MedicineGroup(BaseModel):
    name = models.CharField(max_length=128)

    class Meta:
        db_table = "inventory_medicine_group"
        constraints = [models.UniqueConstraint(Lower("name"), name="uq_medicine_group_name_ci")]

    def __str__(self) -> str:
        return self.name


class Supplier(BaseModel):
    name = models.CharField(max_length=255)
    contact_person = models.CharField(max_length=255, blank=True)
    phone_number = models.CharField(max_length=32, blank=True)
    address = models.CharField(max_length=512, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "inventory_supplier"
        constraints = [models.UniqueConstraint(Lower("name"), name="uq_supplier_name_ci")]

    def __str__(self) -> str:
        return self.name


class StockItem(BaseModel):
    """
    A medicine. current_stock mirrors sum(batch.remaining_qty) and is only moved with F() updates.
    """
    generic_name = models.CharField(max_length=255)
    brand_name = models.CharField(max_length=255, blank=True)
    group = models.ForeignKey(MedicineGroup, on_delete=models.SET_NULL, related_name="items", null=True, blank=True)
    strength = models.CharField(max_length=64, blank=True)
    dosage_form = models.CharField(max_length=64, blank=True)

    current_stock = models.PositiveIntegerField(default=0)
    low_stock_threshold = models.PositiveIntegerField(default=default_low_stock_threshold)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "inventory_stock_item"
        indexes = [
            models.Index(fields=["generic_name"]),
            models.Index(fields=["brand_name"]),
        ]

    @property
    def display_name(self) -> str:
        name = self.brand_name or self.generic_name
        return f"{name} {self.strength}".strip()

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.low_stock_threshold

    def __str__(self) -> str:
        return self.display_name


class StockBatch(BaseModel):
    """
    One purchase/intake. Batches are never merged; 0 <= remaining_qty <= quantity.
    """
    item = models.ForeignKey(StockItem, on_delete=models.PROTECT, related_name="batches")
    supplier = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name="batches", null=True, blank=True)
    invoice_number = models.CharField(max_length=64, blank=True)
    batch_number = models.CharField(max_length=64, blank=True)

    quantity = models.PositiveIntegerField()
    remaining_qty = models.PositiveIntegerField()
    unit_price = money_field()
    total_amount = money_field()

    received_date = models.DateField(default=timezone.localdate)
    expiry_date = models.DateField(null=True, blank=True)

    received_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, related_name="+", null=True, blank=True
    )

    class Meta:
        db_table = "inventory_stock_batch"
        indexes = [
            models.Index(fields=["item", "received_date", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"{self.item_id} {self.batch_number or self.id}: {self.remaining_qty}/{self.quantity}"


class Sale(BaseModel):
    patient = models.ForeignKey("patients.Patient", on_delete=models.PROTECT, related_name="medicine_sales")
    item = models.ForeignKey(StockItem, on_delete=models.PROTECT, related_name="sales")
    sale_number = models.CharField(max_length=32, unique=True)

    quantity = models.PositiveIntegerField()
    unit_price_override = money_field(null=True, blank=True, default=None)
    total_amount = money_field()
    paid_amount = money_field()
    due_amount = money_field()

    sale_date = models.DateField(default=timezone.localdate)
    remarks = models.CharField(max_length=255, blank=True)
    sold_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, related_name="+", null=True, blank=True
    )

    class Meta:
        db_table = "inventory_sale"
        indexes = [models.Index(fields=["sale_date"])]

    def __str__(self) -> str:
        return self.sale_number


class SaleLine(BaseModel):
    """
    Stock consumed from one batch by one sale.
    """
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name="lines")
    batch = models.ForeignKey(StockBatch, on_delete=models.PROTECT, related_name="sale_lines")
    quantity = models.PositiveIntegerField()
    unit_price = money_field()
    line_total = money_field()

    class Meta:
        db_table = "inventory_sale_line"
