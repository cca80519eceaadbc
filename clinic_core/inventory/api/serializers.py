# clinic_core/inventory/api/serializers.py
from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from clinic_core.billing.api.serializers import SettlementSerializer
from clinic_core.inventory.models import MedicineGroup, Sale, SaleLine, StockBatch, StockItem, Supplier
from clinic_core.patients.api.serializers import HospitalInputSerializer, PatientInputSerializer, PatientSerializer


def _money(**kwargs):
    return serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.00"), **kwargs)


class MedicineGroupCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=128)


class SupplierCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    contact_person = serializers.CharField(max_length=255, required=False, allow_blank=True)
    phone_number = serializers.CharField(max_length=32, required=False, allow_blank=True)
    address = serializers.CharField(max_length=512, required=False, allow_blank=True)


class MedicineGroupSerializer(serializers.ModelSerializer):
    class Meta:
        model = MedicineGroup
        fields = ["id", "name", "created_at"]
        read_only_fields = fields


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = ["id", "name", "contact_person", "phone_number", "address", "is_active", "created_at"]
        read_only_fields = fields


class StockItemCreateSerializer(serializers.Serializer):
    generic_name = serializers.CharField(max_length=255)
    brand_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    group = serializers.CharField(max_length=128, required=False, allow_blank=True, source="group_name")
    strength = serializers.CharField(max_length=64, required=False, allow_blank=True)
    dosage_form = serializers.CharField(max_length=64, required=False, allow_blank=True)
    low_stock_threshold = serializers.IntegerField(min_value=0, required=False)


class StockItemSerializer(serializers.ModelSerializer):
    group_name = serializers.CharField(source="group.name", read_only=True, default=None)
    display_name = serializers.CharField(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = StockItem
        fields = [
            "id",
            "generic_name",
            "brand_name",
            "display_name",
            "group",
            "group_name",
            "strength",
            "dosage_form",
            "current_stock",
            "low_stock_threshold",
            "is_low_stock",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class StockReceiveSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
    unit_price = _money()
    received_date = serializers.DateField(required=False)
    expiry_date = serializers.DateField(required=False, allow_null=True)
    supplier = serializers.CharField(max_length=255, required=False, allow_blank=True, source="supplier_name")
    invoice_number = serializers.CharField(max_length=64, required=False, allow_blank=True)
    batch_number = serializers.CharField(max_length=64, required=False, allow_blank=True)


class StockBatchSerializer(serializers.ModelSerializer):
    item_name = serializers.CharField(source="item.display_name", read_only=True)
    supplier_name = serializers.CharField(source="supplier.name", read_only=True, default=None)

    class Meta:
        model = StockBatch
        fields = [
            "id",
            "item",
            "item_name",
            "supplier",
            "supplier_name",
            "invoice_number",
            "batch_number",
            "quantity",
            "remaining_qty",
            "unit_price",
            "total_amount",
            "received_date",
            "expiry_date",
            "created_at",
        ]
        read_only_fields = fields


class SaleCreateSerializer(serializers.Serializer):
    patient = PatientInputSerializer()
    hospital = HospitalInputSerializer(required=False, allow_null=True)
    item = serializers.UUIDField(source="item_id")
    quantity = serializers.IntegerField(min_value=1)
    unit_price_override = _money(required=False, allow_null=True)
    sale_date = serializers.DateField(required=False)
    paid_amount = _money(required=False, allow_null=True)
    remarks = serializers.CharField(max_length=255, required=False, allow_blank=True)
    shift = serializers.UUIDField(required=False, allow_null=True)


class SaleLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = SaleLine
        fields = ["batch", "quantity", "unit_price", "line_total"]
        read_only_fields = fields


class SaleSerializer(serializers.ModelSerializer):
    patient = PatientSerializer(read_only=True)
    item_name = serializers.CharField(source="item.display_name", read_only=True)
    lines = SaleLineSerializer(many=True, read_only=True)

    class Meta:
        model = Sale
        fields = [
            "id",
            "sale_number",
            "patient",
            "item",
            "item_name",
            "quantity",
            "unit_price_override",
            "total_amount",
            "paid_amount",
            "due_amount",
            "sale_date",
            "remarks",
            "lines",
            "created_at",
        ]
        read_only_fields = fields


class SaleResultSerializer(serializers.Serializer):
    sale = SaleSerializer()
    settlement = SettlementSerializer()


class InventoryStatsSerializer(serializers.Serializer):
    total_items = serializers.IntegerField()
    low_stock = serializers.IntegerField()
    out_of_stock = serializers.IntegerField()
    stock_value = serializers.DecimalField(max_digits=14, decimal_places=2)
    sales_total = serializers.DecimalField(max_digits=14, decimal_places=2)
    sales_count = serializers.IntegerField()
    purchases_total = serializers.DecimalField(max_digits=14, decimal_places=2)
    date_from = serializers.DateField(allow_null=True)
    date_to = serializers.DateField(allow_null=True)
