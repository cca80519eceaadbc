# clinic_core/billing/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from clinic_core.billing.models import Charge, Payment, PaymentAllocation


class ChargeSerializer(serializers.ModelSerializer):
    patient_name = serializers.CharField(source="patient.full_name", read_only=True)
    record_id = serializers.SerializerMethodField()

    class Meta:
        model = Charge
        fields = [
            "id",
            "patient",
            "patient_name",
            "service_type",
            "record_id",
            "service_name",
            "department_code",
            "original_amount",
            "discount_amount",
            "final_amount",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_record_id(self, obj: Charge):
        record_id = obj.admission_id or obj.pathology_test_id or obj.sale_id
        return str(record_id) if record_id else None


class PaymentAllocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentAllocation
        fields = ["id", "charge", "allocated_amount"]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    allocations = PaymentAllocationSerializer(many=True, read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "receipt_number",
            "patient",
            "amount",
            "method",
            "collected_by",
            "shift",
            "notes",
            "received_at",
            "allocations",
        ]
        read_only_fields = fields


class SettlementSerializer(serializers.Serializer):
    """
    Cash effect echoed back by create/edit endpoints.
    """
    charge_id = serializers.UUIDField(source="charge.id")
    paid_diff = serializers.DecimalField(max_digits=12, decimal_places=2)
    receipt_number = serializers.CharField(source="payment.receipt_number", default=None)
    refund_amount = serializers.DecimalField(source="refund.amount", max_digits=12, decimal_places=2, default=None)
