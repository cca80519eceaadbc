# clinic_core/cash/api/serializers.py
from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from clinic_core.cash.models import CashMovement, Shift


class ShiftSerializer(serializers.ModelSerializer):
    operator_username = serializers.CharField(source="operator.get_username", read_only=True)

    class Meta:
        model = Shift
        fields = [
            "id",
            "operator",
            "operator_username",
            "status",
            "opening_cash",
            "system_cash",
            "total_collected",
            "total_refunded",
            "closing_cash",
            "variance",
            "started_at",
            "ended_at",
            "notes",
        ]
        read_only_fields = fields


class ShiftOpenSerializer(serializers.Serializer):
    opening_cash = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.00"), default=Decimal("0.00"))
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ShiftCloseSerializer(serializers.Serializer):
    closing_cash = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.00"))


class CashMovementSerializer(serializers.ModelSerializer):
    receipt_number = serializers.CharField(source="payment.receipt_number", read_only=True, default=None)

    class Meta:
        model = CashMovement
        fields = [
            "id",
            "shift",
            "movement_type",
            "amount",
            "description",
            "payment",
            "receipt_number",
            "charge",
            "created_at",
        ]
        read_only_fields = fields
