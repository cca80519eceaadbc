# clinic_core/pathology/api/serializers.py
from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from clinic_core.billing.api.serializers import SettlementSerializer
from clinic_core.common.money import DiscountType
from clinic_core.pathology.models import PathologyTest
from clinic_core.patients.api.serializers import HospitalInputSerializer, PatientInputSerializer, PatientSerializer


def _money(**kwargs):
    return serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.00"), **kwargs)


class _PathologyFieldsSerializer(serializers.Serializer):
    test_date = serializers.DateField(required=False)
    test_category = serializers.CharField(max_length=64, required=False, allow_blank=True)
    selected_tests = serializers.ListField(child=serializers.CharField(max_length=64), required=False, allow_empty=False)
    remarks = serializers.CharField(required=False, allow_blank=True)
    is_completed = serializers.BooleanField(required=False)

    done_by = serializers.UUIDField(required=False, allow_null=True, source="done_by_id")

    discount_type = serializers.ChoiceField(choices=DiscountType.CHOICES, required=False, allow_null=True)
    discount_value = _money(required=False, allow_null=True)
    discount_amount = _money(required=False, allow_null=True)
    paid_amount = _money(required=False, allow_null=True)

    shift = serializers.UUIDField(required=False, allow_null=True)


class PathologyTestCreateSerializer(_PathologyFieldsSerializer):
    patient = PatientInputSerializer()
    hospital = HospitalInputSerializer(required=False, allow_null=True)
    ordered_by = serializers.UUIDField(source="ordered_by_id")
    selected_tests = serializers.ListField(child=serializers.CharField(max_length=64), allow_empty=False)


class PathologyTestUpdateSerializer(_PathologyFieldsSerializer):
    ordered_by = serializers.UUIDField(required=False, source="ordered_by_id")

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class PathologyTestSerializer(serializers.ModelSerializer):
    patient = PatientSerializer(read_only=True)
    ordered_by_name = serializers.CharField(source="ordered_by.full_name", read_only=True)
    done_by_name = serializers.CharField(source="done_by.full_name", read_only=True, default=None)

    class Meta:
        model = PathologyTest
        fields = [
            "id",
            "test_number",
            "patient",
            "test_date",
            "test_category",
            "selected_tests",
            "line_items",
            "remarks",
            "is_completed",
            "test_charge",
            "discount_type",
            "discount_value",
            "discount_amount",
            "grand_total",
            "paid_amount",
            "due_amount",
            "ordered_by",
            "ordered_by_name",
            "done_by",
            "done_by_name",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PathologyResultSerializer(serializers.Serializer):
    test = PathologyTestSerializer()
    settlement = SettlementSerializer()
