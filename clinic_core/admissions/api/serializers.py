# clinic_core/admissions/api/serializers.py
from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from clinic_core.admissions.constants import AdmissionStatus
from clinic_core.admissions.models import Admission
from clinic_core.billing.api.serializers import SettlementSerializer
from clinic_core.common.money import DiscountType
from clinic_core.patients.api.serializers import HospitalInputSerializer, PatientInputSerializer, PatientSerializer


def _money(**kwargs):
    return serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.00"), **kwargs)


class _AdmissionFieldsSerializer(serializers.Serializer):
    """
    Fields shared by create and edit. admission_fee is absent on purpose: it comes from settings.
    """
    status = serializers.ChoiceField(choices=AdmissionStatus.choices, required=False)
    department = serializers.UUIDField(required=False, allow_null=True, source="department_id")
    doctor = serializers.UUIDField(required=False, allow_null=True, source="doctor_id")

    seat_number = serializers.CharField(max_length=32, required=False, allow_blank=True)
    ward = serializers.CharField(max_length=64, required=False, allow_blank=True)
    diagnosis = serializers.CharField(required=False, allow_blank=True)
    treatment = serializers.CharField(required=False, allow_blank=True)
    ot_type = serializers.CharField(max_length=128, required=False, allow_blank=True)
    chief_complaint = serializers.CharField(required=False, allow_blank=True)
    remarks = serializers.CharField(required=False, allow_blank=True)

    service_charge = _money(required=False)
    seat_rent = _money(required=False)
    ot_charge = _money(required=False)
    doctor_charge = _money(required=False)
    surgeon_charge = _money(required=False)
    anesthesia_fee = _money(required=False)
    assistant_doctor_fee = _money(required=False)
    medicine_charge = _money(required=False)
    other_charges = _money(required=False)

    discount_type = serializers.ChoiceField(choices=DiscountType.CHOICES, required=False, allow_null=True)
    discount_value = _money(required=False, allow_null=True)
    discount_amount = _money(required=False, allow_null=True)
    paid_amount = _money(required=False, allow_null=True)

    is_discharged = serializers.BooleanField(required=False)
    date_discharged = serializers.DateTimeField(required=False, allow_null=True)

    shift = serializers.UUIDField(required=False, allow_null=True)


class AdmissionCreateSerializer(_AdmissionFieldsSerializer):
    patient = PatientInputSerializer()
    hospital = HospitalInputSerializer(required=False, allow_null=True)
    date_admitted = serializers.DateTimeField(required=False)


class AdmissionUpdateSerializer(_AdmissionFieldsSerializer):
    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class AdmissionSerializer(serializers.ModelSerializer):
    patient = PatientSerializer(read_only=True)
    department_name = serializers.CharField(source="department.name", read_only=True, default=None)
    doctor_name = serializers.CharField(source="doctor.full_name", read_only=True, default=None)

    class Meta:
        model = Admission
        fields = [
            "id",
            "admission_number",
            "patient",
            "department",
            "department_name",
            "doctor",
            "doctor_name",
            "status",
            "date_admitted",
            "admission_fee",
            "service_charge",
            "seat_rent",
            "ot_charge",
            "doctor_charge",
            "surgeon_charge",
            "anesthesia_fee",
            "assistant_doctor_fee",
            "medicine_charge",
            "other_charges",
            "total_amount",
            "discount_type",
            "discount_value",
            "discount_amount",
            "grand_total",
            "paid_amount",
            "due_amount",
            "seat_number",
            "ward",
            "diagnosis",
            "treatment",
            "ot_type",
            "chief_complaint",
            "remarks",
            "is_discharged",
            "date_discharged",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AdmissionResultSerializer(serializers.Serializer):
    admission = AdmissionSerializer()
    settlement = SettlementSerializer()
