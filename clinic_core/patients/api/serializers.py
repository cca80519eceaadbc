# clinic_core/patients/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from clinic_core.patients.models import Hospital, Patient


class PatientInputSerializer(serializers.Serializer):
    """
    Patient block embedded in admission / pathology / sale payloads.
    Send "id" to reuse an existing patient (demographics are refreshed).
    """
    id = serializers.UUIDField(required=False, allow_null=True)
    first_name = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
    last_name = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
    full_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    gender = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    phone_number = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    address = serializers.CharField(max_length=512, required=False, allow_blank=True, default="")
    blood_group = serializers.CharField(max_length=8, required=False, allow_blank=True, default="")
    guardian_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    guardian_phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if not attrs.get("id") and not (attrs.get("first_name") or attrs.get("full_name")):
            raise serializers.ValidationError({"first_name": "Patient first name is required."})
        return attrs


class HospitalInputSerializer(serializers.Serializer):
    id = serializers.UUIDField(required=False, allow_null=True)
    name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    address = serializers.CharField(max_length=512, required=False, allow_blank=True, default="")
    phone_number = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    website = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    type = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")


class PatientUpdateSerializer(serializers.Serializer):
    """
    Partial update contract (PATCH).
    """
    first_name = serializers.CharField(max_length=128, required=False)
    last_name = serializers.CharField(max_length=128, required=False, allow_blank=True)
    gender = serializers.CharField(max_length=32, required=False, allow_blank=True)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    phone_number = serializers.CharField(max_length=32, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    address = serializers.CharField(max_length=512, required=False, allow_blank=True)
    blood_group = serializers.CharField(max_length=8, required=False, allow_blank=True)
    guardian_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    guardian_phone = serializers.CharField(max_length=32, required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class HospitalSerializer(serializers.ModelSerializer):
    class Meta:
        model = Hospital
        fields = ["id", "name", "address", "phone_number", "email", "website", "type"]
        read_only_fields = fields


class PatientSerializer(serializers.ModelSerializer):
    hospital = HospitalSerializer(read_only=True)

    class Meta:
        model = Patient
        fields = [
            "id",
            "first_name",
            "last_name",
            "full_name",
            "gender",
            "date_of_birth",
            "phone_number",
            "email",
            "address",
            "blood_group",
            "guardian_name",
            "guardian_phone",
            "hospital",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
