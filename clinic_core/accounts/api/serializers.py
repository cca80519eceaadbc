from rest_framework import serializers

from clinic_core.accounts.models import Account


class AccountSerializer(serializers.ModelSerializer):
    patient_name = serializers.CharField(source="patient.full_name", read_only=True)

    class Meta:
        model = Account
        fields = ["patient", "patient_name", "total_charges", "total_paid", "total_due", "updated_at"]
        read_only_fields = fields


class TotalsSerializer(serializers.Serializer):
    total_charges = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_paid = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_due = serializers.DecimalField(max_digits=12, decimal_places=2)


class ReconciliationSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    stored = TotalsSerializer()
    expected = TotalsSerializer()
    is_consistent = serializers.BooleanField()
    fixed = serializers.BooleanField()
