from rest_framework import serializers

from clinic_core.departments.models import Department, Doctor


class DepartmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Department
        fields = ["id", "name", "code", "is_active"]
        read_only_fields = fields


class DoctorSerializer(serializers.ModelSerializer):
    department_name = serializers.CharField(source="department.name", read_only=True, default="")

    class Meta:
        model = Doctor
        fields = ["id", "full_name", "specialization", "department", "department_name", "is_active"]
        read_only_fields = fields
