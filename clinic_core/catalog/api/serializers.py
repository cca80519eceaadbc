from rest_framework import serializers

from clinic_core.catalog.models import ServiceItem


class ServiceItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = ServiceItem
        fields = ["id", "code", "name", "category", "department", "default_price", "is_active"]
        read_only_fields = fields
