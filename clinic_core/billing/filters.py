# clinic_core/billing/filters.py
import django_filters

from clinic_core.billing.models import Charge, Payment, ServiceType


class ChargeFilter(django_filters.FilterSet):
    patient = django_filters.UUIDFilter(field_name="patient_id")
    service_type = django_filters.ChoiceFilter(choices=ServiceType.choices)
    created_from = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    created_to = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = Charge
        fields = ["patient", "service_type", "department_code"]


class PaymentFilter(django_filters.FilterSet):
    patient = django_filters.UUIDFilter(field_name="patient_id")
    shift = django_filters.UUIDFilter(field_name="shift_id")
    collected_by = django_filters.NumberFilter(field_name="collected_by_id")
    receipt_number = django_filters.CharFilter(lookup_expr="iexact")
    received_from = django_filters.DateFilter(field_name="received_at", lookup_expr="date__gte")
    received_to = django_filters.DateFilter(field_name="received_at", lookup_expr="date__lte")

    class Meta:
        model = Payment
        fields = ["patient", "shift", "method", "collected_by", "receipt_number"]
