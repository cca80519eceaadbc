# clinic_core/admissions/filters.py
import django_filters

from clinic_core.admissions.constants import AdmissionStatus
from clinic_core.admissions.models import Admission


class AdmissionFilter(django_filters.FilterSet):
    status = django_filters.MultipleChoiceFilter(choices=AdmissionStatus.choices)
    patient = django_filters.UUIDFilter(field_name="patient_id")
    department = django_filters.UUIDFilter(field_name="department_id")
    doctor = django_filters.UUIDFilter(field_name="doctor_id")
    admitted_from = django_filters.DateFilter(field_name="date_admitted", lookup_expr="date__gte")
    admitted_to = django_filters.DateFilter(field_name="date_admitted", lookup_expr="date__lte")
    has_due = django_filters.BooleanFilter(method="filter_has_due")

    class Meta:
        model = Admission
        fields = ["status", "patient", "department", "doctor", "is_discharged"]

    def filter_has_due(self, queryset, name, value):
        if value is None:
            return queryset
        return queryset.filter(due_amount__gt=0) if value else queryset.filter(due_amount=0)
