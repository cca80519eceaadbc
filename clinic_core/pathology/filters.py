import django_filters

from clinic_core.pathology.models import PathologyTest


class PathologyTestFilter(django_filters.FilterSet):
    patient = django_filters.UUIDFilter(field_name="patient_id")
    ordered_by = django_filters.UUIDFilter(field_name="ordered_by_id")
    date_from = django_filters.DateFilter(field_name="test_date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="test_date", lookup_expr="lte")

    class Meta:
        model = PathologyTest
        fields = ["patient", "ordered_by", "is_completed", "test_category"]
