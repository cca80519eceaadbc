import django_filters
from django.db.models import F

from clinic_core.inventory.models import Sale, StockBatch, StockItem, Supplier


class StockItemFilter(django_filters.FilterSet):
    group = django_filters.UUIDFilter(field_name="group_id")
    low_stock = django_filters.BooleanFilter(method="filter_low_stock")
    out_of_stock = django_filters.BooleanFilter(method="filter_out_of_stock")

    class Meta:
        model = StockItem
        fields = ["group", "is_active", "dosage_form"]

    def filter_low_stock(self, queryset, name, value):
        low = {"current_stock__lte": F("low_stock_threshold")}
        return queryset.filter(**low) if value else queryset.exclude(**low)

    def filter_out_of_stock(self, queryset, name, value):
        return queryset.filter(current_stock=0) if value else queryset.filter(current_stock__gt=0)


class StockBatchFilter(django_filters.FilterSet):
    item = django_filters.UUIDFilter(field_name="item_id")
    supplier = django_filters.UUIDFilter(field_name="supplier_id")
    in_stock = django_filters.BooleanFilter(method="filter_in_stock")
    received_from = django_filters.DateFilter(field_name="received_date", lookup_expr="gte")
    received_to = django_filters.DateFilter(field_name="received_date", lookup_expr="lte")

    class Meta:
        model = StockBatch
        fields = ["item", "supplier", "invoice_number"]

    def filter_in_stock(self, queryset, name, value):
        return queryset.filter(remaining_qty__gt=0) if value else queryset.filter(remaining_qty=0)


class SaleFilter(django_filters.FilterSet):
    patient = django_filters.UUIDFilter(field_name="patient_id")
    item = django_filters.UUIDFilter(field_name="item_id")
    date_from = django_filters.DateFilter(field_name="sale_date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="sale_date", lookup_expr="lte")
    has_due = django_filters.BooleanFilter(method="filter_has_due")

    class Meta:
        model = Sale
        fields = ["patient", "item"]

    def filter_has_due(self, queryset, name, value):
        return queryset.filter(due_amount__gt=0) if value else queryset.filter(due_amount=0)


class SupplierFilter(django_filters.FilterSet):
    class Meta:
        model = Supplier
        fields = ["is_active"]
