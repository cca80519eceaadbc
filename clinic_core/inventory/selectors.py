from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from django.db.models import DecimalField, ExpressionWrapper, F, QuerySet, Sum
from django.db.models.functions import Coalesce
from rest_framework.exceptions import NotFound

from clinic_core.common.money import ZERO
from clinic_core.inventory.models import MedicineGroup, Sale, StockBatch, StockItem, Supplier


def items_filtered() -> QuerySet[StockItem]:
    return StockItem.objects.select_related("group").order_by("generic_name", "brand_name")


def get_item(*, item_id: UUID) -> StockItem:
    try:
        return items_filtered().get(id=item_id)
    except StockItem.DoesNotExist:
        raise NotFound("Stock item not found.")


def groups_filtered() -> QuerySet[MedicineGroup]:
    return MedicineGroup.objects.order_by("name")


def suppliers_filtered() -> QuerySet[Supplier]:
    return Supplier.objects.order_by("name")


def batches_filtered() -> QuerySet[StockBatch]:
    return StockBatch.objects.select_related("item", "supplier").order_by("received_date", "created_at")


def sales_filtered() -> QuerySet[Sale]:
    return (
        Sale.objects.select_related("patient", "item")
        .prefetch_related("lines")
        .order_by("-sale_date", "-created_at")
    )


def get_sale(*, sale_id: UUID) -> Sale:
    try:
        return sales_filtered().get(id=sale_id)
    except Sale.DoesNotExist:
        raise NotFound("Sale not found.")


@dataclass(frozen=True)
class InventoryStats:
    total_items: int
    low_stock: int
    out_of_stock: int
    stock_value: Decimal
    sales_total: Decimal
    sales_count: int
    purchases_total: Decimal
    date_from: date | None = None
    date_to: date | None = None


def _money_sum(expr):
    return Coalesce(Sum(expr), ZERO, output_field=DecimalField(max_digits=14, decimal_places=2))


def inventory_stats(*, date_from: date | None = None, date_to: date | None = None) -> InventoryStats:
    """
    Stock value is remaining units at their batch purchase price.
    Sales and purchases are restricted to the optional date range.
    """
    items = StockItem.objects.filter(is_active=True)

    remaining_value = ExpressionWrapper(
        F("remaining_qty") * F("unit_price"),
        output_field=DecimalField(max_digits=14, decimal_places=2),
    )
    stock_value = StockBatch.objects.filter(remaining_qty__gt=0).aggregate(v=_money_sum(remaining_value))["v"]

    sales = Sale.objects.all()
    purchases = StockBatch.objects.all()
    if date_from:
        sales = sales.filter(sale_date__gte=date_from)
        purchases = purchases.filter(received_date__gte=date_from)
    if date_to:
        sales = sales.filter(sale_date__lte=date_to)
        purchases = purchases.filter(received_date__lte=date_to)

    sales_agg = sales.aggregate(total=_money_sum("total_amount"))

    return InventoryStats(
        total_items=items.count(),
        low_stock=items.filter(current_stock__gt=0, current_stock__lte=F("low_stock_threshold")).count(),
        out_of_stock=items.filter(current_stock=0).count(),
        stock_value=stock_value,
        sales_total=sales_agg["total"],
        sales_count=sales.count(),
        purchases_total=purchases.aggregate(total=_money_sum("total_amount"))["total"],
        date_from=date_from,
        date_to=date_to,
    )
