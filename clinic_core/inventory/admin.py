from django.contrib import admin

from clinic_core.inventory.models import MedicineGroup, Sale, SaleLine, StockBatch, StockItem, Supplier


@admin.register(MedicineGroup)
class MedicineGroupAdmin(admin.ModelAdmin):
    search_fields = ("name",)


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "contact_person", "phone_number", "is_active")
    search_fields = ("name",)


class StockBatchInline(admin.TabularInline):
    model = StockBatch
    extra = 0
    fields = ("received_date", "supplier", "invoice_number", "quantity", "remaining_qty", "unit_price", "expiry_date")
    readonly_fields = fields
    can_delete = False


@admin.register(StockItem)
class StockItemAdmin(admin.ModelAdmin):
    list_display = ("generic_name", "brand_name", "strength", "current_stock", "low_stock_threshold", "is_active")
    list_filter = ("is_active", "group")
    search_fields = ("generic_name", "brand_name")
    readonly_fields = ("current_stock",)
    inlines = [StockBatchInline]


class SaleLineInline(admin.TabularInline):
    model = SaleLine
    extra = 0
    readonly_fields = ("batch", "quantity", "unit_price", "line_total")
    can_delete = False


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ("sale_number", "patient", "item", "quantity", "total_amount", "paid_amount", "due_amount", "sale_date")
    search_fields = ("sale_number", "patient__full_name")
    readonly_fields = ("sale_number", "quantity", "total_amount", "paid_amount", "due_amount")
    inlines = [SaleLineInline]
