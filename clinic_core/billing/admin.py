from django.contrib import admin

from clinic_core.billing.models import Charge, Payment, PaymentAllocation


class PaymentAllocationInline(admin.TabularInline):
    model = PaymentAllocation
    extra = 0
    can_delete = False
    readonly_fields = ("charge", "allocated_amount")


@admin.register(Charge)
class ChargeAdmin(admin.ModelAdmin):
    list_display = ("service_type", "service_name", "patient", "original_amount", "discount_amount", "final_amount", "created_at")
    list_filter = ("service_type",)
    search_fields = ("service_name", "patient__full_name")
    readonly_fields = ("original_amount", "discount_amount", "final_amount", "created_at", "updated_at")


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("receipt_number", "patient", "amount", "method", "collected_by", "received_at")
    list_filter = ("method",)
    search_fields = ("receipt_number", "patient__full_name")
    readonly_fields = ("receipt_number", "amount", "shift", "received_at")
    inlines = [PaymentAllocationInline]
