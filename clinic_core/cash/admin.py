from django.contrib import admin

from clinic_core.cash.models import CashMovement, Shift


class CashMovementInline(admin.TabularInline):
    model = CashMovement
    extra = 0
    can_delete = False
    fields = ("movement_type", "amount", "description", "payment", "charge", "created_at")
    readonly_fields = fields


@admin.register(Shift)
class ShiftAdmin(admin.ModelAdmin):
    list_display = ("operator", "status", "started_at", "ended_at", "system_cash", "closing_cash", "variance")
    list_filter = ("status",)
    readonly_fields = ("system_cash", "total_collected", "total_refunded", "variance", "created_at", "updated_at")
    inlines = [CashMovementInline]
    ordering = ("-started_at",)
