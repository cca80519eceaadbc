from django.contrib import admin

from clinic_core.accounts.models import Account


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ("patient", "total_charges", "total_paid", "total_due", "updated_at")
    search_fields = ("patient__full_name", "patient__phone_number")
    readonly_fields = ("total_charges", "total_paid", "total_due", "created_at", "updated_at")
