from django.contrib import admin

from clinic_core.catalog.models import ServiceItem


@admin.register(ServiceItem)
class ServiceItemAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "category", "default_price", "is_active")
    list_filter = ("category", "is_active")
    search_fields = ("code", "name")
    ordering = ("category", "name")
