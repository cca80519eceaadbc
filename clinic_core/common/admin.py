from django.contrib import admin

from clinic_core.common.models import RegistrationCounter


@admin.register(RegistrationCounter)
class RegistrationCounterAdmin(admin.ModelAdmin):
    list_display = ("prefix", "year", "last_value", "updated_at")
    search_fields = ("prefix",)
    ordering = ("prefix", "-year")
