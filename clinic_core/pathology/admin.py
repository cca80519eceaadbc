from django.contrib import admin

from clinic_core.pathology.models import PathologyTest


@admin.register(PathologyTest)
class PathologyTestAdmin(admin.ModelAdmin):
    list_display = ("test_number", "patient", "test_date", "grand_total", "paid_amount", "due_amount", "is_completed")
    list_filter = ("is_completed", "test_category")
    search_fields = ("test_number", "patient__full_name")
    readonly_fields = ("test_number", "test_charge", "discount_amount", "grand_total", "paid_amount", "due_amount")
