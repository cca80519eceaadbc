from django.contrib import admin

from clinic_core.admissions.models import Admission


@admin.register(Admission)
class AdmissionAdmin(admin.ModelAdmin):
    list_display = ("admission_number", "patient", "department", "status", "grand_total", "paid_amount", "due_amount", "date_admitted")
    list_filter = ("status", "department", "is_discharged")
    search_fields = ("admission_number", "patient__full_name", "patient__phone_number")
    readonly_fields = (
        "admission_number",
        "total_amount",
        "discount_amount",
        "grand_total",
        "paid_amount",
        "due_amount",
        "created_at",
        "updated_at",
    )
    ordering = ("-date_admitted",)
