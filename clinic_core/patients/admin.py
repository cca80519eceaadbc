from django.contrib import admin

from clinic_core.patients.models import Hospital, Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("full_name", "gender", "phone_number", "hospital", "created_at")
    search_fields = ("full_name", "phone_number", "email", "guardian_name")
    readonly_fields = ("created_at", "updated_at")
    ordering = ("-created_at",)


@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "phone_number", "is_active")
    search_fields = ("name",)
    ordering = ("name",)
