from django.contrib import admin

from clinic_core.departments.models import Department, Doctor


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "is_active")
    search_fields = ("name", "code")


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ("full_name", "specialization", "department", "is_active")
    list_filter = ("department", "is_active")
    search_fields = ("full_name",)
