from __future__ import annotations

from django.apps import AppConfig


class PathologyConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "clinic_core.pathology"
