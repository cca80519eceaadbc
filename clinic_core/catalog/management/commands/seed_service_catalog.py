# clinic_core/catalog/management/commands/seed_service_catalog.py
from __future__ import annotations

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from clinic_core.catalog.models import ServiceCategory
from clinic_core.catalog.services import ServiceItemService

DEFAULT_ITEMS = [
    ("CBC", "Complete Blood Count", ServiceCategory.PATHOLOGY, Decimal("200")),
    ("HB", "Haemoglobin", ServiceCategory.PATHOLOGY, Decimal("200")),
    ("ESR", "Erythrocyte Sedimentation Rate", ServiceCategory.PATHOLOGY, Decimal("150")),
    ("BLOOD-GROUP-RH", "Blood Group & Rh Factor", ServiceCategory.PATHOLOGY, Decimal("100")),
    ("RBS", "Random Blood Sugar", ServiceCategory.PATHOLOGY, Decimal("100")),
    ("FBS", "Fasting Blood Sugar", ServiceCategory.PATHOLOGY, Decimal("100")),
    ("HBA1C", "HbA1c", ServiceCategory.PATHOLOGY, Decimal("1000")),
    ("LIPID-PROFILE", "Lipid Profile", ServiceCategory.PATHOLOGY, Decimal("1000")),
    ("S-CREATININE", "Serum Creatinine", ServiceCategory.PATHOLOGY, Decimal("400")),
    ("SGPT", "SGPT (ALT)", ServiceCategory.PATHOLOGY, Decimal("400")),
    ("TSH", "Thyroid Stimulating Hormone", ServiceCategory.PATHOLOGY, Decimal("900")),
    ("URINE-RE", "Urine Routine Examination", ServiceCategory.PATHOLOGY, Decimal("200")),
    ("CRP", "C-Reactive Protein", ServiceCategory.PATHOLOGY, Decimal("500")),
    ("HBSAG", "HBsAg", ServiceCategory.PATHOLOGY, Decimal("500")),
    ("WIDAL", "Widal Test", ServiceCategory.PATHOLOGY, Decimal("400")),
    ("URINE-PREGNANCY", "Urine Pregnancy Test", ServiceCategory.PATHOLOGY, Decimal("200")),
    ("XRAY-CHEST-PA", "X-Ray Chest P/A View", ServiceCategory.IMAGING, Decimal("500")),
    ("USG-WHOLE-ABDOMEN", "USG of Whole Abdomen", ServiceCategory.IMAGING, Decimal("1000")),
    ("USG-PREGNANCY", "USG of Pregnancy Profile", ServiceCategory.IMAGING, Decimal("800")),
    ("ECG", "Electrocardiogram", ServiceCategory.CARDIOLOGY, Decimal("300")),
]


class Command(BaseCommand):
    help = "Create or refresh the default service price list."

    def add_arguments(self, parser):
        parser.add_argument("--deactivate-missing", action="store_true",
                            help="Deactivate catalog items not in the default list.")

    @transaction.atomic
    def handle(self, *args, **options):
        from clinic_core.catalog.models import ServiceItem

        codes = []
        for code, name, category, price in DEFAULT_ITEMS:
            ServiceItemService.upsert(code=code, name=name, category=category, default_price=price,
                                      department="Pathology" if category == ServiceCategory.PATHOLOGY else "")
            codes.append(code)

        deactivated = 0
        if options["deactivate_missing"]:
            deactivated = ServiceItem.objects.exclude(code__in=codes).update(is_active=False)

        self.stdout.write(self.style.SUCCESS(f"Catalog seeded: {len(codes)} items, {deactivated} deactivated."))
