# clinic_core/accounts/management/commands/reconcile_accounts.py
from __future__ import annotations

from django.core.management.base import BaseCommand

from clinic_core.accounts.services import AccountLedger
from clinic_core.patients.models import Patient


class Command(BaseCommand):
    help = "Compare stored account totals with the charge/payment ledger."

    def add_arguments(self, parser):
        parser.add_argument("--patient", dest="patient_id", default=None, help="Reconcile a single patient (UUID).")
        parser.add_argument("--fix", action="store_true", help="Rewrite drifted totals.")

    def handle(self, *args, **options):
        qs = Patient.objects.all().order_by("created_at")
        if options["patient_id"]:
            qs = qs.filter(id=options["patient_id"])

        checked = drifted = 0
        for patient_id in qs.values_list("id", flat=True).iterator():
            report = AccountLedger.reconcile(patient_id=patient_id, fix=options["fix"])
            checked += 1
            if not report.is_consistent:
                drifted += 1
                self.stdout.write(
                    self.style.WARNING(
                        f"{patient_id}: stored charges={report.stored_charges} paid={report.stored_paid} "
                        f"due={report.stored_due}; expected charges={report.expected_charges} "
                        f"paid={report.expected_paid} due={report.expected_due}"
                        + (" [fixed]" if report.fixed else "")
                    )
                )

        style = self.style.SUCCESS if drifted == 0 else self.style.WARNING
        self.stdout.write(style(f"Checked {checked} account(s), {drifted} drifted."))
