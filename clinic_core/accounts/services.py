# clinic_core/accounts/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from django.db import IntegrityError, transaction
from django.db.models import F, Sum

from clinic_core.accounts.models import Account
from clinic_core.billing.models import Charge, PaymentAllocation
from clinic_core.cash.models import CashMovement, MovementType
from clinic_core.common.money import ZERO, to_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reconciliation:
    patient_id: UUID
    stored_charges: Decimal
    stored_paid: Decimal
    stored_due: Decimal
    expected_charges: Decimal
    expected_paid: Decimal
    fixed: bool = False

    @property
    def expected_due(self) -> Decimal:
        return self.expected_charges - self.expected_paid

    @property
    def is_consistent(self) -> bool:
        return (
            self.stored_charges == self.expected_charges
            and self.stored_paid == self.expected_paid
            and self.stored_due == self.expected_due
        )

    def as_dict(self) -> dict:
        return {
            "patient_id": str(self.patient_id),
            "stored": {
                "total_charges": self.stored_charges,
                "total_paid": self.stored_paid,
                "total_due": self.stored_due,
            },
            "expected": {
                "total_charges": self.expected_charges,
                "total_paid": self.expected_paid,
                "total_due": self.expected_due,
            },
            "is_consistent": self.is_consistent,
            "fixed": self.fixed,
        }


class AccountLedger:
    @staticmethod
    def ensure_account(*, patient_id: UUID) -> Account:
        account = Account.objects.filter(patient_id=patient_id).first()
        if account is not None:
            return account
        try:
            with transaction.atomic():
                return Account.objects.create(patient_id=patient_id)
        except IntegrityError:
            # created concurrently
            return Account.objects.get(patient_id=patient_id)

    @staticmethod
    def apply_deltas(*, patient_id: UUID, charge_delta=ZERO, paid_delta=ZERO) -> None:
        """
        One UPDATE moving all three totals together.
        """
        charge_delta = to_money(charge_delta, "charge_delta")
        paid_delta = to_money(paid_delta, "paid_delta")
        if charge_delta == ZERO and paid_delta == ZERO:
            return

        AccountLedger.ensure_account(patient_id=patient_id)
        Account.objects.filter(patient_id=patient_id).update(
            total_charges=F("total_charges") + charge_delta,
            total_paid=F("total_paid") + paid_delta,
            total_due=F("total_due") + (charge_delta - paid_delta),
        )

    @staticmethod
    def apply_charge_delta(*, patient_id: UUID, delta) -> None:
        AccountLedger.apply_deltas(patient_id=patient_id, charge_delta=delta)

    @staticmethod
    def apply_payment_delta(*, patient_id: UUID, delta) -> None:
        AccountLedger.apply_deltas(patient_id=patient_id, paid_delta=delta)

    @staticmethod
    def expected_totals(*, patient_id: UUID) -> tuple[Decimal, Decimal]:
        charges = Charge.objects.filter(patient_id=patient_id).aggregate(s=Sum("final_amount"))["s"] or ZERO
        collected = (
            PaymentAllocation.objects.filter(charge__patient_id=patient_id)
            .aggregate(s=Sum("allocated_amount"))["s"]
            or ZERO
        )
        refunded = (
            CashMovement.objects.filter(movement_type=MovementType.REFUND, charge__patient_id=patient_id)
            .aggregate(s=Sum("amount"))["s"]
            or ZERO
        )
        return to_money(charges), to_money(collected - refunded)

    @staticmethod
    @transaction.atomic
    def reconcile(*, patient_id: UUID, fix: bool = False) -> Reconciliation:
        """
        Recomputes totals from charges, allocations and refunds and compares them
        with the stored running totals. fix=True overwrites the stored values.
        """
        if fix:
            AccountLedger.ensure_account(patient_id=patient_id)
            account = Account.objects.select_for_update().get(patient_id=patient_id)
        else:
            # read-only: a patient without an account row reports zero stored totals
            account = Account.objects.filter(patient_id=patient_id).first() or Account(patient_id=patient_id)

        expected_charges, expected_paid = AccountLedger.expected_totals(patient_id=patient_id)
        report = Reconciliation(
            patient_id=patient_id,
            stored_charges=account.total_charges,
            stored_paid=account.total_paid,
            stored_due=account.total_due,
            expected_charges=expected_charges,
            expected_paid=expected_paid,
        )
        if report.is_consistent or not fix:
            if not report.is_consistent:
                logger.warning("Account %s drifted: %s", patient_id, report.as_dict())
            return report

        Account.objects.filter(id=account.id).update(
            total_charges=expected_charges,
            total_paid=expected_paid,
            total_due=expected_charges - expected_paid,
        )
        logger.warning("Account %s rewritten from ledger: %s", patient_id, report.as_dict())
        return Reconciliation(
            patient_id=patient_id,
            stored_charges=account.total_charges,
            stored_paid=account.total_paid,
            stored_due=account.total_due,
            expected_charges=expected_charges,
            expected_paid=expected_paid,
            fixed=True,
        )
