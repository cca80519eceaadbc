# clinic_core/inventory/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, NamedTuple
from uuid import UUID

from django.db import IntegrityError, transaction
from django.db.models import F, Min
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from clinic_core.audit.services import AuditContext, AuditService
from clinic_core.billing.orchestrator import LedgerOrchestrator, Settlement
from clinic_core.common.api.exceptions import ConflictError, DateOutOfRange, InsufficientStock
from clinic_core.common.money import ZERO, Totals, non_negative, to_money
from clinic_core.common.numbering import MEDICINE_SALE_PREFIX, next_registration_number
from clinic_core.common.transactions import atomic_with_retry
from clinic_core.inventory.models import MedicineGroup, Sale, SaleLine, StockBatch, StockItem, Supplier
from clinic_core.patients.services import HospitalData, PatientData, PatientService

logger = logging.getLogger(__name__)


class Consumption(NamedTuple):
    batch: StockBatch
    quantity: int
    unit_price: Decimal


def _positive_int(value, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError({field_name: "A whole number is required."})
    try:
        n = int(str(value))
    except (TypeError, ValueError):
        raise ValidationError({field_name: "A whole number is required."})
    if n <= 0:
        raise ValidationError({field_name: "Must be a whole number > 0."})
    return n


def _named(model, name: str):
    """
    Case-insensitive find-or-create for small reference tables.
    """
    name = (name or "").strip()
    if not name:
        return None
    obj = model.objects.filter(name__iexact=name).first()
    if obj is not None:
        return obj
    try:
        with transaction.atomic():
            return model.objects.create(name=name)
    except IntegrityError:
        return model.objects.get(name__iexact=name)


class ReferenceDataService:
    """
    Explicit creation of medicine groups and suppliers. Unlike the implicit
    find-or-create used by stock intake, a duplicate name is a conflict.
    """

    @staticmethod
    def _create_unique(model, label: str, name: str, **fields):
        name = (name or "").strip()
        if not name:
            raise ValidationError({"name": "This field is required."})
        if model.objects.filter(name__iexact=name).exists():
            raise ConflictError(f"A {label} named '{name}' already exists.")
        try:
            with transaction.atomic():
                return model.objects.create(name=name, **fields)
        except IntegrityError:
            raise ConflictError(f"A {label} named '{name}' already exists.")

    @staticmethod
    @transaction.atomic
    def create_group(
        *, name: str, actor_user_id: int | None = None, context: AuditContext | None = None
    ) -> MedicineGroup:
        group = ReferenceDataService._create_unique(MedicineGroup, "medicine group", name)
        AuditService.created(
            event_code="medicine_group.created",
            entity_type="MedicineGroup",
            entity_id=group.id,
            actor_user_id=actor_user_id,
            description=f"Added medicine group {group.name}",
            context=context,
        )
        return group

    @staticmethod
    @transaction.atomic
    def create_supplier(
        *,
        name: str,
        contact_person: str = "",
        phone_number: str = "",
        address: str = "",
        actor_user_id: int | None = None,
        context: AuditContext | None = None,
    ) -> Supplier:
        supplier = ReferenceDataService._create_unique(
            Supplier,
            "supplier",
            name,
            contact_person=contact_person or "",
            phone_number=phone_number or "",
            address=address or "",
        )
        AuditService.created(
            event_code="supplier.created",
            entity_type="Supplier",
            entity_id=supplier.id,
            actor_user_id=actor_user_id,
            description=f"Added supplier {supplier.name}",
            context=context,
        )
        return supplier


class StockItemService:
    @staticmethod
    @transaction.atomic
    def create(
        *,
        generic_name: str,
        brand_name: str = "",
        group_name: str = "",
        strength: str = "",
        dosage_form: str = "",
        low_stock_threshold: int | None = None,
        actor_user_id: int | None = None,
        context: AuditContext | None = None,
    ) -> StockItem:
        if not (generic_name or "").strip():
            raise ValidationError({"generic_name": "This field is required."})

        item = StockItem(
            generic_name=generic_name.strip(),
            brand_name=(brand_name or "").strip(),
            group=_named(MedicineGroup, group_name),
            strength=strength or "",
            dosage_form=dosage_form or "",
        )
        if low_stock_threshold is not None:
            item.low_stock_threshold = low_stock_threshold
        item.save()

        AuditService.created(
            event_code="stock_item.created",
            entity_type="StockItem",
            entity_id=item.id,
            actor_user_id=actor_user_id,
            description=f"Added medicine {item.display_name}",
            context=context,
        )
        return item


class StockLedger:
    @staticmethod
    def first_intake_date(*, item_id: UUID) -> date | None:
        return StockBatch.objects.filter(item_id=item_id).aggregate(d=Min("received_date"))["d"]

    @staticmethod
    def lock_item(item_id: UUID) -> StockItem:
        try:
            return StockItem.objects.select_for_update().get(id=item_id)
        except StockItem.DoesNotExist:
            raise NotFound("Stock item not found.")

    @staticmethod
    @atomic_with_retry
    def receive(
        *,
        item_id: UUID,
        quantity,
        unit_price,
        received_date: date | None = None,
        expiry_date: date | None = None,
        supplier_name: str = "",
        invoice_number: str = "",
        batch_number: str = "",
        operator_id: int | None = None,
        context: AuditContext | None = None,
    ) -> StockBatch:
        """
        Records a purchase as a new batch; batches are never merged.
        """
        quantity = _positive_int(quantity, "quantity")
        unit_price = non_negative(unit_price, "unit_price")
        received_date = received_date or timezone.localdate()
        if received_date > timezone.localdate():
            raise DateOutOfRange("Received date cannot be in the future.")
        if expiry_date and expiry_date < received_date:
            raise ValidationError({"expiry_date": "Expiry date precedes the received date."})

        item = StockLedger.lock_item(item_id)

        batch = StockBatch.objects.create(
            item=item,
            supplier=_named(Supplier, supplier_name),
            invoice_number=invoice_number or "",
            batch_number=batch_number or "",
            quantity=quantity,
            remaining_qty=quantity,
            unit_price=unit_price,
            total_amount=to_money(unit_price * quantity),
            received_date=received_date,
            expiry_date=expiry_date,
            received_by_id=operator_id,
        )
        StockItem.objects.filter(id=item.id).update(current_stock=F("current_stock") + quantity)

        AuditService.created(
            event_code="stock.received",
            entity_type="StockBatch",
            entity_id=batch.id,
            actor_user_id=operator_id,
            description=f"Received {quantity} x {item.display_name} @ {unit_price}",
            metadata={
                "item_id": str(item.id),
                "quantity": quantity,
                "unit_price": str(unit_price),
                "total_amount": str(batch.total_amount),
                "supplier": batch.supplier.name if batch.supplier else None,
            },
            context=context,
        )
        return batch

    @staticmethod
    def allocate(*, item_id: UUID, quantity: int, as_of_date: date) -> list[Consumption]:
        """
        FIFO plan: oldest received batch first (received_date, then created_at).

        Locks the item row and its open batches but writes nothing, so callers
        can price and validate the whole request before touching stock. The
        locks are held until the caller's transaction commits.
        """
        quantity = _positive_int(quantity, "quantity")
        StockLedger.lock_item(item_id)

        first = StockLedger.first_intake_date(item_id=item_id)
        if first is None or as_of_date < first:
            raise DateOutOfRange("Date precedes the first stock intake for this item.")

        batches = list(
            StockBatch.objects.select_for_update()
            .filter(item_id=item_id, remaining_qty__gt=0)
            .order_by("received_date", "created_at")
        )
        available = sum(b.remaining_qty for b in batches)
        if available < quantity:
            raise InsufficientStock(f"Requested {quantity}, only {available} in stock.")

        need = quantity
        plan: list[Consumption] = []
        for batch in batches:
            if need <= 0:
                break
            take = min(need, batch.remaining_qty)
            plan.append(Consumption(batch=batch, quantity=take, unit_price=batch.unit_price))
            need -= take
        return plan

    @staticmethod
    def take(*, item_id: UUID, plan: list[Consumption]) -> None:
        """Applies an allocate() plan: per-batch decrements, one item decrement."""
        for c in plan:
            StockBatch.objects.filter(id=c.batch.id).update(remaining_qty=F("remaining_qty") - c.quantity)
            c.batch.remaining_qty -= c.quantity
        StockItem.objects.filter(id=item_id).update(current_stock=F("current_stock") - sum(c.quantity for c in plan))

    @staticmethod
    def consume(*, item_id: UUID, quantity: int, as_of_date: date) -> list[Consumption]:
        """
        Caller owns the transaction. Nothing is written unless the whole
        quantity is available.
        """
        plan = StockLedger.allocate(item_id=item_id, quantity=quantity, as_of_date=as_of_date)
        StockLedger.take(item_id=item_id, plan=plan)
        return plan

    @staticmethod
    def restore(*, consumptions: Iterable[tuple[UUID, int]]) -> int:
        """
        Gives (batch_id, quantity) pairs back to their batches, never above the
        batch's original quantity. Returns the units restored.
        """
        per_item: dict[UUID, int] = {}
        for batch_id, qty in consumptions:
            batch = StockBatch.objects.select_for_update().get(id=batch_id)
            give = min(int(qty), batch.quantity - batch.remaining_qty)
            if give <= 0:
                continue
            StockBatch.objects.filter(id=batch.id).update(remaining_qty=F("remaining_qty") + give)
            per_item[batch.item_id] = per_item.get(batch.item_id, 0) + give

        for item_id, qty in per_item.items():
            StockItem.objects.filter(id=item_id).update(current_stock=F("current_stock") + qty)
        return sum(per_item.values())


@dataclass(frozen=True)
class SaleResult:
    sale: Sale
    settlement: Settlement
    consumptions: list[Consumption]


class SaleService:
    @staticmethod
    @atomic_with_retry
    def sell(
        *,
        operator_id: int,
        patient: dict,
        item_id: UUID,
        quantity,
        hospital: dict | None = None,
        unit_price_override=None,
        sale_date: date | None = None,
        paid_amount=None,
        remarks: str = "",
        shift_id: UUID | None = None,
        context: AuditContext | None = None,
    ) -> SaleResult:
        """
        Counter sale: FIFO stock consumption plus the same charge/payment path as
        every other billable record. paid_amount defaults to the full total.
        """
        patient_data = PatientData.from_dict(patient)
        hospital_data = HospitalData.from_dict(hospital) if hospital else None
        PatientService.validate(patient_data, hospital_data)

        quantity = _positive_int(quantity, "quantity")
        override = None if unit_price_override in (None, "") else non_negative(unit_price_override, "unit_price_override")
        if paid_amount not in (None, ""):
            non_negative(paid_amount, "paid_amount")

        sale_date = sale_date or timezone.localdate()
        if sale_date > timezone.localdate():
            raise DateOutOfRange("Sale date cannot be in the future.")

        try:
            item = StockItem.objects.get(id=item_id)
        except StockItem.DoesNotExist:
            raise NotFound("Stock item not found.")
        if not item.is_active:
            raise ValidationError({"item": "Item is not active."})

        first = StockLedger.first_intake_date(item_id=item.id)
        if first is None or sale_date < first:
            raise DateOutOfRange("Sale date precedes the first stock intake for this item.")
        if item.current_stock < quantity:
            raise InsufficientStock(f"Requested {quantity}, only {item.current_stock} in stock.")

        consumptions = StockLedger.allocate(item_id=item.id, quantity=quantity, as_of_date=sale_date)

        lines = []
        for c in consumptions:
            price = override if override is not None else c.unit_price
            lines.append((c, price, to_money(price * c.quantity)))
        total = sum((line_total for _, _, line_total in lines), ZERO)
        totals = Totals(subtotal=total, discount_amount=ZERO, grand_total=total)
        paid = LedgerOrchestrator.check_paid(
            paid_amount=total if paid_amount in (None, "") else paid_amount,
            grand_total=total,
        )

        # writes
        StockLedger.take(item_id=item.id, plan=consumptions)
        upserted = PatientService.upsert(patient_data=patient_data, hospital_data=hospital_data, actor_user_id=operator_id)
        sale = Sale.objects.create(
            patient=upserted.patient,
            item=item,
            sale_number=next_registration_number(MEDICINE_SALE_PREFIX, on=sale_date),
            quantity=quantity,
            unit_price_override=override,
            total_amount=total,
            paid_amount=paid,
            due_amount=total - paid,
            sale_date=sale_date,
            remarks=(remarks or "")[:255],
            sold_by_id=operator_id,
        )
        SaleLine.objects.bulk_create(
            [
                SaleLine(sale=sale, batch=c.batch, quantity=c.quantity, unit_price=price, line_total=line_total)
                for c, price, line_total in lines
            ]
        )

        settlement = LedgerOrchestrator.post_new_charge(
            record=sale,
            patient_id=sale.patient_id,
            service_name=f"Medicine {item.display_name} x{quantity}",
            department_code=MEDICINE_SALE_PREFIX,
            totals=totals,
            paid_amount=paid,
            operator_id=operator_id,
            shift_id=shift_id,
        )

        description = f"Sold {quantity} x {item.display_name} for {total}"
        if len(consumptions) > 1:
            description += f" from {len(consumptions)} batches"
        AuditService.created(
            event_code="medicine_sale.created",
            entity_type="Sale",
            entity_id=sale.id,
            actor_user_id=operator_id,
            description=description,
            metadata={
                "sale_number": sale.sale_number,
                "item_id": str(item.id),
                "quantity": quantity,
                "total_amount": str(total),
                "paid_amount": str(paid),
                "batches": [
                    {"batch_id": str(c.batch.id), "quantity": c.quantity, "unit_price": str(price)}
                    for c, price, _ in lines
                ],
                "unit_price_override": str(override) if override is not None else None,
            },
            context=context,
        )
        return SaleResult(sale=sale, settlement=settlement, consumptions=consumptions)

    @staticmethod
    @atomic_with_retry
    def delete(*, operator_id: int | None, sale_id: UUID, context: AuditContext | None = None) -> dict:
        """
        Restocks the consumed batches, then reverses the sale's financials.
        """
        try:
            sale = Sale.objects.select_for_update().get(id=sale_id)
        except Sale.DoesNotExist:
            raise NotFound("Sale not found.")

        StockLedger.lock_item(sale.item_id)
        restored = StockLedger.restore(consumptions=sale.lines.values_list("batch_id", "quantity"))
        logger.info("Sale %s: restocked %s unit(s) of item %s", sale.sale_number, restored, sale.item_id)

        summary = LedgerOrchestrator.reverse(record=sale, entity_type="Sale", operator_id=operator_id, context=context)
        number, sale_pk = sale.sale_number, sale.id
        sale.delete()

        AuditService.deleted(
            event_code="medicine_sale.deleted",
            entity_type="Sale",
            entity_id=sale_pk,
            actor_user_id=operator_id,
            description=f"Deleted sale {number}; {restored} unit(s) restocked",
            metadata={"sale_number": number, "restocked": restored},
            context=context,
        )
        return {**summary, "restocked": restored}
