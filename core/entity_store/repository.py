"""
FieldOps Entity Store — Django ORM Implementation
===================================================
DB-backed Entity Store. Rows are converted to the immutable
core.domain records at the boundary; nothing above this module
sees a model instance.

record_stock_usage() commits the usage row and the stock decrement
in one transaction.atomic() block with the item row locked, so the
ORM store never produces a dangling usage record.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

from django.db import DatabaseError, transaction
from django.db.models import Q

from core.domain import (
    Customer,
    CustomerType,
    EntityKind,
    InventoryItem,
    Invoice,
    Job,
    JobPriority,
    JobStatus,
    LineItem,
    PaymentStatus,
    StockUsageRecord,
    Technician,
    TechnicianStatus,
)
from core.entity_store import models as orm
from core.entity_store.contracts import kind_of
from core.entity_store.errors import (
    CompoundWriteFailure,
    EntityNotFound,
    InsufficientStock,
    InvalidEntity,
)
from core.time import Clock, SystemClock

logger = logging.getLogger("fieldops.store")


# ══════════════════════════════════════════════════════════════
# ROW ↔ RECORD CONVERSION
# ══════════════════════════════════════════════════════════════

def _customer_from_row(row: orm.Customer) -> Customer:
    return Customer(
        id=row.id,
        name=row.name,
        company=row.company,
        email=row.email,
        phone=row.phone,
        address=row.address,
        customer_type=CustomerType(row.customer_type),
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _customer_fields(c: Customer) -> Dict[str, Any]:
    return {
        "name": c.name,
        "company": c.company,
        "email": c.email,
        "phone": c.phone,
        "address": c.address,
        "customer_type": c.customer_type.value,
        "notes": c.notes,
    }


def _technician_from_row(row: orm.Technician) -> Technician:
    return Technician(
        id=row.id,
        name=row.name,
        email=row.email,
        phone=row.phone,
        specialization=row.specialization,
        skills=tuple(row.skills or ()),
        status=TechnicianStatus(row.status),
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _technician_fields(t: Technician) -> Dict[str, Any]:
    return {
        "name": t.name,
        "email": t.email,
        "phone": t.phone,
        "specialization": t.specialization,
        "skills": list(t.skills),
        "status": t.status.value,
        "notes": t.notes,
    }


def _job_from_row(row: orm.Job) -> Job:
    return Job(
        id=row.id,
        title=row.title,
        description=row.description,
        customer_id=row.customer_id,
        assigned_technician=row.assigned_technician,
        status=JobStatus(row.status),
        priority=JobPriority(row.priority),
        scheduled_date=row.scheduled_date,
        location=row.location,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _job_fields(j: Job) -> Dict[str, Any]:
    return {
        "title": j.title,
        "description": j.description,
        "customer_id": j.customer_id,
        "assigned_technician": j.assigned_technician,
        "status": j.status.value,
        "priority": j.priority.value,
        "scheduled_date": j.scheduled_date,
        "location": j.location,
        "notes": j.notes,
    }


def _invoice_from_row(row: orm.Invoice) -> Invoice:
    return Invoice(
        id=row.id,
        invoice_number=row.invoice_number,
        customer_id=row.customer_id,
        job_id=row.job_id,
        issue_date=row.issue_date,
        due_date=row.due_date,
        line_items=tuple(
            LineItem(
                description=li["description"],
                quantity=Decimal(li["quantity"]),
                unit_price=Decimal(li["unit_price"]),
            )
            for li in row.line_items or ()
        ),
        subtotal=row.subtotal,
        tax_rate=row.tax_rate,
        total=row.total,
        payment_status=PaymentStatus(row.payment_status),
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _invoice_fields(i: Invoice) -> Dict[str, Any]:
    return {
        "invoice_number": i.invoice_number,
        "customer_id": i.customer_id,
        "job_id": i.job_id,
        "issue_date": i.issue_date,
        "due_date": i.due_date,
        "line_items": [
            {
                "description": li.description,
                "quantity": str(li.quantity),
                "unit_price": str(li.unit_price),
            }
            for li in i.line_items
        ],
        "subtotal": i.subtotal,
        "tax_rate": i.tax_rate,
        "total": i.total,
        "payment_status": i.payment_status.value,
        "notes": i.notes,
    }


def _item_from_row(row: orm.InventoryItem) -> InventoryItem:
    return InventoryItem(
        id=row.id,
        sku=row.sku,
        name=row.name,
        category=row.category,
        quantity_in_stock=row.quantity_in_stock,
        minimum_stock_threshold=row.minimum_stock_threshold,
        unit_cost=row.unit_cost,
        supplier=row.supplier,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _item_fields(i: InventoryItem) -> Dict[str, Any]:
    return {
        "sku": i.sku,
        "name": i.name,
        "category": i.category,
        "quantity_in_stock": i.quantity_in_stock,
        "minimum_stock_threshold": i.minimum_stock_threshold,
        "unit_cost": i.unit_cost,
        "supplier": i.supplier,
        "notes": i.notes,
    }


def _usage_from_row(row: orm.StockUsageRecord) -> StockUsageRecord:
    return StockUsageRecord(
        id=row.id,
        item_id=row.item_id,
        job_id=row.job_id,
        quantity_used=row.quantity_used,
        used_at=row.used_at,
        applied=row.applied,
    )


_Mapping = Tuple[Any, Callable[[Any], Any], Optional[Callable[[Any], Dict[str, Any]]]]

_MAPPINGS: Dict[EntityKind, _Mapping] = {
    EntityKind.CUSTOMER: (orm.Customer, _customer_from_row, _customer_fields),
    EntityKind.TECHNICIAN: (orm.Technician, _technician_from_row, _technician_fields),
    EntityKind.JOB: (orm.Job, _job_from_row, _job_fields),
    EntityKind.INVOICE: (orm.Invoice, _invoice_from_row, _invoice_fields),
    EntityKind.INVENTORY_ITEM: (orm.InventoryItem, _item_from_row, _item_fields),
    EntityKind.STOCK_USAGE: (orm.StockUsageRecord, _usage_from_row, None),
}


# ══════════════════════════════════════════════════════════════
# DJANGO ENTITY STORE
# ══════════════════════════════════════════════════════════════

class DjangoEntityStore:
    """Entity Store backed by the core_entity_store tables."""

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock or SystemClock()

    def _rows(self, kind: EntityKind, **lookup: Any) -> List[Any]:
        model, from_row, _ = _MAPPINGS[kind]
        queryset = model.objects.filter(**lookup) if lookup else model.objects.all()
        return [from_row(row) for row in queryset.order_by("id")]

    # ── list-all snapshots ────────────────────────────────────

    def list_customers(self) -> List[Customer]:
        return self._rows(EntityKind.CUSTOMER)

    def list_technicians(self) -> List[Technician]:
        return self._rows(EntityKind.TECHNICIAN)

    def list_jobs(self) -> List[Job]:
        return self._rows(EntityKind.JOB)

    def list_invoices(self) -> List[Invoice]:
        return self._rows(EntityKind.INVOICE)

    def list_inventory_items(self) -> List[InventoryItem]:
        return self._rows(EntityKind.INVENTORY_ITEM)

    def list_stock_usage(self) -> List[StockUsageRecord]:
        return self._rows(EntityKind.STOCK_USAGE)

    def get(self, kind: EntityKind, entity_id: int) -> Optional[Any]:
        model, from_row, _ = _MAPPINGS[kind]
        row = model.objects.filter(pk=entity_id).first()
        return from_row(row) if row is not None else None

    # ── filtered reads ────────────────────────────────────────

    def jobs_by_status(self, status: JobStatus) -> List[Job]:
        return self._rows(EntityKind.JOB, status=status.value)

    def jobs_by_priority(self, priority: JobPriority) -> List[Job]:
        return self._rows(EntityKind.JOB, priority=priority.value)

    def jobs_by_customer(self, customer_id: int) -> List[Job]:
        return self._rows(EntityKind.JOB, customer_id=customer_id)

    def jobs_by_technician(self, technician_id: int) -> List[Job]:
        return self._rows(EntityKind.JOB, assigned_technician=technician_id)

    def jobs_by_date_range(self, start: datetime, end: datetime) -> List[Job]:
        return self._rows(
            EntityKind.JOB,
            scheduled_date__gte=start,
            scheduled_date__lte=end,
        )

    def invoices_by_customer(self, customer_id: int) -> List[Invoice]:
        return self._rows(EntityKind.INVOICE, customer_id=customer_id)

    def invoices_by_status(self, status: PaymentStatus) -> List[Invoice]:
        return self._rows(EntityKind.INVOICE, payment_status=status.value)

    def search_customers(self, text: str) -> List[Customer]:
        needle = text.strip()
        if not needle:
            return self.list_customers()
        return [
            _customer_from_row(row)
            for row in orm.Customer.objects.filter(
                Q(name__icontains=needle)
                | Q(company__icontains=needle)
                | Q(email__icontains=needle)
            ).order_by("id")
        ]

    def stock_usage_by_job(self, job_id: int) -> List[StockUsageRecord]:
        return self._rows(EntityKind.STOCK_USAGE, job_id=job_id)

    # ── writes ────────────────────────────────────────────────

    def _check_references(self, kind: EntityKind, entity: Any) -> None:
        if kind == EntityKind.JOB:
            if not orm.Customer.objects.filter(pk=entity.customer_id).exists():
                raise EntityNotFound(EntityKind.CUSTOMER, entity.customer_id)

    def create(self, entity: Any) -> Any:
        kind = kind_of(entity)
        model, from_row, to_fields = _MAPPINGS[kind]
        if to_fields is None:
            raise InvalidEntity(
                kind, "usage records are created through record_stock_usage()"
            )
        now = self._clock.now_utc()
        with transaction.atomic():
            self._check_references(kind, entity)
            row = model.objects.create(
                created_at=now, updated_at=now, **to_fields(entity)
            )
        logger.info(f"Created {kind.value} #{row.id}")
        return from_row(row)

    def update(self, entity: Any) -> Any:
        kind = kind_of(entity)
        model, from_row, to_fields = _MAPPINGS[kind]
        if to_fields is None:
            raise InvalidEntity(kind, "usage records are immutable")
        with transaction.atomic():
            row = model.objects.select_for_update().filter(pk=entity.id).first()
            if row is None:
                raise EntityNotFound(kind, entity.id)
            self._check_references(kind, entity)
            for field_name, value in to_fields(entity).items():
                setattr(row, field_name, value)
            row.updated_at = self._clock.now_utc()
            row.save()
        logger.info(f"Updated {kind.value} #{entity.id}")
        return from_row(row)

    def delete(self, kind: EntityKind, entity_id: int) -> None:
        model, _, _ = _MAPPINGS[kind]
        deleted, _ = model.objects.filter(pk=entity_id).delete()
        if not deleted:
            raise EntityNotFound(kind, entity_id)
        logger.info(f"Deleted {kind.value} #{entity_id}")

    def mark_invoice_paid(self, invoice_id: int) -> Invoice:
        updated = orm.Invoice.objects.filter(pk=invoice_id).update(
            payment_status=PaymentStatus.PAID.value,
            updated_at=self._clock.now_utc(),
        )
        if not updated:
            raise EntityNotFound(EntityKind.INVOICE, invoice_id)
        return self.get(EntityKind.INVOICE, invoice_id)

    def deactivate_technician(self, technician_id: int) -> Technician:
        updated = orm.Technician.objects.filter(pk=technician_id).update(
            status=TechnicianStatus.INACTIVE.value,
            updated_at=self._clock.now_utc(),
        )
        if not updated:
            raise EntityNotFound(EntityKind.TECHNICIAN, technician_id)
        return self.get(EntityKind.TECHNICIAN, technician_id)

    # ── stock usage (compound write) ──────────────────────────

    def record_stock_usage(
        self,
        item_id: int,
        job_id: int,
        quantity_used: int,
        used_at: Optional[datetime] = None,
    ) -> StockUsageRecord:
        if quantity_used <= 0:
            raise InvalidEntity(
                EntityKind.STOCK_USAGE,
                f"quantity_used must be positive, got {quantity_used}",
            )
        now = self._clock.now_utc()
        try:
            with transaction.atomic():
                item = (
                    orm.InventoryItem.objects.select_for_update()
                    .filter(pk=item_id)
                    .first()
                )
                if item is None:
                    raise EntityNotFound(EntityKind.INVENTORY_ITEM, item_id)
                if not orm.Job.objects.filter(pk=job_id).exists():
                    raise EntityNotFound(EntityKind.JOB, job_id)
                if item.quantity_in_stock < quantity_used:
                    raise InsufficientStock(
                        item_id, quantity_used, item.quantity_in_stock
                    )

                item.quantity_in_stock -= quantity_used
                item.updated_at = now
                item.save(update_fields=["quantity_in_stock", "updated_at"])
                row = orm.StockUsageRecord.objects.create(
                    item_id=item_id,
                    job_id=job_id,
                    quantity_used=quantity_used,
                    used_at=used_at or now,
                    applied=True,
                )
        except DatabaseError as exc:
            # Rolled back as a unit: nothing was written.
            raise CompoundWriteFailure(None, item_id, exc) from exc

        logger.info(
            f"Recorded usage #{row.id}: {quantity_used} x item #{item_id} "
            f"on job #{job_id}"
        )
        return _usage_from_row(row)

    def apply_pending_usage(self, usage_id: int) -> StockUsageRecord:
        """Apply the missing decrement of a usage row left with applied=False."""
        with transaction.atomic():
            row = (
                orm.StockUsageRecord.objects.select_for_update()
                .filter(pk=usage_id)
                .first()
            )
            if row is None:
                raise EntityNotFound(EntityKind.STOCK_USAGE, usage_id)
            if row.applied:
                return _usage_from_row(row)
            item = (
                orm.InventoryItem.objects.select_for_update()
                .filter(pk=row.item_id)
                .first()
            )
            if item is None:
                raise EntityNotFound(EntityKind.INVENTORY_ITEM, row.item_id)
            item.quantity_in_stock -= row.quantity_used
            item.updated_at = self._clock.now_utc()
            item.save(update_fields=["quantity_in_stock", "updated_at"])
            row.applied = True
            row.save(update_fields=["applied"])
        return _usage_from_row(row)
