"""
FieldOps Entity Store — In-Memory Implementation
==================================================
Dictionary-backed store for tests, seeding and single-process use.

Each single-record write is atomic under one lock. There are no
multi-record transactions: record_stock_usage writes the usage
record first (applied=False), then decrements the item, then flags
the record applied. If the decrement step fails, the dangling
record stays visible and is picked up by stock reconciliation.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from threading import Lock
from typing import Any, Dict, List, Optional

from core.domain import (
    Customer,
    EntityKind,
    InventoryItem,
    Invoice,
    Job,
    JobPriority,
    JobStatus,
    PaymentStatus,
    StockUsageRecord,
    Technician,
    TechnicianStatus,
)
from core.entity_store import filters
from core.entity_store.contracts import kind_of
from core.entity_store.errors import (
    CompoundWriteFailure,
    EntityNotFound,
    InsufficientStock,
    InvalidEntity,
)
from core.time import Clock, SystemClock, TimezoneLike

logger = logging.getLogger("fieldops.store")


class InMemoryEntityStore:
    """
    In-memory Entity Store.

    Snapshots returned by list_* are fresh lists in id order;
    the records themselves are immutable dataclasses.
    """

    def __init__(
        self, clock: Optional[Clock] = None, reference_timezone: TimezoneLike = "UTC"
    ) -> None:
        self._clock = clock or SystemClock()
        self._tz = reference_timezone
        self._lock = Lock()
        self._records: Dict[EntityKind, Dict[int, Any]] = {
            kind: {} for kind in EntityKind
        }
        self._next_id: Dict[EntityKind, int] = {kind: 1 for kind in EntityKind}

    # ── list-all snapshots ────────────────────────────────────

    def _snapshot(self, kind: EntityKind) -> List[Any]:
        with self._lock:
            return list(self._records[kind].values())

    def list_customers(self) -> List[Customer]:
        return self._snapshot(EntityKind.CUSTOMER)

    def list_technicians(self) -> List[Technician]:
        return self._snapshot(EntityKind.TECHNICIAN)

    def list_jobs(self) -> List[Job]:
        return self._snapshot(EntityKind.JOB)

    def list_invoices(self) -> List[Invoice]:
        return self._snapshot(EntityKind.INVOICE)

    def list_inventory_items(self) -> List[InventoryItem]:
        return self._snapshot(EntityKind.INVENTORY_ITEM)

    def list_stock_usage(self) -> List[StockUsageRecord]:
        return self._snapshot(EntityKind.STOCK_USAGE)

    def get(self, kind: EntityKind, entity_id: int) -> Optional[Any]:
        with self._lock:
            return self._records[kind].get(entity_id)

    # ── filtered reads ────────────────────────────────────────

    def jobs_by_status(self, status: JobStatus) -> List[Job]:
        return filters.jobs_with_status(self.list_jobs(), status)

    def jobs_by_priority(self, priority: JobPriority) -> List[Job]:
        return filters.jobs_with_priority(self.list_jobs(), priority)

    def jobs_by_customer(self, customer_id: int) -> List[Job]:
        return filters.jobs_for_customer(self.list_jobs(), customer_id)

    def jobs_by_technician(self, technician_id: int) -> List[Job]:
        return filters.jobs_for_technician(self.list_jobs(), technician_id)

    def jobs_by_date_range(self, start: datetime, end: datetime) -> List[Job]:
        return filters.jobs_scheduled_between(self.list_jobs(), start, end, self._tz)

    def invoices_by_customer(self, customer_id: int) -> List[Invoice]:
        return filters.invoices_for_customer(self.list_invoices(), customer_id)

    def invoices_by_status(self, status: PaymentStatus) -> List[Invoice]:
        return filters.invoices_with_status(self.list_invoices(), status)

    def search_customers(self, text: str) -> List[Customer]:
        return filters.customers_matching(self.list_customers(), text)

    def stock_usage_by_job(self, job_id: int) -> List[StockUsageRecord]:
        return filters.usage_for_job(self.list_stock_usage(), job_id)

    # ── writes ────────────────────────────────────────────────

    def _check_references(self, kind: EntityKind, entity: Any) -> None:
        """Caller holds the lock."""
        if kind == EntityKind.JOB:
            if entity.customer_id not in self._records[EntityKind.CUSTOMER]:
                raise EntityNotFound(EntityKind.CUSTOMER, entity.customer_id)

    def create(self, entity: Any) -> Any:
        kind = kind_of(entity)
        if kind == EntityKind.STOCK_USAGE:
            raise InvalidEntity(
                kind, "usage records are created through record_stock_usage()"
            )
        now = self._clock.now_utc()
        with self._lock:
            self._check_references(kind, entity)
            entity_id = self._next_id[kind]
            self._next_id[kind] += 1
            stored = dataclasses.replace(
                entity, id=entity_id, created_at=now, updated_at=now
            )
            self._records[kind][entity_id] = stored

        logger.info(f"Created {kind.value} #{entity_id}")
        return stored

    def update(self, entity: Any) -> Any:
        kind = kind_of(entity)
        if kind == EntityKind.STOCK_USAGE:
            raise InvalidEntity(kind, "usage records are immutable")
        now = self._clock.now_utc()
        with self._lock:
            existing = self._records[kind].get(entity.id)
            if existing is None:
                raise EntityNotFound(kind, entity.id)
            self._check_references(kind, entity)
            stored = dataclasses.replace(
                entity, created_at=existing.created_at, updated_at=now
            )
            self._records[kind][entity.id] = stored

        logger.info(f"Updated {kind.value} #{entity.id}")
        return stored

    def delete(self, kind: EntityKind, entity_id: int) -> None:
        with self._lock:
            if self._records[kind].pop(entity_id, None) is None:
                raise EntityNotFound(kind, entity_id)
        logger.info(f"Deleted {kind.value} #{entity_id}")

    def mark_invoice_paid(self, invoice_id: int) -> Invoice:
        invoice = self.get(EntityKind.INVOICE, invoice_id)
        if invoice is None:
            raise EntityNotFound(EntityKind.INVOICE, invoice_id)
        return self.update(
            dataclasses.replace(invoice, payment_status=PaymentStatus.PAID)
        )

    def deactivate_technician(self, technician_id: int) -> Technician:
        technician = self.get(EntityKind.TECHNICIAN, technician_id)
        if technician is None:
            raise EntityNotFound(EntityKind.TECHNICIAN, technician_id)
        return self.update(
            dataclasses.replace(technician, status=TechnicianStatus.INACTIVE)
        )

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
        used_at = used_at or self._clock.now_utc()

        with self._lock:
            item = self._records[EntityKind.INVENTORY_ITEM].get(item_id)
            if item is None:
                raise EntityNotFound(EntityKind.INVENTORY_ITEM, item_id)
            if job_id not in self._records[EntityKind.JOB]:
                raise EntityNotFound(EntityKind.JOB, job_id)
            if item.quantity_in_stock < quantity_used:
                raise InsufficientStock(item_id, quantity_used, item.quantity_in_stock)

            usage_id = self._next_id[EntityKind.STOCK_USAGE]
            self._next_id[EntityKind.STOCK_USAGE] += 1
            record = StockUsageRecord(
                id=usage_id,
                item_id=item_id,
                job_id=job_id,
                quantity_used=quantity_used,
                used_at=used_at,
                applied=False,
            )
            self._records[EntityKind.STOCK_USAGE][usage_id] = record

            try:
                applied = self._apply_decrement(record)
            except Exception as exc:
                logger.warning(
                    f"Stock decrement failed for usage #{usage_id} "
                    f"(item #{item_id}): {exc}"
                )
                raise CompoundWriteFailure(usage_id, item_id, exc) from exc

        logger.info(
            f"Recorded usage #{usage_id}: {quantity_used} x item #{item_id} "
            f"on job #{job_id}"
        )
        return applied

    def apply_pending_usage(self, usage_id: int) -> StockUsageRecord:
        """Apply the missing decrement of a dangling usage record."""
        with self._lock:
            record = self._records[EntityKind.STOCK_USAGE].get(usage_id)
            if record is None:
                raise EntityNotFound(EntityKind.STOCK_USAGE, usage_id)
            if record.applied:
                return record
            return self._apply_decrement(record)

    def _apply_decrement(self, record: StockUsageRecord) -> StockUsageRecord:
        """Decrement the item and flag the record applied. Caller holds the lock."""
        items = self._records[EntityKind.INVENTORY_ITEM]
        item = items.get(record.item_id)
        if item is None:
            raise EntityNotFound(EntityKind.INVENTORY_ITEM, record.item_id)
        items[item.id] = dataclasses.replace(
            item,
            quantity_in_stock=item.quantity_in_stock - record.quantity_used,
            updated_at=self._clock.now_utc(),
        )
        applied = dataclasses.replace(record, applied=True)
        self._records[EntityKind.STOCK_USAGE][record.id] = applied
        return applied
