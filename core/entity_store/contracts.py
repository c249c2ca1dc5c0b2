"""
FieldOps Entity Store — Contract
==================================
The read and write surface the view layer consumes.

Implementations:
- InMemoryEntityStore  (core.entity_store.memory)  tests / bootstrap
- DjangoEntityStore    (core.entity_store.repository)  ORM-backed

Filtered reads are optimizations only; each must return exactly
what filtering the matching list-all snapshot would return
(see core.entity_store.filters).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Type

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
)

ENTITY_TYPES: Dict[EntityKind, Type[Any]] = {
    EntityKind.CUSTOMER: Customer,
    EntityKind.TECHNICIAN: Technician,
    EntityKind.JOB: Job,
    EntityKind.INVOICE: Invoice,
    EntityKind.INVENTORY_ITEM: InventoryItem,
    EntityKind.STOCK_USAGE: StockUsageRecord,
}

_KIND_BY_TYPE = {entity_type: kind for kind, entity_type in ENTITY_TYPES.items()}


def kind_of(entity: Any) -> EntityKind:
    """Entity kind for a record instance."""
    try:
        return _KIND_BY_TYPE[type(entity)]
    except KeyError:
        raise TypeError(f"{type(entity).__name__} is not an entity record.") from None


class EntityStore(Protocol):
    """Entity Store surface used by the view layer."""

    # ── list-all snapshots ────────────────────────────────────
    def list_customers(self) -> List[Customer]: ...
    def list_technicians(self) -> List[Technician]: ...
    def list_jobs(self) -> List[Job]: ...
    def list_invoices(self) -> List[Invoice]: ...
    def list_inventory_items(self) -> List[InventoryItem]: ...
    def list_stock_usage(self) -> List[StockUsageRecord]: ...

    def get(self, kind: EntityKind, entity_id: int) -> Optional[Any]: ...

    # ── filtered reads ────────────────────────────────────────
    def jobs_by_status(self, status: JobStatus) -> List[Job]: ...
    def jobs_by_priority(self, priority: JobPriority) -> List[Job]: ...
    def jobs_by_customer(self, customer_id: int) -> List[Job]: ...
    def jobs_by_technician(self, technician_id: int) -> List[Job]: ...
    def jobs_by_date_range(self, start: datetime, end: datetime) -> List[Job]: ...
    def invoices_by_customer(self, customer_id: int) -> List[Invoice]: ...
    def invoices_by_status(self, status: PaymentStatus) -> List[Invoice]: ...
    def search_customers(self, text: str) -> List[Customer]: ...
    def stock_usage_by_job(self, job_id: int) -> List[StockUsageRecord]: ...

    # ── writes ────────────────────────────────────────────────
    def create(self, entity: Any) -> Any: ...
    def update(self, entity: Any) -> Any: ...
    def delete(self, kind: EntityKind, entity_id: int) -> None: ...
    def mark_invoice_paid(self, invoice_id: int) -> Invoice: ...
    def deactivate_technician(self, technician_id: int) -> Technician: ...

    def record_stock_usage(
        self,
        item_id: int,
        job_id: int,
        quantity_used: int,
        used_at: Optional[datetime] = None,
    ) -> StockUsageRecord: ...

    def apply_pending_usage(self, usage_id: int) -> StockUsageRecord: ...
