"""
FieldOps Projections — Reference Resolution
=============================================
Joins across entity collections without ever failing on a
dangling foreign key.

A job whose customer was deleted still counts toward every
structural figure (totals, status histogram); only join-dependent
output (names) falls back to a placeholder. collect_referential_gaps
reports every dangling reference so callers can log or surface it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from core.domain import (
    Customer,
    EntityKind,
    InventoryItem,
    Invoice,
    Job,
    StockUsageRecord,
    Technician,
)

UNKNOWN_CUSTOMER = "Unknown customer"
UNKNOWN_TECHNICIAN = "Unknown technician"
UNASSIGNED = "Unassigned"
UNKNOWN_ITEM = "Unknown item"


@dataclass(frozen=True)
class ReferentialGap:
    """A foreign key that does not resolve to an existing record."""

    source_kind: EntityKind
    source_id: int
    field: str
    missing_kind: EntityKind
    missing_id: int

    def describe(self) -> str:
        return (
            f"{self.source_kind.value} #{self.source_id}.{self.field} -> "
            f"missing {self.missing_kind.value} #{self.missing_id}"
        )


class NameLookup:
    """
    id → display name maps for customers, technicians and items.

    Built once per aggregation from the snapshots it was given.
    """

    def __init__(
        self,
        customers: Iterable[Customer] = (),
        technicians: Iterable[Technician] = (),
        items: Iterable[InventoryItem] = (),
    ) -> None:
        self._customers: Dict[int, str] = {c.id: c.name for c in customers}
        self._technicians: Dict[int, str] = {t.id: t.name for t in technicians}
        self._items: Dict[int, str] = {i.id: i.name for i in items}

    def customer_name(self, customer_id: int) -> str:
        return self._customers.get(customer_id, UNKNOWN_CUSTOMER)

    def technician_name(self, technician_id: Optional[int]) -> str:
        if technician_id is None:
            return UNASSIGNED
        return self._technicians.get(technician_id, UNKNOWN_TECHNICIAN)

    def item_name(self, item_id: int) -> str:
        return self._items.get(item_id, UNKNOWN_ITEM)

    def has_customer(self, customer_id: int) -> bool:
        return customer_id in self._customers

    def has_technician(self, technician_id: int) -> bool:
        return technician_id in self._technicians

    def has_item(self, item_id: int) -> bool:
        return item_id in self._items


def resolve_customer_name(customers: Iterable[Customer], customer_id: int) -> str:
    return NameLookup(customers=customers).customer_name(customer_id)


def collect_referential_gaps(
    *,
    customers: Optional[Iterable[Customer]] = None,
    technicians: Optional[Iterable[Technician]] = None,
    jobs: Optional[Iterable[Job]] = None,
    invoices: Iterable[Invoice] = (),
    items: Optional[Iterable[InventoryItem]] = None,
    usage_records: Iterable[StockUsageRecord] = (),
) -> List[ReferentialGap]:
    """
    Every dangling customerId, assignedTechnician, jobId and itemId.

    A reference is only checked when its target collection is given,
    so omitting `items` never reports usage records as orphaned.
    """
    jobs = None if jobs is None else list(jobs)
    customer_ids = None if customers is None else {c.id for c in customers}
    technician_ids = None if technicians is None else {t.id for t in technicians}
    item_ids = None if items is None else {i.id for i in items}
    job_ids = None if jobs is None else {j.id for j in jobs}
    gaps: List[ReferentialGap] = []

    for job in jobs or ():
        if customer_ids is not None and job.customer_id not in customer_ids:
            gaps.append(ReferentialGap(
                EntityKind.JOB, job.id, "customer_id",
                EntityKind.CUSTOMER, job.customer_id,
            ))
        if (
            technician_ids is not None
            and job.assigned_technician is not None
            and job.assigned_technician not in technician_ids
        ):
            gaps.append(ReferentialGap(
                EntityKind.JOB, job.id, "assigned_technician",
                EntityKind.TECHNICIAN, job.assigned_technician,
            ))

    for invoice in invoices:
        if customer_ids is not None and invoice.customer_id not in customer_ids:
            gaps.append(ReferentialGap(
                EntityKind.INVOICE, invoice.id, "customer_id",
                EntityKind.CUSTOMER, invoice.customer_id,
            ))
        if job_ids is not None and invoice.job_id is not None and invoice.job_id not in job_ids:
            gaps.append(ReferentialGap(
                EntityKind.INVOICE, invoice.id, "job_id",
                EntityKind.JOB, invoice.job_id,
            ))

    for record in usage_records:
        if item_ids is not None and record.item_id not in item_ids:
            gaps.append(ReferentialGap(
                EntityKind.STOCK_USAGE, record.id, "item_id",
                EntityKind.INVENTORY_ITEM, record.item_id,
            ))
        if job_ids is not None and record.job_id not in job_ids:
            gaps.append(ReferentialGap(
                EntityKind.STOCK_USAGE, record.id, "job_id",
                EntityKind.JOB, record.job_id,
            ))

    return gaps
