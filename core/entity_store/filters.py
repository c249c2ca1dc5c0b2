"""
FieldOps Entity Store — Snapshot Filters
==========================================
Reference semantics for every filtered read. Store implementations
may push these down to a database, but results must match.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from core.domain import (
    Customer,
    Invoice,
    Job,
    JobPriority,
    JobStatus,
    PaymentStatus,
    StockUsageRecord,
)
from core.time import TimezoneLike, to_reference


def jobs_with_status(jobs: Iterable[Job], status: JobStatus) -> List[Job]:
    return [j for j in jobs if j.status == status]


def jobs_with_priority(jobs: Iterable[Job], priority: JobPriority) -> List[Job]:
    return [j for j in jobs if j.priority == priority]


def jobs_for_customer(jobs: Iterable[Job], customer_id: int) -> List[Job]:
    return [j for j in jobs if j.customer_id == customer_id]


def jobs_for_technician(jobs: Iterable[Job], technician_id: Optional[int]) -> List[Job]:
    if technician_id is None:
        return []
    return [j for j in jobs if j.assigned_technician == technician_id]


def jobs_scheduled_between(
    jobs: Iterable[Job], start: datetime, end: datetime, tz: TimezoneLike = "UTC"
) -> List[Job]:
    """
    Jobs whose scheduled_date lies in [start, end]; unscheduled jobs never match.

    Naive values on either side are read as `tz`-local, so a store
    holding both naive and aware dates filters without error.
    """
    lo, hi = to_reference(start, tz), to_reference(end, tz)
    return [
        j for j in jobs
        if j.scheduled_date is not None and lo <= to_reference(j.scheduled_date, tz) <= hi
    ]


def invoices_for_customer(invoices: Iterable[Invoice], customer_id: int) -> List[Invoice]:
    return [i for i in invoices if i.customer_id == customer_id]


def invoices_with_status(
    invoices: Iterable[Invoice], status: PaymentStatus
) -> List[Invoice]:
    return [i for i in invoices if i.payment_status == status]


def customers_matching(customers: Iterable[Customer], text: str) -> List[Customer]:
    """Case-insensitive substring match on name, company or email. Blank text matches all."""
    needle = text.strip().lower()
    if not needle:
        return list(customers)
    return [
        c for c in customers
        if needle in c.name.lower()
        or needle in c.company.lower()
        or needle in c.email.lower()
    ]


def usage_for_job(records: Iterable[StockUsageRecord], job_id: int) -> List[StockUsageRecord]:
    return [r for r in records if r.job_id == job_id]
