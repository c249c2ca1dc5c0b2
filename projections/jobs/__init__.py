"""
FieldOps Projections — Job Views
==================================
Status histogram, recent-jobs feed and the job list filter.

The histogram always has one row per JobStatus, in enum order,
so chart axes stay put when a status has no jobs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Sequence

from core.domain import Customer, Job, JobPriority, JobStatus, Technician
from projections.references import NameLookup

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


# ══════════════════════════════════════════════════════════════
# STATUS HISTOGRAM
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class JobStatusCount:
    status: JobStatus
    count: int


def job_status_summary(jobs: Iterable[Job]) -> List[JobStatusCount]:
    """One row per status, zero-count rows included; Σcount == len(jobs)."""
    counts = {status: 0 for status in JobStatus}
    for job in jobs:
        counts[job.status] += 1
    return [JobStatusCount(status=status, count=counts[status]) for status in JobStatus]


def status_share(rows: Sequence[JobStatusCount]) -> List[Decimal]:
    """Percentage of jobs per row, one decimal place; all 0.0 when there are no jobs."""
    total = sum(r.count for r in rows)
    if total == 0:
        return [Decimal("0.0") for _ in rows]
    return [
        (Decimal(r.count) * 100 / total).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        for r in rows
    ]


# ══════════════════════════════════════════════════════════════
# RECENT JOBS / JOB LIST
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class JobRow:
    """A job joined with its customer and technician display names."""

    job: Job
    customer_name: str
    technician_name: str


def _updated_desc_key(job: Job) -> datetime:
    return job.updated_at or _EPOCH


def _rows(jobs: Iterable[Job], names: NameLookup) -> List[JobRow]:
    return [
        JobRow(
            job=job,
            customer_name=names.customer_name(job.customer_id),
            technician_name=names.technician_name(job.assigned_technician),
        )
        for job in jobs
    ]


def recent_jobs(
    jobs: Iterable[Job],
    customers: Iterable[Customer],
    technicians: Iterable[Technician],
    limit: int = 8,
) -> List[JobRow]:
    """Most recently updated jobs first, capped at `limit`."""
    ordered = sorted(jobs, key=_updated_desc_key, reverse=True)[:limit]
    return _rows(ordered, NameLookup(customers=customers, technicians=technicians))


def filter_jobs(
    jobs: Iterable[Job],
    customers: Iterable[Customer],
    technicians: Iterable[Technician] = (),
    *,
    status: Optional[JobStatus] = None,
    priority: Optional[JobPriority] = None,
    technician_id: Optional[int] = None,
    search: str = "",
) -> List[JobRow]:
    """
    Job list as shown on the jobs page.

    `search` matches the title or the resolved customer name,
    case-insensitively. Jobs with a missing customer are still
    listed (under the placeholder name) and still searchable by title.
    """
    names = NameLookup(customers=customers, technicians=technicians)
    needle = search.strip().lower()
    matched = []
    for job in jobs:
        if status is not None and job.status != status:
            continue
        if priority is not None and job.priority != priority:
            continue
        if technician_id is not None and job.assigned_technician != technician_id:
            continue
        if needle:
            customer_name = names.customer_name(job.customer_id).lower()
            if needle not in job.title.lower() and needle not in customer_name:
                continue
        matched.append(job)
    matched.sort(key=_updated_desc_key, reverse=True)
    return _rows(matched, names)
