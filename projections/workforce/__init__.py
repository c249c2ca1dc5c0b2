"""
FieldOps Projections — Technician Views
=========================================
Per-technician assignment and completion counts.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Tuple

from core.domain import Job, JobStatus, Technician
from projections.references import UNKNOWN_TECHNICIAN

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class TechnicianPerformance:
    technician_id: int
    technician_name: str
    assigned_jobs: int
    completed_jobs: int

    @property
    def completion_rate(self) -> int:
        """Completed share of assigned jobs, whole percent; 0 with nothing assigned."""
        if self.assigned_jobs == 0:
            return 0
        return round(self.completed_jobs * 100 / self.assigned_jobs)


def technician_performance(
    technicians: Iterable[Technician], jobs: Iterable[Job]
) -> List[TechnicianPerformance]:
    """
    One row per technician, in input order, idle technicians included.

    Jobs assigned to a technician id that no longer exists are not
    attributed to anyone.
    """
    assigned: Counter = Counter()
    completed: Counter = Counter()
    for job in jobs:
        if job.assigned_technician is None:
            continue
        assigned[job.assigned_technician] += 1
        if job.status == JobStatus.COMPLETED:
            completed[job.assigned_technician] += 1

    return [
        TechnicianPerformance(
            technician_id=t.id,
            technician_name=t.name,
            assigned_jobs=assigned[t.id],
            completed_jobs=completed[t.id],
        )
        for t in technicians
    ]


@dataclass(frozen=True)
class TechnicianWorkload:
    technician_id: int
    technician_name: str
    total_jobs: int
    active_jobs: int
    completed_jobs: int
    history: Tuple[Job, ...]  # most recently updated first


def technician_workload(
    technician_id: int,
    technicians: Iterable[Technician],
    jobs: Iterable[Job],
) -> TechnicianWorkload:
    own = [j for j in jobs if j.assigned_technician == technician_id]
    name = next(
        (t.name for t in technicians if t.id == technician_id), UNKNOWN_TECHNICIAN
    )
    return TechnicianWorkload(
        technician_id=technician_id,
        technician_name=name,
        total_jobs=len(own),
        active_jobs=sum(1 for j in own if j.status.is_open),
        completed_jobs=sum(1 for j in own if j.status == JobStatus.COMPLETED),
        history=tuple(sorted(own, key=lambda j: j.updated_at or _EPOCH, reverse=True)),
    )
