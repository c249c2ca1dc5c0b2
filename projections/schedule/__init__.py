"""
FieldOps Projections — Scheduling Index
=========================================
Calendar-day buckets and the upcoming-jobs list.

Day keys come from core.time.day_key in one reference timezone,
the same conversion used for "today", so a job never lands in one
day's bucket while being reported as scheduled on another.

Unscheduled jobs are left out entirely. Within a bucket jobs keep
the order they were given in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from core.domain import Job
from core.time import TimezoneLike, day_key, start_of_day, to_reference

DEFAULT_UPCOMING_LIMIT = 20


@dataclass(frozen=True)
class ScheduleIndex:
    buckets: Dict[date, Tuple[Job, ...]]
    today: date
    upcoming: Tuple[Job, ...] = field(default=())

    def jobs_on(self, day: date) -> Tuple[Job, ...]:
        return self.buckets.get(day, ())

    def is_today(self, day: date) -> bool:
        return day == self.today

    def days(self) -> List[date]:
        return sorted(self.buckets)

    def month(self, year: int, month: int) -> Dict[date, Tuple[Job, ...]]:
        """The buckets that fall in one calendar month."""
        return {
            day: jobs for day, jobs in self.buckets.items()
            if day.year == year and day.month == month
        }


def bucket_by_day(jobs: Iterable[Job], *, tz: TimezoneLike = "UTC") -> Dict[date, Tuple[Job, ...]]:
    buckets: Dict[date, List[Job]] = {}
    for job in jobs:
        if job.scheduled_date is None:
            continue
        buckets.setdefault(day_key(job.scheduled_date, tz), []).append(job)
    return {day: tuple(day_jobs) for day, day_jobs in buckets.items()}


def upcoming_jobs(
    jobs: Iterable[Job],
    now: datetime,
    *,
    tz: TimezoneLike = "UTC",
    limit: Optional[int] = DEFAULT_UPCOMING_LIMIT,
) -> List[Job]:
    """Jobs scheduled from the start of today onward, soonest first."""
    cutoff = start_of_day(now, tz)
    ahead = [
        j for j in jobs
        if j.scheduled_date is not None and to_reference(j.scheduled_date, tz) >= cutoff
    ]
    # sorted() is stable: equal times keep input order.
    ahead.sort(key=lambda j: to_reference(j.scheduled_date, tz))
    return ahead if limit is None else ahead[:limit]


def build_schedule_index(
    jobs: Iterable[Job],
    now: datetime,
    *,
    tz: TimezoneLike = "UTC",
    upcoming_limit: Optional[int] = DEFAULT_UPCOMING_LIMIT,
) -> ScheduleIndex:
    jobs = list(jobs)
    return ScheduleIndex(
        buckets=bucket_by_day(jobs, tz=tz),
        today=day_key(now, tz),
        upcoming=tuple(upcoming_jobs(jobs, now, tz=tz, limit=upcoming_limit)),
    )
