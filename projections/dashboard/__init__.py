"""
FieldOps Projections — Dashboard KPIs
=======================================
Headline numbers for the dashboard.

totalRevenueThisMonth keeps its historical name but is a trailing
window (default 30 days ending at `now`), not a calendar month.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable

from core.domain import Customer, Invoice, Job, JobStatus, PaymentStatus, Technician
from core.time import TimezoneLike, same_day, to_reference, trailing_window

DEFAULT_REVENUE_WINDOW_DAYS = 30


@dataclass(frozen=True)
class DashboardStats:
    total_open_jobs: int
    total_jobs: int
    completed_jobs_today: int
    pending_invoices: int
    total_revenue_this_month: Decimal
    total_customers: int
    total_technicians: int

    def to_dict(self) -> dict:
        return {
            "totalOpenJobs": self.total_open_jobs,
            "totalJobs": self.total_jobs,
            "completedJobsToday": self.completed_jobs_today,
            "pendingInvoices": self.pending_invoices,
            "totalRevenueThisMonth": str(self.total_revenue_this_month),
            "totalCustomers": self.total_customers,
            "totalTechnicians": self.total_technicians,
        }


def compute_dashboard_stats(
    jobs: Iterable[Job],
    customers: Iterable[Customer],
    technicians: Iterable[Technician],
    invoices: Iterable[Invoice],
    now: datetime,
    *,
    tz: TimezoneLike = "UTC",
    revenue_window_days: int = DEFAULT_REVENUE_WINDOW_DAYS,
) -> DashboardStats:
    jobs = list(jobs)
    now = to_reference(now, tz)
    window = trailing_window(now, revenue_window_days)

    open_jobs = sum(1 for j in jobs if j.status.is_open)
    completed_today = sum(
        1 for j in jobs
        if j.status == JobStatus.COMPLETED and same_day(j.updated_at, now, tz)
    )

    pending = 0
    revenue = Decimal("0")
    for invoice in invoices:
        if invoice.payment_status != PaymentStatus.PAID:
            pending += 1
        elif window.contains(to_reference(invoice.issue_date, tz)):
            revenue += invoice.total

    return DashboardStats(
        total_open_jobs=open_jobs,
        total_jobs=len(jobs),
        completed_jobs_today=completed_today,
        pending_invoices=pending,
        total_revenue_this_month=revenue,
        total_customers=sum(1 for _ in customers),
        total_technicians=sum(1 for _ in technicians),
    )
