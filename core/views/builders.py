"""
FieldOps Core Views — View Builders
=====================================
One builder per view key. A builder takes fresh snapshots from the
Entity Store, hands them to the pure aggregation functions, and
returns the value that gets cached.

Builders are the only place the view layer reads the store. They
log referential gaps found in the snapshots they read but never
fail because of them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from core.config import ViewSettings
from core.entity_store import EntityStore
from core.projections.registry import ViewInfo, ViewKey, ViewRegistry
from projections.dashboard import compute_dashboard_stats
from projections.finance import customer_activity, revenue_by_month
from projections.inventory import (
    dangling_usage,
    inventory_usage_report,
    inventory_valuation,
    low_stock_items,
    rank_usage,
    reconcile_stock,
    usage_for_job,
)
from projections.jobs import job_status_summary, recent_jobs
from projections.references import collect_referential_gaps
from projections.schedule import build_schedule_index
from projections.workforce import technician_performance, technician_workload

logger = logging.getLogger("fieldops.views")
inventory_logger = logging.getLogger("fieldops.inventory")

Params = Mapping[str, Any]


@dataclass(frozen=True)
class BuildContext:
    """What every builder gets: the store, settings and the read instant."""

    store: EntityStore
    settings: ViewSettings
    now: datetime

    @property
    def tz(self) -> str:
        return self.settings.reference_timezone


def _log_gaps(view_key: ViewKey, **snapshots: Any) -> None:
    gaps = collect_referential_gaps(**snapshots)
    if gaps:
        logger.warning(
            f"{view_key.value}: {len(gaps)} referential gap(s): "
            + "; ".join(g.describe() for g in gaps)
        )


# ══════════════════════════════════════════════════════════════
# DASHBOARD & JOBS
# ══════════════════════════════════════════════════════════════

def dashboard_stats_view(ctx: BuildContext, params: Params):
    store = ctx.store
    jobs = store.list_jobs()
    customers = store.list_customers()
    technicians = store.list_technicians()
    invoices = store.list_invoices()
    _log_gaps(ViewKey.DASHBOARD_STATS, customers=customers, jobs=jobs, invoices=invoices)
    return compute_dashboard_stats(
        jobs,
        customers,
        technicians,
        invoices,
        ctx.now,
        tz=ctx.tz,
        revenue_window_days=ctx.settings.revenue_window_days,
    )


def job_status_summary_view(ctx: BuildContext, params: Params):
    return job_status_summary(ctx.store.list_jobs())


def recent_jobs_view(ctx: BuildContext, params: Params):
    customers = ctx.store.list_customers()
    technicians = ctx.store.list_technicians()
    jobs = ctx.store.list_jobs()
    _log_gaps(ViewKey.RECENT_JOBS, customers=customers, technicians=technicians, jobs=jobs)
    return recent_jobs(jobs, customers, technicians, limit=ctx.settings.recent_jobs_limit)


def schedule_index_view(ctx: BuildContext, params: Params):
    return build_schedule_index(
        ctx.store.list_jobs(),
        ctx.now,
        tz=ctx.tz,
        upcoming_limit=ctx.settings.upcoming_jobs_limit,
    )


# ══════════════════════════════════════════════════════════════
# FINANCE & WORKFORCE
# ══════════════════════════════════════════════════════════════

def revenue_by_month_view(ctx: BuildContext, params: Params):
    return revenue_by_month(ctx.store.list_invoices(), tz=ctx.tz)


def customer_activity_view(ctx: BuildContext, params: Params):
    customer_id = params["customer_id"]
    return customer_activity(
        customer_id,
        ctx.store.list_customers(),
        ctx.store.jobs_by_customer(customer_id),
        ctx.store.invoices_by_customer(customer_id),
    )


def technician_performance_view(ctx: BuildContext, params: Params):
    technicians = ctx.store.list_technicians()
    jobs = ctx.store.list_jobs()
    _log_gaps(ViewKey.TECHNICIAN_PERFORMANCE, technicians=technicians, jobs=jobs)
    return technician_performance(technicians, jobs)


def technician_workload_view(ctx: BuildContext, params: Params):
    technician_id = params["technician_id"]
    return technician_workload(
        technician_id,
        ctx.store.list_technicians(),
        ctx.store.jobs_by_technician(technician_id),
    )


# ══════════════════════════════════════════════════════════════
# INVENTORY
# ══════════════════════════════════════════════════════════════

def low_stock_items_view(ctx: BuildContext, params: Params):
    return low_stock_items(ctx.store.list_inventory_items())


def inventory_usage_report_view(ctx: BuildContext, params: Params):
    items = ctx.store.list_inventory_items()
    usage = ctx.store.list_stock_usage()
    _log_gaps(ViewKey.INVENTORY_USAGE_REPORT, items=items, usage_records=usage)
    # Engine rows are unordered; the view ranks and caps them.
    return rank_usage(inventory_usage_report(items, usage), ctx.settings.top_usage_limit)


def inventory_valuation_view(ctx: BuildContext, params: Params):
    return inventory_valuation(ctx.store.list_inventory_items())


def stock_usage_by_job_view(ctx: BuildContext, params: Params):
    job_id = params["job_id"]
    return usage_for_job(
        job_id,
        ctx.store.stock_usage_by_job(job_id),
        ctx.store.list_inventory_items(),
    )


def stock_reconciliation_view(ctx: BuildContext, params: Params):
    items = ctx.store.list_inventory_items()
    usage = ctx.store.list_stock_usage()
    pending = dangling_usage(usage)
    if pending:
        inventory_logger.warning(
            f"{len(pending)} usage record(s) without an applied decrement: "
            + ", ".join(f"#{r.id}" for r in pending)
        )
    return reconcile_stock(items, usage)


# ══════════════════════════════════════════════════════════════
# DEFAULT REGISTRY
# ══════════════════════════════════════════════════════════════

def default_registry() -> ViewRegistry:
    """A registry with every built-in view registered."""
    registry = ViewRegistry()
    for info in (
        ViewInfo(ViewKey.DASHBOARD_STATS, dashboard_stats_view,
                 description="Headline KPIs"),
        ViewInfo(ViewKey.JOB_STATUS_SUMMARY, job_status_summary_view,
                 description="Job count per status, all statuses"),
        ViewInfo(ViewKey.REVENUE_BY_MONTH, revenue_by_month_view,
                 description="Invoiced and collected per issue month"),
        ViewInfo(ViewKey.TECHNICIAN_PERFORMANCE, technician_performance_view,
                 description="Assigned and completed jobs per technician"),
        ViewInfo(ViewKey.INVENTORY_USAGE_REPORT, inventory_usage_report_view,
                 description="Total units used per item"),
        ViewInfo(ViewKey.LOW_STOCK_ITEMS, low_stock_items_view,
                 description="Items at or below threshold"),
        ViewInfo(ViewKey.SCHEDULE_INDEX, schedule_index_view,
                 description="Jobs by calendar day and upcoming jobs"),
        ViewInfo(ViewKey.RECENT_JOBS, recent_jobs_view,
                 description="Most recently updated jobs"),
        ViewInfo(ViewKey.CUSTOMER_ACTIVITY, customer_activity_view,
                 required_params=("customer_id",),
                 description="Jobs, invoices and balance of one customer"),
        ViewInfo(ViewKey.TECHNICIAN_WORKLOAD, technician_workload_view,
                 required_params=("technician_id",),
                 description="Job counts and history of one technician"),
        ViewInfo(ViewKey.INVENTORY_VALUATION, inventory_valuation_view,
                 description="Stock value and category list"),
        ViewInfo(ViewKey.STOCK_USAGE_BY_JOB, stock_usage_by_job_view,
                 required_params=("job_id",),
                 description="Materials used on one job"),
        ViewInfo(ViewKey.STOCK_RECONCILIATION, stock_reconciliation_view,
                 description="Stored stock against recorded usage"),
    ):
        registry.register(info)
    return registry
