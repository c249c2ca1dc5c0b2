"""
FieldOps Projections — Finance Views
======================================
Revenue by month, per-customer account activity, and the
line-item reconciliation report.

Stored invoice subtotal/total are authoritative everywhere except
invoice_line_report, which deliberately re-derives them from the
line items to spot records whose stored figures disagree.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List

from core.domain import Customer, Invoice, Job, PaymentStatus, build_invoice_totals
from core.time import TimezoneLike, month_key
from projections.references import NameLookup


# ══════════════════════════════════════════════════════════════
# REVENUE BY MONTH
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RevenueByMonth:
    month: str          # "YYYY-MM"
    invoiced: Decimal   # Σ total, all invoices issued that month
    collected: Decimal  # Σ total, paid invoices issued that month


def revenue_by_month(
    invoices: Iterable[Invoice], *, tz: TimezoneLike = "UTC"
) -> List[RevenueByMonth]:
    """Sparse monthly buckets, oldest month first."""
    invoiced: Dict[str, Decimal] = defaultdict(Decimal)
    collected: Dict[str, Decimal] = defaultdict(Decimal)
    for invoice in invoices:
        key = month_key(invoice.issue_date, tz)
        invoiced[key] += invoice.total
        if invoice.payment_status == PaymentStatus.PAID:
            collected[key] += invoice.total
    return [
        RevenueByMonth(month=key, invoiced=invoiced[key], collected=collected[key])
        for key in sorted(invoiced)
    ]


# ══════════════════════════════════════════════════════════════
# CUSTOMER ACTIVITY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CustomerActivity:
    customer_id: int
    customer_name: str
    jobs: tuple
    invoices: tuple
    total_invoiced: Decimal
    total_paid: Decimal

    @property
    def outstanding(self) -> Decimal:
        return self.total_invoiced - self.total_paid


def customer_activity(
    customer_id: int,
    customers: Iterable[Customer],
    jobs: Iterable[Job],
    invoices: Iterable[Invoice],
) -> CustomerActivity:
    """
    Jobs and invoices for one customer.

    A deleted customer still gets a view (under the placeholder
    name) so that orphaned jobs and invoices remain reachable.
    """
    own_jobs = tuple(j for j in jobs if j.customer_id == customer_id)
    own_invoices = tuple(i for i in invoices if i.customer_id == customer_id)
    return CustomerActivity(
        customer_id=customer_id,
        customer_name=NameLookup(customers=customers).customer_name(customer_id),
        jobs=own_jobs,
        invoices=own_invoices,
        total_invoiced=sum((i.total for i in own_invoices), Decimal("0")),
        total_paid=sum((i.total for i in own_invoices if i.is_paid()), Decimal("0")),
    )


# ══════════════════════════════════════════════════════════════
# LINE-ITEM REPORT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class InvoiceLineCheck:
    invoice_id: int
    invoice_number: str
    stored_subtotal: Decimal
    stored_total: Decimal
    derived_subtotal: Decimal
    derived_total: Decimal

    @property
    def consistent(self) -> bool:
        return (
            self.stored_subtotal == self.derived_subtotal
            and self.stored_total == self.derived_total
        )


def invoice_line_report(invoices: Iterable[Invoice]) -> List[InvoiceLineCheck]:
    report = []
    for invoice in invoices:
        subtotal, total = build_invoice_totals(invoice.line_items, invoice.tax_rate)
        report.append(InvoiceLineCheck(
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            stored_subtotal=invoice.subtotal,
            stored_total=invoice.total,
            derived_subtotal=subtotal,
            derived_total=total,
        ))
    return report
