"""
FieldOps Core Domain — Entity Records
=======================================
Immutable snapshots of the records held by the Entity Store.

Ids are assigned by the store (0 means "not yet persisted").
Updates are full-record replacements: build a new record with
dataclasses.replace() and hand it back to the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from core.domain.enums import (
    CustomerType,
    JobPriority,
    JobStatus,
    PaymentStatus,
    TechnicianStatus,
)
from core.domain.invoicing import build_invoice_totals


@dataclass(frozen=True)
class Customer:
    name: str
    company: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    customer_type: CustomerType = CustomerType.RESIDENTIAL
    notes: str = ""
    id: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Technician:
    name: str
    email: str = ""
    phone: str = ""
    specialization: str = ""
    skills: Tuple[str, ...] = ()
    status: TechnicianStatus = TechnicianStatus.ACTIVE
    notes: str = ""
    id: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_active(self) -> bool:
        return self.status == TechnicianStatus.ACTIVE


@dataclass(frozen=True)
class Job:
    title: str
    customer_id: int
    description: str = ""
    assigned_technician: Optional[int] = None
    status: JobStatus = JobStatus.NEW
    priority: JobPriority = JobPriority.MEDIUM
    scheduled_date: Optional[datetime] = None
    location: str = ""
    notes: str = ""
    id: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class LineItem:
    description: str
    quantity: Decimal
    unit_price: Decimal

    @property
    def amount(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class Invoice:
    """
    Billing record.

    subtotal and total are computed once when the invoice is built
    and stored; aggregations read them as-is.
    """

    invoice_number: str
    customer_id: int
    issue_date: datetime
    due_date: datetime
    line_items: Tuple[LineItem, ...] = ()
    subtotal: Decimal = Decimal("0")
    tax_rate: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    job_id: Optional[int] = None
    notes: str = ""
    id: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def build(
        cls,
        *,
        invoice_number: str,
        customer_id: int,
        issue_date: datetime,
        due_date: datetime,
        line_items: Tuple[LineItem, ...],
        tax_rate: Decimal,
        payment_status: PaymentStatus = PaymentStatus.UNPAID,
        job_id: Optional[int] = None,
        notes: str = "",
    ) -> "Invoice":
        """Create an invoice with subtotal/total derived from its line items."""
        subtotal, total = build_invoice_totals(line_items, tax_rate)
        return cls(
            invoice_number=invoice_number,
            customer_id=customer_id,
            issue_date=issue_date,
            due_date=due_date,
            line_items=tuple(line_items),
            subtotal=subtotal,
            tax_rate=Decimal(str(tax_rate)),
            total=total,
            payment_status=payment_status,
            job_id=job_id,
            notes=notes,
        )

    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID


@dataclass(frozen=True)
class InventoryItem:
    sku: str
    name: str
    quantity_in_stock: int
    minimum_stock_threshold: int
    unit_cost: Decimal = Decimal("0")
    category: str = ""
    supplier: str = ""
    notes: str = ""
    id: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_low_stock(self) -> bool:
        # Inclusive: sitting exactly on the threshold counts as low.
        return self.quantity_in_stock <= self.minimum_stock_threshold

    @property
    def stock_value(self) -> Decimal:
        return self.unit_cost * self.quantity_in_stock


@dataclass(frozen=True)
class StockUsageRecord:
    """
    Consumption of an inventory item on a job.

    applied is False while the paired stock decrement has not
    committed; such a record is "dangling" until repaired.
    """

    item_id: int
    job_id: int
    quantity_used: int
    used_at: datetime
    applied: bool = True
    id: int = 0
