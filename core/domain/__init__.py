"""
FieldOps Core Domain — Public API
===================================
Entity records and the closed enums they use.
"""

from core.domain.entities import (
    Customer,
    InventoryItem,
    Invoice,
    Job,
    LineItem,
    StockUsageRecord,
    Technician,
)
from core.domain.enums import (
    CLOSED_JOB_STATUSES,
    CustomerType,
    EntityKind,
    JobPriority,
    JobStatus,
    MutationAction,
    PaymentStatus,
    TechnicianStatus,
)
from core.domain.invoicing import build_invoice_totals, line_items_subtotal

__all__ = [
    "CLOSED_JOB_STATUSES",
    "Customer",
    "CustomerType",
    "EntityKind",
    "InventoryItem",
    "Invoice",
    "Job",
    "JobPriority",
    "JobStatus",
    "LineItem",
    "MutationAction",
    "PaymentStatus",
    "StockUsageRecord",
    "Technician",
    "TechnicianStatus",
    "build_invoice_totals",
    "line_items_subtotal",
]
