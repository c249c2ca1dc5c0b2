"""
FieldOps Core Domain — Closed Vocabularies
============================================
Every status-like field is one of these enums. Aggregations iterate
the enum (never the data) when they need a complete set of rows.
"""

from __future__ import annotations

from enum import Enum


class JobStatus(Enum):
    """Job lifecycle. Declaration order is the chart order."""
    NEW = "new"
    IN_PROGRESS = "inProgress"
    ON_HOLD = "onHold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_open(self) -> bool:
        return self not in CLOSED_JOB_STATUSES

    @property
    def label(self) -> str:
        return _JOB_STATUS_LABELS[self]


CLOSED_JOB_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.CANCELLED})

_JOB_STATUS_LABELS = {
    JobStatus.NEW: "New",
    JobStatus.IN_PROGRESS: "In Progress",
    JobStatus.ON_HOLD: "On Hold",
    JobStatus.COMPLETED: "Completed",
    JobStatus.CANCELLED: "Cancelled",
}


class JobPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class PaymentStatus(Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"


class TechnicianStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class CustomerType(Enum):
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"


class EntityKind(Enum):
    """Entity collections held by the Entity Store."""
    CUSTOMER = "customer"
    TECHNICIAN = "technician"
    JOB = "job"
    INVOICE = "invoice"
    INVENTORY_ITEM = "inventoryItem"
    STOCK_USAGE = "stockUsageRecord"


class MutationAction(Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
