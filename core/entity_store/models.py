"""
FieldOps Entity Store - Relational Models
=========================================
One table per entity kind.

Cross-entity references are plain indexed integer columns, not
foreign keys: deleting a customer or technician leaves the jobs and
invoices that pointed at it in place, and readers treat the dangling
id as a referential gap.
"""

from __future__ import annotations

from django.db import models

from core.domain import (
    CustomerType,
    JobPriority,
    JobStatus,
    PaymentStatus,
    TechnicianStatus,
)


def _choices(enum_cls) -> list[tuple[str, str]]:
    return [(member.value, member.name.replace("_", " ").title()) for member in enum_cls]


class Customer(models.Model):
    name = models.CharField(max_length=255)
    company = models.CharField(max_length=255, default="", blank=True)
    email = models.CharField(max_length=255, default="", blank=True)
    phone = models.CharField(max_length=64, default="", blank=True)
    address = models.TextField(default="", blank=True)
    customer_type = models.CharField(
        max_length=20,
        choices=_choices(CustomerType),
        default=CustomerType.RESIDENTIAL.value,
    )
    notes = models.TextField(default="", blank=True)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        db_table = "fieldops_customers"
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.id} ({self.name})"


class Technician(models.Model):
    name = models.CharField(max_length=255)
    email = models.CharField(max_length=255, default="", blank=True)
    phone = models.CharField(max_length=64, default="", blank=True)
    specialization = models.CharField(max_length=255, default="", blank=True)
    skills = models.JSONField(default=list)
    status = models.CharField(
        max_length=20,
        choices=_choices(TechnicianStatus),
        default=TechnicianStatus.ACTIVE.value,
    )
    notes = models.TextField(default="", blank=True)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        db_table = "fieldops_technicians"
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.id} ({self.name})"


class Job(models.Model):
    title = models.CharField(max_length=255)
    description = models.TextField(default="", blank=True)
    customer_id = models.BigIntegerField(db_index=True)
    assigned_technician = models.BigIntegerField(null=True, blank=True, db_index=True)
    status = models.CharField(
        max_length=20,
        choices=_choices(JobStatus),
        default=JobStatus.NEW.value,
    )
    priority = models.CharField(
        max_length=20,
        choices=_choices(JobPriority),
        default=JobPriority.MEDIUM.value,
    )
    scheduled_date = models.DateTimeField(null=True, blank=True)
    location = models.CharField(max_length=255, default="", blank=True)
    notes = models.TextField(default="", blank=True)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        db_table = "fieldops_jobs"
        ordering = ["id"]
        indexes = [
            models.Index(fields=["status"], name="idx_job_status"),
            models.Index(fields=["scheduled_date"], name="idx_job_scheduled"),
        ]

    def __str__(self) -> str:
        return f"{self.id} ({self.title}, {self.status})"


class Invoice(models.Model):
    invoice_number = models.CharField(max_length=64, unique=True)
    customer_id = models.BigIntegerField(db_index=True)
    job_id = models.BigIntegerField(null=True, blank=True)
    issue_date = models.DateTimeField()
    due_date = models.DateTimeField()
    line_items = models.JSONField(default=list)
    subtotal = models.DecimalField(max_digits=14, decimal_places=2)
    tax_rate = models.DecimalField(max_digits=7, decimal_places=3)
    total = models.DecimalField(max_digits=14, decimal_places=2)
    payment_status = models.CharField(
        max_length=20,
        choices=_choices(PaymentStatus),
        default=PaymentStatus.UNPAID.value,
    )
    notes = models.TextField(default="", blank=True)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        db_table = "fieldops_invoices"
        ordering = ["id"]
        indexes = [
            models.Index(fields=["payment_status"], name="idx_invoice_status"),
        ]

    def __str__(self) -> str:
        return f"{self.invoice_number} ({self.payment_status})"


class InventoryItem(models.Model):
    sku = models.CharField(max_length=64)
    name = models.CharField(max_length=255)
    category = models.CharField(max_length=100, default="", blank=True)
    quantity_in_stock = models.IntegerField()
    minimum_stock_threshold = models.IntegerField()
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2)
    supplier = models.CharField(max_length=255, default="", blank=True)
    notes = models.TextField(default="", blank=True)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        db_table = "fieldops_inventory_items"
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.sku} ({self.name})"


class StockUsageRecord(models.Model):
    item_id = models.BigIntegerField(db_index=True)
    job_id = models.BigIntegerField(db_index=True)
    quantity_used = models.IntegerField()
    used_at = models.DateTimeField()
    applied = models.BooleanField(default=False)

    class Meta:
        db_table = "fieldops_stock_usage"
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.id} (item {self.item_id} x{self.quantity_used})"
