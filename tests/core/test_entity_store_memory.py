"""
Tests — In-Memory Entity Store
================================
CRUD, filtered reads, and the stock-usage compound write including
the dangling-record path.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from core.domain import (
    Customer,
    EntityKind,
    InventoryItem,
    Invoice,
    Job,
    JobPriority,
    JobStatus,
    PaymentStatus,
    StockUsageRecord,
    Technician,
    TechnicianStatus,
)
from core.entity_store import (
    CompoundWriteFailure,
    EntityNotFound,
    InMemoryEntityStore,
    InsufficientStock,
    InvalidEntity,
)
from core.time import FixedClock


T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _store() -> InMemoryEntityStore:
    return InMemoryEntityStore(clock=FixedClock(T0))


def _invoice(customer_id: int, status: PaymentStatus = PaymentStatus.UNPAID) -> Invoice:
    return Invoice(
        invoice_number=f"INV-{customer_id}",
        customer_id=customer_id,
        issue_date=T0,
        due_date=T0 + timedelta(days=30),
        payment_status=status,
    )


class FailingDecrementStore(InMemoryEntityStore):
    """Decrement step blows up until `healthy` is flipped."""

    healthy = False

    def _apply_decrement(self, record: StockUsageRecord) -> StockUsageRecord:
        if not self.healthy:
            raise RuntimeError("item row locked")
        return super()._apply_decrement(record)


# ══════════════════════════════════════════════════════════════
# CRUD
# ══════════════════════════════════════════════════════════════

class TestCrud:
    def test_create_assigns_sequential_ids_and_timestamps(self):
        store = _store()
        a = store.create(Customer("Acme"))
        b = store.create(Customer("Birch"))
        assert (a.id, b.id) == (1, 2)
        assert a.created_at == T0
        assert a.updated_at == T0

    def test_ids_are_per_kind(self):
        store = _store()
        store.create(Customer("Acme"))
        tech = store.create(Technician("Ana"))
        assert tech.id == 1

    def test_update_keeps_created_at(self):
        clock = FixedClock(T0)
        store = InMemoryEntityStore(clock=clock)
        customer = store.create(Customer("Acme"))
        clock.advance(hours=2)
        updated = store.update(dataclasses.replace(customer, phone="555-0100"))
        assert updated.created_at == T0
        assert updated.updated_at == T0 + timedelta(hours=2)
        assert store.get(EntityKind.CUSTOMER, customer.id).phone == "555-0100"

    def test_update_missing(self):
        store = _store()
        with pytest.raises(EntityNotFound) as exc_info:
            store.update(Customer("Ghost", id=99))
        assert exc_info.value.entity_id == 99

    def test_delete(self):
        store = _store()
        customer = store.create(Customer("Acme"))
        store.delete(EntityKind.CUSTOMER, customer.id)
        assert store.get(EntityKind.CUSTOMER, customer.id) is None
        with pytest.raises(EntityNotFound):
            store.delete(EntityKind.CUSTOMER, customer.id)

    def test_job_requires_existing_customer(self):
        store = _store()
        with pytest.raises(EntityNotFound) as exc_info:
            store.create(Job("Fix boiler", customer_id=42))
        assert exc_info.value.kind == EntityKind.CUSTOMER

    def test_usage_records_only_through_record_stock_usage(self):
        store = _store()
        with pytest.raises(InvalidEntity):
            store.create(StockUsageRecord(item_id=1, job_id=1, quantity_used=1, used_at=T0))

    def test_snapshots_are_copies(self):
        store = _store()
        store.create(Customer("Acme"))
        snapshot = store.list_customers()
        store.create(Customer("Birch"))
        assert len(snapshot) == 1
        assert len(store.list_customers()) == 2

    def test_mark_invoice_paid(self):
        store = _store()
        customer = store.create(Customer("Acme"))
        invoice = store.create(_invoice(customer.id))
        paid = store.mark_invoice_paid(invoice.id)
        assert paid.payment_status == PaymentStatus.PAID

    def test_deactivate_technician(self):
        store = _store()
        tech = store.create(Technician("Ana"))
        assert store.deactivate_technician(tech.id).status == TechnicianStatus.INACTIVE

    def test_mark_missing_invoice_paid(self):
        with pytest.raises(EntityNotFound):
            _store().mark_invoice_paid(7)


# ══════════════════════════════════════════════════════════════
# FILTERED READS
# ══════════════════════════════════════════════════════════════

class TestFilteredReads:
    def _seed(self):
        store = _store()
        acme = store.create(Customer("Acme", company="Acme Heating", email="ops@acme.test"))
        birch = store.create(Customer("Birch", company="Birch Homes"))
        ana = store.create(Technician("Ana"))
        store.create(Job("Boiler", acme.id, status=JobStatus.NEW, priority=JobPriority.HIGH,
                         assigned_technician=ana.id, scheduled_date=T0))
        store.create(Job("Radiator", acme.id, status=JobStatus.COMPLETED,
                         scheduled_date=T0 + timedelta(days=5)))
        store.create(Job("Leak", birch.id, status=JobStatus.NEW))
        store.create(_invoice(acme.id, PaymentStatus.PAID))
        store.create(_invoice(birch.id))
        return store, acme, birch, ana

    def test_jobs_by_status(self):
        store, *_ = self._seed()
        assert [j.title for j in store.jobs_by_status(JobStatus.NEW)] == ["Boiler", "Leak"]

    def test_jobs_by_priority(self):
        store, *_ = self._seed()
        assert [j.title for j in store.jobs_by_priority(JobPriority.HIGH)] == ["Boiler"]

    def test_jobs_by_customer(self):
        store, acme, *_ = self._seed()
        assert [j.title for j in store.jobs_by_customer(acme.id)] == ["Boiler", "Radiator"]

    def test_jobs_by_technician(self):
        store, _, _, ana = self._seed()
        assert [j.title for j in store.jobs_by_technician(ana.id)] == ["Boiler"]

    def test_jobs_by_date_range_skips_unscheduled(self):
        store, *_ = self._seed()
        titles = [j.title for j in store.jobs_by_date_range(T0, T0 + timedelta(days=5))]
        assert titles == ["Boiler", "Radiator"]

    def test_jobs_by_date_range_mixes_naive_and_aware(self):
        store = _store()
        acme = store.create(Customer("Acme"))
        store.create(Job("Aware", acme.id, scheduled_date=T0 + timedelta(hours=1)))
        store.create(Job("Naive", acme.id, scheduled_date=datetime(2025, 6, 1, 15, 0)))
        store.create(Job("Later", acme.id, scheduled_date=datetime(2025, 6, 3, 9, 0)))

        titles = [j.title for j in store.jobs_by_date_range(T0, T0 + timedelta(days=1))]
        assert titles == ["Aware", "Naive"]

    def test_jobs_by_date_range_reads_naive_as_reference_local(self):
        store = InMemoryEntityStore(clock=FixedClock(T0), reference_timezone="America/Chicago")
        acme = store.create(Customer("Acme"))
        # 09:00 Chicago is 14:00 UTC.
        store.create(Job("Morning", acme.id, scheduled_date=datetime(2025, 6, 1, 9, 0)))

        assert store.jobs_by_date_range(T0, T0 + timedelta(hours=1)) == []
        window = store.jobs_by_date_range(T0 + timedelta(hours=2), T0 + timedelta(hours=3))
        assert [j.title for j in window] == ["Morning"]

    def test_invoices(self):
        store, acme, birch, _ = self._seed()
        assert len(store.invoices_by_customer(birch.id)) == 1
        assert [i.customer_id for i in store.invoices_by_status(PaymentStatus.PAID)] == [acme.id]

    def test_search_customers(self):
        store, *_ = self._seed()
        assert [c.name for c in store.search_customers("acme.TEST")] == ["Acme"]
        assert [c.name for c in store.search_customers("homes")] == ["Birch"]
        assert len(store.search_customers("  ")) == 2


# ══════════════════════════════════════════════════════════════
# STOCK USAGE
# ══════════════════════════════════════════════════════════════

class TestRecordStockUsage:
    def _seed(self, store: InMemoryEntityStore, stock: int = 10):
        customer = store.create(Customer("Acme"))
        job = store.create(Job("Boiler", customer.id))
        item = store.create(InventoryItem("FLT-1", "Filter", stock, 2))
        return job, item

    def test_record_and_decrement(self):
        store = _store()
        job, item = self._seed(store)
        record = store.record_stock_usage(item.id, job.id, 3)
        assert record.applied
        assert record.used_at == T0
        assert store.get(EntityKind.INVENTORY_ITEM, item.id).quantity_in_stock == 7
        assert store.stock_usage_by_job(job.id) == [record]

    def test_rejects_non_positive_quantity(self):
        store = _store()
        job, item = self._seed(store)
        with pytest.raises(InvalidEntity):
            store.record_stock_usage(item.id, job.id, 0)
        assert store.list_stock_usage() == []

    def test_insufficient_stock_writes_nothing(self):
        store = _store()
        job, item = self._seed(store, stock=2)
        with pytest.raises(InsufficientStock) as exc_info:
            store.record_stock_usage(item.id, job.id, 3)
        assert exc_info.value.available == 2
        assert store.list_stock_usage() == []
        assert store.get(EntityKind.INVENTORY_ITEM, item.id).quantity_in_stock == 2

    def test_missing_item_or_job(self):
        store = _store()
        job, item = self._seed(store)
        with pytest.raises(EntityNotFound):
            store.record_stock_usage(99, job.id, 1)
        with pytest.raises(EntityNotFound):
            store.record_stock_usage(item.id, 99, 1)

    def test_failed_decrement_leaves_detectable_record(self):
        store = FailingDecrementStore(clock=FixedClock(T0))
        job, item = self._seed(store)
        with pytest.raises(CompoundWriteFailure) as exc_info:
            store.record_stock_usage(item.id, job.id, 4)

        failure = exc_info.value
        assert failure.item_id == item.id
        assert isinstance(failure.cause, RuntimeError)

        [dangling] = store.list_stock_usage()
        assert dangling.id == failure.usage_id
        assert not dangling.applied
        assert store.get(EntityKind.INVENTORY_ITEM, item.id).quantity_in_stock == 10

    def test_apply_pending_usage_repairs(self):
        store = FailingDecrementStore(clock=FixedClock(T0))
        job, item = self._seed(store)
        with pytest.raises(CompoundWriteFailure) as exc_info:
            store.record_stock_usage(item.id, job.id, 4)

        store.healthy = True
        repaired = store.apply_pending_usage(exc_info.value.usage_id)
        assert repaired.applied
        assert store.get(EntityKind.INVENTORY_ITEM, item.id).quantity_in_stock == 6

        # Second apply is a no-op.
        store.apply_pending_usage(repaired.id)
        assert store.get(EntityKind.INVENTORY_ITEM, item.id).quantity_in_stock == 6
