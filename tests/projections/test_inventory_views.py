"""
Tests — Low Stock, Usage, Valuation & Reconciliation
======================================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from core.domain import InventoryItem, StockUsageRecord
from projections.inventory import (
    InventoryUsageSummary,
    dangling_usage,
    inventory_usage_report,
    inventory_valuation,
    low_stock_items,
    rank_usage,
    reconcile_stock,
    recompute_stock,
    usage_for_job,
)
from projections.references import UNKNOWN_ITEM


T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _item(id: int, qty: int, threshold: int = 2, cost: str = "1.00", category: str = "") -> InventoryItem:
    return InventoryItem(f"SKU-{id}", f"Item {id}", qty, threshold,
                         unit_cost=Decimal(cost), category=category, id=id)


def _usage(id: int, item_id: int, qty: int, job_id: int = 1, applied: bool = True) -> StockUsageRecord:
    return StockUsageRecord(item_id=item_id, job_id=job_id, quantity_used=qty,
                            used_at=T0, applied=applied, id=id)


class TestLowStock:
    def test_boundary_inclusive_and_input_order(self):
        items = [_item(1, 5, 5), _item(2, 9, 5), _item(3, 0, 1), _item(4, 6, 5)]
        assert [i.id for i in low_stock_items(items)] == [1, 3]

    def test_empty(self):
        assert low_stock_items([]) == []


class TestUsageReport:
    def test_totals_only_for_used_items(self):
        items = [_item(1, 10), _item(2, 10)]
        report = inventory_usage_report(items, [_usage(1, 1, 3), _usage(2, 1, 2)])
        assert report == [InventoryUsageSummary(1, "Item 1", 5)]

    def test_usage_on_deleted_item_excluded(self):
        assert inventory_usage_report([_item(1, 10)], [_usage(1, 99, 4)]) == []

    def test_rank_usage(self):
        summaries = [
            InventoryUsageSummary(1, "a", 3),
            InventoryUsageSummary(2, "b", 0),
            InventoryUsageSummary(3, "c", 9),
        ]
        assert [s.item_id for s in rank_usage(summaries)] == [3, 1]
        assert [s.item_id for s in rank_usage(summaries, limit=1)] == [3]

    def test_usage_for_job(self):
        lines = usage_for_job(1, [_usage(1, 1, 2), _usage(2, 99, 1), _usage(3, 1, 5, job_id=2)], [_item(1, 10)])
        assert [(l.record.id, l.item_name) for l in lines] == [(1, "Item 1"), (2, UNKNOWN_ITEM)]


class TestValuation:
    def test_totals(self):
        items = [
            _item(1, 4, cost="2.50", category="Filters"),
            _item(2, 1, threshold=3, cost="10.00", category="Valves"),
            _item(3, 0, cost="7.00", category="Filters"),
            _item(4, 10, cost="1.00"),
        ]
        v = inventory_valuation(items)
        assert v.item_count == 4
        assert v.categories == ("Filters", "Valves")
        assert v.total_value == Decimal("30.00")
        assert v.low_stock_count == 2


class TestReconciliation:
    def test_usage_reconciliation_scenario(self):
        # 10 in stock, two uses of 3 and 2, both decrements applied.
        item = _item(1, 5)
        usage = [_usage(1, 1, 3), _usage(2, 1, 2)]
        [summary] = inventory_usage_report([item], usage)
        assert summary.total_used == 5
        assert recompute_stock(10, usage) == 5 == item.quantity_in_stock

        [rec] = reconcile_stock([item], usage)
        assert rec.consistent
        assert rec.expected_quantity == 5
        assert rec.opening_quantity == 10

    def test_dangling_record_detected(self):
        # Second decrement never landed: stored stock still 7.
        item = _item(1, 7)
        usage = [_usage(1, 1, 3), _usage(2, 1, 2, applied=False)]
        assert [r.id for r in dangling_usage(usage)] == [2]

        [rec] = reconcile_stock([item], usage)
        assert not rec.consistent
        assert rec.pending_decrement == 2
        assert rec.expected_quantity == 5
        assert rec.opening_quantity == 10

    def test_unused_item(self):
        [rec] = reconcile_stock([_item(1, 4)], [])
        assert (rec.total_used, rec.pending_decrement, rec.expected_quantity) == (0, 0, 4)
