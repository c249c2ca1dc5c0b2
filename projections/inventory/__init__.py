"""
FieldOps Projections — Inventory Views
========================================
Low stock, usage totals, valuation and stock reconciliation.

Usage records are the source of truth for consumption. An item's
quantity_in_stock is a cached figure that record_stock_usage keeps
in step; a usage record with applied=False marks a decrement that
never landed, and reconcile_stock reports what the stock level
should be once it does.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from core.domain import InventoryItem, StockUsageRecord
from projections.references import NameLookup


# ══════════════════════════════════════════════════════════════
# LOW STOCK
# ══════════════════════════════════════════════════════════════

def low_stock_items(items: Iterable[InventoryItem]) -> List[InventoryItem]:
    """Items at or below their threshold, in input order."""
    return [item for item in items if item.is_low_stock]


# ══════════════════════════════════════════════════════════════
# USAGE REPORT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class InventoryUsageSummary:
    item_id: int
    item_name: str
    total_used: int


def _usage_totals(records: Iterable[StockUsageRecord]) -> Dict[int, int]:
    totals: Dict[int, int] = defaultdict(int)
    for record in records:
        totals[record.item_id] += record.quantity_used
    return totals


def inventory_usage_report(
    items: Iterable[InventoryItem], usage_records: Iterable[StockUsageRecord]
) -> List[InventoryUsageSummary]:
    """
    Σ quantity_used per item that has at least one usage record.

    No ordering is promised; see rank_usage for the presentation
    order. Usage against deleted items is left out.
    """
    totals = _usage_totals(usage_records)
    return [
        InventoryUsageSummary(item_id=item.id, item_name=item.name, total_used=totals[item.id])
        for item in items
        if item.id in totals
    ]


def rank_usage(
    summaries: Iterable[InventoryUsageSummary], limit: int = 10
) -> List[InventoryUsageSummary]:
    """Highest usage first, zero totals dropped, capped at `limit`."""
    ranked = sorted(
        (s for s in summaries if s.total_used > 0),
        key=lambda s: s.total_used,
        reverse=True,
    )
    return ranked[:limit]


@dataclass(frozen=True)
class JobUsageLine:
    record: StockUsageRecord
    item_name: str


def usage_for_job(
    job_id: int,
    usage_records: Iterable[StockUsageRecord],
    items: Iterable[InventoryItem],
) -> List[JobUsageLine]:
    names = NameLookup(items=items)
    return [
        JobUsageLine(record=r, item_name=names.item_name(r.item_id))
        for r in usage_records
        if r.job_id == job_id
    ]


# ══════════════════════════════════════════════════════════════
# VALUATION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class InventoryValuation:
    item_count: int
    categories: Tuple[str, ...]
    total_value: Decimal
    low_stock_count: int


def inventory_valuation(items: Iterable[InventoryItem]) -> InventoryValuation:
    items = list(items)
    return InventoryValuation(
        item_count=len(items),
        categories=tuple(sorted({i.category for i in items if i.category})),
        total_value=sum((i.stock_value for i in items), Decimal("0")),
        low_stock_count=sum(1 for i in items if i.is_low_stock),
    )


# ══════════════════════════════════════════════════════════════
# RECONCILIATION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StockReconciliation:
    item_id: int
    item_name: str
    recorded_quantity: int   # quantity_in_stock as stored
    total_used: int          # Σ usage, applied or not
    pending_decrement: int   # Σ usage whose decrement never landed

    @property
    def expected_quantity(self) -> int:
        return self.recorded_quantity - self.pending_decrement

    @property
    def opening_quantity(self) -> int:
        """Stock before any recorded usage."""
        return self.expected_quantity + self.total_used

    @property
    def consistent(self) -> bool:
        return self.pending_decrement == 0


def dangling_usage(usage_records: Iterable[StockUsageRecord]) -> List[StockUsageRecord]:
    return [r for r in usage_records if not r.applied]


def recompute_stock(opening_quantity: int, usage_records: Iterable[StockUsageRecord]) -> int:
    """Opening stock minus every recorded use."""
    return opening_quantity - sum(r.quantity_used for r in usage_records)


def reconcile_stock(
    items: Iterable[InventoryItem], usage_records: Iterable[StockUsageRecord]
) -> List[StockReconciliation]:
    usage_records = list(usage_records)
    totals = _usage_totals(usage_records)
    pending = _usage_totals(dangling_usage(usage_records))
    return [
        StockReconciliation(
            item_id=item.id,
            item_name=item.name,
            recorded_quantity=item.quantity_in_stock,
            total_used=totals.get(item.id, 0),
            pending_decrement=pending.get(item.id, 0),
        )
        for item in items
    ]
