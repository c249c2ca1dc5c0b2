"""
Tests — View Registry, Invalidation Table & Metrics
=====================================================
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from core.caching import UnknownViewKey
from core.domain import EntityKind
from core.projections.metrics import MetricsCollector, ViewMetrics
from core.projections.registry import (
    INVALIDATION_TABLE,
    ViewInfo,
    ViewKey,
    ViewRegistry,
    dependencies_of,
)
from core.views import default_registry


T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _noop(ctx, params):
    return None


# ══════════════════════════════════════════════════════════════
# INVALIDATION TABLE
# ══════════════════════════════════════════════════════════════


class TestInvalidationTable:
    def test_every_entity_kind_has_an_entry(self):
        assert set(INVALIDATION_TABLE) == set(EntityKind)

    def test_every_view_key_is_reachable(self):
        reachable = {k for keys in INVALIDATION_TABLE.values() for k in keys}
        assert reachable == set(ViewKey)

    def test_job_edges(self):
        keys = set(INVALIDATION_TABLE[EntityKind.JOB])
        assert {
            ViewKey.DASHBOARD_STATS,
            ViewKey.JOB_STATUS_SUMMARY,
            ViewKey.TECHNICIAN_PERFORMANCE,
            ViewKey.SCHEDULE_INDEX,
        } <= keys

    def test_job_mutation_does_not_touch_revenue(self):
        assert ViewKey.REVENUE_BY_MONTH not in INVALIDATION_TABLE[EntityKind.JOB]
        assert dependencies_of(ViewKey.REVENUE_BY_MONTH) == frozenset({EntityKind.INVOICE})

    def test_invoice_edges(self):
        assert {ViewKey.DASHBOARD_STATS, ViewKey.REVENUE_BY_MONTH} <= set(
            INVALIDATION_TABLE[EntityKind.INVOICE]
        )

    def test_inventory_edges(self):
        for kind in (EntityKind.INVENTORY_ITEM, EntityKind.STOCK_USAGE):
            assert {ViewKey.LOW_STOCK_ITEMS, ViewKey.INVENTORY_USAGE_REPORT} <= set(
                INVALIDATION_TABLE[kind]
            )

    def test_schedule_depends_on_jobs_only(self):
        assert dependencies_of(ViewKey.SCHEDULE_INDEX) == frozenset({EntityKind.JOB})

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            INVALIDATION_TABLE[EntityKind.JOB] = ()


# ══════════════════════════════════════════════════════════════
# VIEW REGISTRY
# ══════════════════════════════════════════════════════════════


class TestViewRegistry:
    def test_register_and_get(self):
        reg = ViewRegistry()
        info = ViewInfo(ViewKey.LOW_STOCK_ITEMS, _noop)
        reg.register(info)
        assert reg.get(ViewKey.LOW_STOCK_ITEMS) is info

    def test_require_accepts_string_keys(self):
        reg = ViewRegistry()
        reg.register(ViewInfo(ViewKey.LOW_STOCK_ITEMS, _noop))
        assert reg.require("lowStockItems").view_key == ViewKey.LOW_STOCK_ITEMS

    def test_require_unknown(self):
        reg = ViewRegistry()
        with pytest.raises(UnknownViewKey):
            reg.require("profitAndLoss")
        with pytest.raises(UnknownViewKey):
            reg.require(ViewKey.LOW_STOCK_ITEMS)

    def test_views_for_kind_only_lists_registered(self):
        reg = ViewRegistry()
        reg.register(ViewInfo(ViewKey.LOW_STOCK_ITEMS, _noop))
        assert reg.views_for_kind(EntityKind.STOCK_USAGE) == (ViewKey.LOW_STOCK_ITEMS,)
        assert reg.views_for_kind(EntityKind.JOB) == ()

    def test_custom_table(self):
        reg = ViewRegistry(table={EntityKind.JOB: (ViewKey.LOW_STOCK_ITEMS,)})
        reg.register(ViewInfo(ViewKey.LOW_STOCK_ITEMS, _noop))
        assert reg.views_for_kind(EntityKind.JOB) == (ViewKey.LOW_STOCK_ITEMS,)
        assert reg.views_for_kind(EntityKind.STOCK_USAGE) == ()

    def test_health_tracking(self):
        reg = ViewRegistry()
        reg.register(ViewInfo(ViewKey.LOW_STOCK_ITEMS, _noop))
        reg.record_error(ViewKey.LOW_STOCK_ITEMS, "ConnectionError: down")
        assert reg.list_unhealthy() == [ViewKey.LOW_STOCK_ITEMS]
        reg.record_recompute(ViewKey.LOW_STOCK_ITEMS, T0)
        health = reg.get_health(ViewKey.LOW_STOCK_ITEMS)
        assert health.is_healthy
        assert health.failures == 1
        assert health.recomputes == 1
        assert health.last_computed_at == T0

    def test_default_registry_covers_every_key(self):
        reg = default_registry()
        assert {info.view_key for info in reg.list_all()} == set(ViewKey)
        assert reg.require(ViewKey.CUSTOMER_ACTIVITY).required_params == ("customer_id",)

    def test_summary(self):
        summary = default_registry().summary()
        assert summary["revenueByMonth"]["depends_on"] == ["invoice"]
        assert summary["stockUsageByJob"]["required_params"] == ["job_id"]


# ══════════════════════════════════════════════════════════════
# METRICS
# ══════════════════════════════════════════════════════════════


class TestMetricsCollector:
    def test_record_recompute(self):
        m = MetricsCollector()
        m.record_recompute("dashboardStats", 4.0)
        m.record_recompute("dashboardStats", 2.0)
        metrics = m.get("dashboardStats")
        assert metrics.recomputes == 2
        assert metrics.avg_duration_ms == 3.0
        assert metrics.peak_duration_ms == 4.0
        assert metrics.last_duration_ms == 2.0

    def test_failures_do_not_skew_timings(self):
        m = MetricsCollector()
        m.record_recompute("dashboardStats", 1.0)
        m.record_recompute("dashboardStats", 500.0, ok=False)
        metrics = m.get("dashboardStats")
        assert metrics.failures == 1
        assert metrics.peak_duration_ms == 1.0

    def test_sample_window(self):
        m = MetricsCollector(max_samples=2)
        for ms in (100.0, 1.0, 3.0):
            m.record_recompute("lowStockItems", ms)
        assert m.get("lowStockItems").avg_duration_ms == 2.0

    def test_slowest_views(self):
        m = MetricsCollector()
        m.record_recompute("fast", 1.0)
        m.record_recompute("slow", 9.0)
        assert [v.view_key for v in m.slowest_views(top_n=1)] == ["slow"]

    def test_summary(self):
        m = MetricsCollector()
        m.record_recompute("lowStockItems", 1.23456)
        assert m.summary()["lowStockItems"]["last_duration_ms"] == 1.23

    def test_unknown_view(self):
        assert MetricsCollector().get("nothing") is None
        assert isinstance(ViewMetrics("x").to_dict(), dict)
