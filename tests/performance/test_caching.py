"""
Tests — Single-Flight View Cache with Mutation-Driven Invalidation
====================================================================
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from threading import Event, Thread

import pytest

from core.caching import (
    CacheStats,
    RecomputeFailure,
    ViewCache,
    ViewPending,
    ViewState,
    normalize_params,
)
from core.time import FixedClock


T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _wait_for(predicate, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached")
        time.sleep(0.001)


class Counter:
    """compute() stand-in that counts calls and can be held open."""

    def __init__(self, block: bool = False) -> None:
        self.calls = 0
        self.started = Event()
        self.release = Event()
        if not block:
            self.release.set()

    def __call__(self):
        self.calls += 1
        n = self.calls
        self.started.set()
        assert self.release.wait(5)
        return {"call": n}


class TestCacheBasic:
    def test_absent_key_is_stale(self):
        c = ViewCache(clock=FixedClock(T0))
        assert c.state("dashboardStats") == ViewState.STALE
        assert c.last_known("dashboardStats") is None

    def test_first_read_computes_then_hits(self):
        c = ViewCache(clock=FixedClock(T0))
        compute = Counter()
        first = c.get("dashboardStats", (), compute)
        second = c.get("dashboardStats", (), compute)
        assert compute.calls == 1
        assert first.value is second.value
        assert first.computed_at == T0
        assert c.state("dashboardStats") == ViewState.FRESH

    def test_params_are_separate_keys(self):
        c = ViewCache(clock=FixedClock(T0))
        compute = Counter()
        c.get("customerActivity", normalize_params({"customer_id": 1}), compute)
        c.get("customerActivity", normalize_params({"customer_id": 2}), compute)
        assert compute.calls == 2
        assert c.size == 2

    def test_normalize_params_is_order_independent(self):
        assert normalize_params({"b": 2, "a": 1}) == (("a", 1), ("b", 2))
        assert normalize_params(None) == ()


class TestInvalidation:
    def test_invalidate_then_recompute(self):
        c = ViewCache(clock=FixedClock(T0))
        compute = Counter()
        c.get("lowStockItems", (), compute)
        assert c.invalidate("lowStockItems") == 1
        assert c.state("lowStockItems") == ViewState.STALE
        assert c.get("lowStockItems", (), compute).value == {"call": 2}

    def test_other_keys_untouched(self):
        c = ViewCache(clock=FixedClock(T0))
        c.get("lowStockItems", (), Counter())
        c.get("revenueByMonth", (), Counter())
        c.invalidate("lowStockItems")
        assert c.state("revenueByMonth") == ViewState.FRESH

    def test_invalidate_hits_every_param_variant(self):
        c = ViewCache(clock=FixedClock(T0))
        for cid in (1, 2, 3):
            c.get("customerActivity", normalize_params({"customer_id": cid}), Counter())
        assert c.invalidate("customerActivity") == 3
        for cid in (1, 2, 3):
            assert c.state("customerActivity", normalize_params({"customer_id": cid})) == ViewState.STALE

    def test_invalidate_unknown_key_is_noop(self):
        c = ViewCache(clock=FixedClock(T0))
        assert c.invalidate("neverRead") == 0

    def test_stale_keeps_last_value(self):
        c = ViewCache(clock=FixedClock(T0))
        c.get("lowStockItems", (), Counter())
        c.invalidate("lowStockItems")
        last = c.last_known("lowStockItems")
        assert last.value == {"call": 1}
        assert last.state == ViewState.STALE

    def test_clear_forgets_everything(self):
        c = ViewCache(clock=FixedClock(T0))
        c.get("lowStockItems", (), Counter())
        c.clear()
        assert c.size == 0
        assert c.state("lowStockItems") == ViewState.STALE


class TestSingleFlight:
    def test_concurrent_readers_share_one_computation(self):
        c = ViewCache(clock=FixedClock(T0))
        compute = Counter(block=True)
        results = []

        def reader():
            results.append(c.get("dashboardStats", (), compute))

        leader = Thread(target=reader)
        leader.start()
        assert compute.started.wait(5)
        assert c.state("dashboardStats") == ViewState.COMPUTING

        followers = [Thread(target=reader) for _ in range(7)]
        for t in followers:
            t.start()
        _wait_for(lambda: c.waiters("dashboardStats") == 7)

        compute.release.set()
        for t in [leader, *followers]:
            t.join(5)

        assert compute.calls == 1
        assert len(results) == 8
        assert all(r.value is results[0].value for r in results)
        assert c.stats.joins == 7
        assert c.stats.recomputes == 1

    def test_mutation_during_flight_forces_new_computation(self):
        c = ViewCache(clock=FixedClock(T0))
        compute = Counter(block=True)
        results = {}

        leader = Thread(target=lambda: results.setdefault("leader", c.get("jobStatusSummary", (), compute)))
        leader.start()
        assert compute.started.wait(5)

        c.invalidate("jobStatusSummary")
        late = Thread(target=lambda: results.setdefault("late", c.get("jobStatusSummary", (), compute)))
        late.start()
        _wait_for(lambda: c.waiters("jobStatusSummary") == 1)

        compute.release.set()
        leader.join(5)
        late.join(5)

        assert compute.calls == 2
        assert results["leader"].value == {"call": 1}
        assert results["late"].value == {"call": 2}
        assert c.state("jobStatusSummary") == ViewState.FRESH

    def test_flight_superseded_by_mutation_ends_stale(self):
        c = ViewCache(clock=FixedClock(T0))
        compute = Counter(block=True)
        t = Thread(target=lambda: c.get("scheduleIndex", (), compute))
        t.start()
        assert compute.started.wait(5)
        c.invalidate("scheduleIndex")
        compute.release.set()
        t.join(5)
        assert c.state("scheduleIndex") == ViewState.STALE
        assert c.get("scheduleIndex", (), compute).value == {"call": 2}

    def test_waiter_timeout_does_not_cancel(self):
        c = ViewCache(clock=FixedClock(T0))
        compute = Counter(block=True)
        leader = Thread(target=lambda: c.get("revenueByMonth", (), compute))
        leader.start()
        assert compute.started.wait(5)

        with pytest.raises(ViewPending) as exc_info:
            c.get("revenueByMonth", (), compute, timeout=0.01)
        assert exc_info.value.view_key == "revenueByMonth"
        assert c.waiters("revenueByMonth") == 0

        compute.release.set()
        leader.join(5)
        assert c.state("revenueByMonth") == ViewState.FRESH
        assert c.get("revenueByMonth", (), compute).value == {"call": 1}
        assert compute.calls == 1


class TestFailure:
    def test_failure_leaves_key_stale_with_previous_value(self):
        c = ViewCache(clock=FixedClock(T0))
        c.get("dashboardStats", (), Counter())
        c.invalidate("dashboardStats")

        def boom():
            raise ConnectionError("store unreachable")

        with pytest.raises(RecomputeFailure) as exc_info:
            c.get("dashboardStats", (), boom)
        assert isinstance(exc_info.value.cause, ConnectionError)
        assert c.state("dashboardStats") == ViewState.STALE
        assert c.last_known("dashboardStats").value == {"call": 1}
        assert c.stats.failures == 1

    def test_waiters_receive_the_same_failure(self):
        c = ViewCache(clock=FixedClock(T0))
        started, release = Event(), Event()
        errors = []

        def boom():
            started.set()
            release.wait(5)
            raise ConnectionError("store unreachable")

        def reader():
            try:
                c.get("lowStockItems", (), boom)
            except RecomputeFailure as exc:
                errors.append(exc)

        leader = Thread(target=reader)
        leader.start()
        assert started.wait(5)
        follower = Thread(target=reader)
        follower.start()
        _wait_for(lambda: c.waiters("lowStockItems") == 1)
        release.set()
        leader.join(5)
        follower.join(5)

        assert len(errors) == 2
        assert errors[0] is errors[1]

    def test_next_read_after_failure_retries(self):
        c = ViewCache(clock=FixedClock(T0))
        with pytest.raises(RecomputeFailure):
            c.get("lowStockItems", (), lambda: 1 / 0)
        assert c.get("lowStockItems", (), lambda: "ok").value == "ok"


class TestRecomputeHook:
    def test_hook_reports_outcome(self):
        seen = []
        c = ViewCache(clock=FixedClock(T0), on_recompute=lambda key, ms, ok: seen.append((key, ok)))
        c.get("lowStockItems", (), lambda: [])
        with pytest.raises(RecomputeFailure):
            c.get("revenueByMonth", (), lambda: 1 / 0)
        assert seen == [("lowStockItems", True), ("revenueByMonth", False)]

    def test_raising_hook_still_resolves_joined_readers(self, caplog):
        def broken_sink(key, ms, ok):
            raise RuntimeError("metrics sink down")

        c = ViewCache(clock=FixedClock(T0), on_recompute=broken_sink)
        compute = Counter(block=True)
        results = {}

        leader = Thread(target=lambda: results.setdefault("leader", c.get("dashboardStats", (), compute)))
        leader.start()
        assert compute.started.wait(5)
        follower = Thread(
            target=lambda: results.setdefault("follower", c.get("dashboardStats", (), compute, timeout=5))
        )
        follower.start()
        _wait_for(lambda: c.waiters("dashboardStats") == 1)

        with caplog.at_level("WARNING", logger="fieldops.views"):
            compute.release.set()
            leader.join(5)
            follower.join(5)

        assert results["leader"].value == {"call": 1}
        assert results["follower"].value is results["leader"].value
        assert compute.calls == 1
        assert "Recompute hook failed" in caplog.text


class TestCacheStats:
    def test_hit_rate(self):
        s = CacheStats(hits=3, recomputes=1)
        assert s.hit_rate == 0.75

    def test_hit_rate_zero_when_empty(self):
        assert CacheStats().hit_rate == 0.0

    def test_to_dict(self):
        c = ViewCache(clock=FixedClock(T0))
        c.get("lowStockItems", (), lambda: [])
        c.get("lowStockItems", (), lambda: [])
        d = c.stats.to_dict()
        assert d["hits"] == 1
        assert d["recomputes"] == 1
        assert d["total_entries"] == 1
