"""
FieldOps Core Projections — Recompute Metrics
===============================================
Track how long view recomputes take and how often they fail.

All metrics are in-memory counters, disposable and rebuildable.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Any, Dict, List, Optional


# ══════════════════════════════════════════════════════════════
# VIEW METRICS
# ══════════════════════════════════════════════════════════════

@dataclass
class ViewMetrics:
    """Recompute timings for a single view key."""

    view_key: str
    recomputes: int = 0
    failures: int = 0
    last_duration_ms: float = 0.0
    avg_duration_ms: float = 0.0
    peak_duration_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "view_key": self.view_key,
            "recomputes": self.recomputes,
            "failures": self.failures,
            "last_duration_ms": round(self.last_duration_ms, 2),
            "avg_duration_ms": round(self.avg_duration_ms, 4),
            "peak_duration_ms": round(self.peak_duration_ms, 4),
        }


# ══════════════════════════════════════════════════════════════
# METRICS COLLECTOR
# ══════════════════════════════════════════════════════════════

class MetricsCollector:
    """
    Collects recompute metrics for all views.

    Signature of record_recompute matches ViewCache's on_recompute
    hook, so a collector can be passed straight in.
    """

    def __init__(self, max_samples: int = 1000) -> None:
        self._metrics: Dict[str, ViewMetrics] = {}
        self._durations: Dict[str, List[float]] = {}  # view key → recent durations (ms)
        self._max_samples = max_samples
        self._lock = Lock()

    def _ensure(self, view_key: str) -> ViewMetrics:
        if view_key not in self._metrics:
            self._metrics[view_key] = ViewMetrics(view_key=view_key)
            self._durations[view_key] = []
        return self._metrics[view_key]

    def record_recompute(self, view_key: str, duration_ms: float, ok: bool = True) -> None:
        with self._lock:
            m = self._ensure(view_key)
            if not ok:
                m.failures += 1
                return
            m.recomputes += 1
            m.last_duration_ms = duration_ms

            durations = self._durations[view_key]
            durations.append(duration_ms)
            if len(durations) > self._max_samples:
                durations.pop(0)

            m.avg_duration_ms = sum(durations) / len(durations)
            m.peak_duration_ms = max(m.peak_duration_ms, duration_ms)

    def get(self, view_key: str) -> Optional[ViewMetrics]:
        return self._metrics.get(view_key)

    def summary(self) -> Dict[str, Any]:
        with self._lock:
            return {name: m.to_dict() for name, m in self._metrics.items()}

    def slowest_views(self, top_n: int = 5) -> List[ViewMetrics]:
        """Views with the highest average recompute time."""
        ranked = sorted(
            self._metrics.values(),
            key=lambda m: m.avg_duration_ms,
            reverse=True,
        )
        return ranked[:top_n]
