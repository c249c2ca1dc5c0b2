"""
FieldOps Core Projections — Registry, Invalidation & Metrics
==============================================================
Central infrastructure for managing derived views.

Doctrine: views are disposable, derived from entity snapshots,
and recomputed deterministically after the mutations that touch them.
"""

from core.projections.registry import (
    INVALIDATION_TABLE,
    ViewHealth,
    ViewInfo,
    ViewKey,
    ViewRegistry,
    dependencies_of,
)
from core.projections.metrics import MetricsCollector, ViewMetrics

__all__ = [
    "INVALIDATION_TABLE",
    "ViewHealth",
    "ViewInfo",
    "ViewKey",
    "ViewRegistry",
    "dependencies_of",
    "MetricsCollector",
    "ViewMetrics",
]
