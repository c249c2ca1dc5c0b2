"""
FieldOps Core Projections — View Registry & Invalidation Table
================================================================
Central catalog of every derived view in the system.

INVALIDATION_TABLE is the one place that says which views a mutation
of each entity kind makes stale. Nothing else in the codebase
decides invalidation; call sites only report what kind they wrote.

Tracks per view: builder, required params, health.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from core.caching.errors import UnknownViewKey
from core.domain import EntityKind


class ViewKey(Enum):
    DASHBOARD_STATS = "dashboardStats"
    JOB_STATUS_SUMMARY = "jobStatusSummary"
    REVENUE_BY_MONTH = "revenueByMonth"
    TECHNICIAN_PERFORMANCE = "technicianPerformance"
    INVENTORY_USAGE_REPORT = "inventoryUsageReport"
    LOW_STOCK_ITEMS = "lowStockItems"
    SCHEDULE_INDEX = "scheduleIndex"
    RECENT_JOBS = "recentJobs"
    CUSTOMER_ACTIVITY = "customerActivity"
    TECHNICIAN_WORKLOAD = "technicianWorkload"
    INVENTORY_VALUATION = "inventoryValuation"
    STOCK_USAGE_BY_JOB = "stockUsageByJob"
    STOCK_RECONCILIATION = "stockReconciliation"

    @classmethod
    def parse(cls, value: Any) -> "ViewKey":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownViewKey(str(value)) from None


# ══════════════════════════════════════════════════════════════
# INVALIDATION TABLE
# ══════════════════════════════════════════════════════════════

# revenueByMonth reads invoices only: a job write never touches it.
INVALIDATION_TABLE: Mapping[EntityKind, Tuple[ViewKey, ...]] = MappingProxyType({
    EntityKind.CUSTOMER: (
        ViewKey.DASHBOARD_STATS,
        ViewKey.RECENT_JOBS,
        ViewKey.CUSTOMER_ACTIVITY,
    ),
    EntityKind.TECHNICIAN: (
        ViewKey.DASHBOARD_STATS,
        ViewKey.TECHNICIAN_PERFORMANCE,
        ViewKey.TECHNICIAN_WORKLOAD,
        ViewKey.RECENT_JOBS,
    ),
    EntityKind.JOB: (
        ViewKey.DASHBOARD_STATS,
        ViewKey.JOB_STATUS_SUMMARY,
        ViewKey.TECHNICIAN_PERFORMANCE,
        ViewKey.SCHEDULE_INDEX,
        ViewKey.RECENT_JOBS,
        ViewKey.CUSTOMER_ACTIVITY,
        ViewKey.TECHNICIAN_WORKLOAD,
    ),
    EntityKind.INVOICE: (
        ViewKey.DASHBOARD_STATS,
        ViewKey.REVENUE_BY_MONTH,
        ViewKey.CUSTOMER_ACTIVITY,
    ),
    EntityKind.INVENTORY_ITEM: (
        ViewKey.LOW_STOCK_ITEMS,
        ViewKey.INVENTORY_USAGE_REPORT,
        ViewKey.INVENTORY_VALUATION,
        ViewKey.STOCK_USAGE_BY_JOB,
        ViewKey.STOCK_RECONCILIATION,
    ),
    EntityKind.STOCK_USAGE: (
        ViewKey.LOW_STOCK_ITEMS,
        ViewKey.INVENTORY_USAGE_REPORT,
        ViewKey.STOCK_USAGE_BY_JOB,
        ViewKey.STOCK_RECONCILIATION,
    ),
})


def dependencies_of(
    view_key: ViewKey,
    table: Mapping[EntityKind, Tuple[ViewKey, ...]] = INVALIDATION_TABLE,
) -> FrozenSet[EntityKind]:
    """Entity kinds whose mutation invalidates `view_key`."""
    return frozenset(kind for kind, keys in table.items() if view_key in keys)


# ══════════════════════════════════════════════════════════════
# VIEW INFO
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ViewInfo:
    """Metadata about a registered view."""

    view_key: ViewKey
    builder: Callable[..., Any]
    required_params: Tuple[str, ...] = ()
    description: str = ""


@dataclass
class ViewHealth:
    """Mutable health status for a view."""

    last_computed_at: Optional[datetime] = None
    recomputes: int = 0
    failures: int = 0
    is_healthy: bool = True
    error_message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "last_computed_at": self.last_computed_at.isoformat() if self.last_computed_at else None,
            "recomputes": self.recomputes,
            "failures": self.failures,
            "is_healthy": self.is_healthy,
            "error_message": self.error_message,
        }


# ══════════════════════════════════════════════════════════════
# VIEW REGISTRY
# ══════════════════════════════════════════════════════════════

class ViewRegistry:
    """
    Catalog of views, their builders and the table that invalidates them.

    Used for:
    - Resolving a view key to its builder
    - Fanning a mutation out to the view keys it makes stale
    - Monitoring view health
    """

    def __init__(
        self, table: Mapping[EntityKind, Tuple[ViewKey, ...]] = INVALIDATION_TABLE
    ) -> None:
        self._table = table
        self._views: Dict[ViewKey, ViewInfo] = {}
        self._health: Dict[ViewKey, ViewHealth] = {}

    def register(self, info: ViewInfo) -> None:
        self._views[info.view_key] = info
        self._health.setdefault(info.view_key, ViewHealth())

    def get(self, view_key: ViewKey) -> Optional[ViewInfo]:
        return self._views.get(view_key)

    def require(self, view_key: Any) -> ViewInfo:
        """Resolve a key or raise UnknownViewKey."""
        key = ViewKey.parse(view_key)
        info = self._views.get(key)
        if info is None:
            raise UnknownViewKey(key.value)
        return info

    def views_for_kind(self, kind: EntityKind) -> Tuple[ViewKey, ...]:
        """Registered views a mutation of `kind` invalidates."""
        return tuple(k for k in self._table.get(kind, ()) if k in self._views)

    def dependencies_of(self, view_key: ViewKey) -> FrozenSet[EntityKind]:
        return dependencies_of(view_key, self._table)

    def list_all(self) -> List[ViewInfo]:
        return list(self._views.values())

    def get_health(self, view_key: ViewKey) -> Optional[ViewHealth]:
        return self._health.get(view_key)

    def list_unhealthy(self) -> List[ViewKey]:
        return [key for key, health in self._health.items() if not health.is_healthy]

    def record_recompute(self, view_key: ViewKey, computed_at: datetime) -> None:
        health = self._health.get(view_key)
        if health:
            health.recomputes += 1
            health.last_computed_at = computed_at
            health.is_healthy = True
            health.error_message = ""

    def record_error(self, view_key: ViewKey, error_message: str) -> None:
        health = self._health.get(view_key)
        if health:
            health.failures += 1
            health.is_healthy = False
            health.error_message = error_message

    def summary(self) -> Dict[str, Any]:
        return {
            key.value: {
                "depends_on": sorted(k.value for k in self.dependencies_of(key)),
                "required_params": list(info.required_params),
                "health": self._health[key].to_dict() if key in self._health else None,
            }
            for key, info in self._views.items()
        }
