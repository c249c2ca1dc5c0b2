"""
FieldOps Core Views — View Service
====================================
The one object the presentation layer talks to.

    get_view(key, params)       → ViewResult (never raises on recompute
                                  failure or timeout)
    notify_mutation(kind)       → invalidates exactly INVALIDATION_TABLE[kind]
    record_stock_usage(...)     → the single write the view layer performs
    repair_stock_levels()       → applies decrements that never landed

The service owns its ViewCache; there is no global instance. Pass
the service by reference to whatever needs view reads.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from core.caching import (
    InvalidViewParams,
    RecomputeFailure,
    ViewCache,
    ViewPending,
    ViewState,
    normalize_params,
)
from core.config import ViewSettings
from core.domain import EntityKind, MutationAction, StockUsageRecord
from core.entity_store import CompoundWriteFailure, EntityStore, EntityStoreError
from core.projections import MetricsCollector, ViewInfo, ViewKey, ViewRegistry
from core.time import Clock, SystemClock
from core.views.builders import BuildContext, default_registry
from projections.guards import ViewResult, ViewStatus
from projections.inventory import dangling_usage

logger = logging.getLogger("fieldops.views")
inventory_logger = logging.getLogger("fieldops.inventory")

_USE_SETTINGS = object()


class ViewService:
    """
    Derived views over an Entity Store, cached and kept current by
    mutation notifications.

    Usage:
        service = ViewService(store, settings=ViewSettings.from_django())
        result = service.get_view(ViewKey.DASHBOARD_STATS)
        store.update(job)
        service.notify_mutation(EntityKind.JOB, MutationAction.UPDATED, job.id)
    """

    def __init__(
        self,
        store: EntityStore,
        cache: Optional[ViewCache] = None,
        clock: Optional[Clock] = None,
        settings: Optional[ViewSettings] = None,
        registry: Optional[ViewRegistry] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self._store = store
        self._clock = clock or SystemClock()
        self._settings = settings or ViewSettings()
        self._registry = registry or default_registry()
        self._metrics = metrics or MetricsCollector()
        self._cache = cache or ViewCache(
            clock=self._clock, on_recompute=self._metrics.record_recompute
        )

    @property
    def store(self) -> EntityStore:
        return self._store

    @property
    def cache(self) -> ViewCache:
        return self._cache

    @property
    def registry(self) -> ViewRegistry:
        return self._registry

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def settings(self) -> ViewSettings:
        return self._settings

    # ══════════════════════════════════════════════════════════
    # READS
    # ══════════════════════════════════════════════════════════

    def get_view(
        self,
        view_key: Union[ViewKey, str],
        params: Optional[Mapping[str, Any]] = None,
        timeout: Any = _USE_SETTINGS,
    ) -> ViewResult:
        """
        Read a view, recomputing it first if a mutation made it stale.

        `timeout` (seconds) bounds the wait on someone else's in-flight
        recompute; it defaults to settings.wait_timeout_seconds.

        Raises UnknownViewKey / InvalidViewParams for bad requests only.
        """
        info = self._registry.require(view_key)
        clean = self._check_params(info, params)
        key = info.view_key.value
        normalized = normalize_params(clean)
        wait = self._settings.wait_timeout_seconds if timeout is _USE_SETTINGS else timeout

        try:
            cached = self._cache.get(
                key, normalized, lambda: self._build(info, clean), timeout=wait
            )
        except RecomputeFailure as exc:
            last = self._cache.last_known(key, normalized)
            if last is None:
                logger.warning(f"View {key} unavailable: {exc}")
                return ViewResult(key, normalized, ViewStatus.UNAVAILABLE, error=exc)
            logger.warning(f"View {key} serving last value from {last.computed_at.isoformat()}: {exc}")
            return ViewResult(
                key, normalized, ViewStatus.STALE_FALLBACK,
                value=last.value, computed_at=last.computed_at, error=exc,
            )
        except ViewPending as exc:
            last = self._cache.last_known(key, normalized)
            return ViewResult(
                key, normalized, ViewStatus.PENDING,
                value=last.value if last else None,
                computed_at=last.computed_at if last else None,
                error=exc,
            )

        return ViewResult(
            key, normalized, ViewStatus.FRESH,
            value=cached.value, computed_at=cached.computed_at,
        )

    def view_state(
        self, view_key: Union[ViewKey, str], params: Optional[Mapping[str, Any]] = None
    ) -> ViewState:
        info = self._registry.require(view_key)
        clean = self._check_params(info, params)
        return self._cache.state(info.view_key.value, normalize_params(clean))

    def _check_params(
        self, info: ViewInfo, params: Optional[Mapping[str, Any]]
    ) -> Dict[str, int]:
        params = dict(params or {})
        key = info.view_key.value
        missing = [p for p in info.required_params if p not in params]
        if missing:
            raise InvalidViewParams(key, f"missing {', '.join(missing)}")
        extra = sorted(set(params) - set(info.required_params))
        if extra:
            raise InvalidViewParams(key, f"unexpected {', '.join(extra)}")

        clean: Dict[str, int] = {}
        for name, value in params.items():
            # Every view parameter is an entity id: an int or a digit string.
            if isinstance(value, str) and value.strip().isdigit():
                ident = int(value)
            elif isinstance(value, int) and not isinstance(value, bool):
                ident = value
            else:
                raise InvalidViewParams(key, f"{name} must be an integer id, got {value!r}")
            if ident <= 0:
                raise InvalidViewParams(key, f"{name} must be a positive id, got {value!r}")
            clean[name] = ident
        return clean

    def _build(self, info: ViewInfo, params: Mapping[str, int]) -> Any:
        ctx = BuildContext(store=self._store, settings=self._settings, now=self._clock.now_utc())
        try:
            value = info.builder(ctx, params)
        except Exception as exc:
            self._registry.record_error(info.view_key, f"{type(exc).__name__}: {exc}")
            raise
        self._registry.record_recompute(info.view_key, ctx.now)
        return value

    # ══════════════════════════════════════════════════════════
    # INVALIDATION
    # ══════════════════════════════════════════════════════════

    def notify_mutation(
        self,
        kind: Union[EntityKind, str],
        action: Optional[MutationAction] = None,
        entity_id: Optional[int] = None,
    ) -> Tuple[ViewKey, ...]:
        """
        Report a committed create/update/delete of one entity kind.

        Marks every dependent view key (all parameter variants) stale
        and returns the keys. Action and id only feed the log line:
        invalidation is by kind.
        """
        kind = kind if isinstance(kind, EntityKind) else EntityKind(kind)
        keys = self._registry.views_for_kind(kind)
        touched = self._cache.invalidate_many(k.value for k in keys)

        what = kind.value
        if action is not None:
            what += f" {action.value}"
        if entity_id is not None:
            what += f" #{entity_id}"
        logger.info(
            f"Mutation {what}: invalidated {', '.join(k.value for k in keys) or 'nothing'} "
            f"({touched} cached)"
        )
        return keys

    # ══════════════════════════════════════════════════════════
    # STOCK USAGE
    # ══════════════════════════════════════════════════════════

    def record_stock_usage(
        self,
        item_id: int,
        job_id: int,
        quantity_used: int,
        used_at: Optional[datetime] = None,
    ) -> StockUsageRecord:
        """
        Record usage and decrement stock as one operation.

        On CompoundWriteFailure the usage record may exist without its
        decrement; inventory views are still invalidated so
        stockReconciliation reports it, and the error propagates.
        """
        used_at = used_at or self._clock.now_utc()
        try:
            record = self._store.record_stock_usage(item_id, job_id, quantity_used, used_at)
        except CompoundWriteFailure as exc:
            inventory_logger.warning(
                f"Stock usage for item #{item_id} on job #{job_id} left dangling: {exc}"
            )
            self._notify_stock_change(MutationAction.CREATED, exc.usage_id)
            raise

        inventory_logger.info(
            f"Usage #{record.id}: {quantity_used} x item #{item_id} on job #{job_id}"
        )
        self._notify_stock_change(MutationAction.CREATED, record.id)
        return record

    def repair_stock_levels(self) -> List[StockUsageRecord]:
        """
        Apply every missing decrement; returns the records repaired.

        A record that cannot be repaired (e.g. its item was deleted)
        is logged and stays dangling; the rest are still applied.
        """
        pending = dangling_usage(self._store.list_stock_usage())
        if not pending:
            return []

        repaired: List[StockUsageRecord] = []
        for record in pending:
            try:
                repaired.append(self._store.apply_pending_usage(record.id))
            except EntityStoreError:
                inventory_logger.error(
                    f"Could not repair usage #{record.id} (item #{record.item_id})",
                    exc_info=True,
                )

        inventory_logger.info(f"Repaired {len(repaired)} of {len(pending)} dangling usage record(s)")
        if repaired:
            self._notify_stock_change(MutationAction.UPDATED, None)
        return repaired

    def _notify_stock_change(self, action: MutationAction, usage_id: Optional[int]) -> None:
        self.notify_mutation(EntityKind.STOCK_USAGE, action, usage_id)
        self.notify_mutation(EntityKind.INVENTORY_ITEM, MutationAction.UPDATED)
