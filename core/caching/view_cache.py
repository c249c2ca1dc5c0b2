"""
FieldOps Core Caching — Single-Flight View Cache
==================================================
Keyed cache of computed views, driven purely by mutation events.

Per-key state machine:

    (absent) ──read──▶ COMPUTING ──ok──▶ FRESH ──invalidate──▶ STALE
                           │                                     │
                           └──fail──▶ STALE ◀──────read──────────┘

Rules:
- No TTL. A value stays FRESH until a mutation invalidates its view.
- At most one computation per key at a time. Readers that arrive
  while a computation for the current generation is running wait
  on it and receive the same result (or the same failure).
- Invalidation bumps the key's generation. A computation that
  started before the bump still completes and hands its result to
  the readers already waiting, but leaves the key STALE. Readers
  arriving after the bump wait for that flight to finish and then
  start a new one, so they never see pre-mutation data.
- A failed computation leaves the previous value in place and the
  key STALE.
- A reader that gives up waiting (timeout) does not cancel the
  computation; it completes and is cached for everyone else.
- Locking is per key. A small registry lock only guards creation
  of entries, never a computation.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from threading import Lock
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from core.caching.errors import RecomputeFailure, ViewPending
from core.time import Clock, SystemClock

logger = logging.getLogger("fieldops.views")

Params = Tuple[Tuple[str, Any], ...]
CacheKey = Tuple[str, Params]


def normalize_params(params: Optional[Mapping[str, Any]] = None) -> Params:
    """Canonical, hashable form of view parameters."""
    if not params:
        return ()
    return tuple(sorted(params.items()))


# ══════════════════════════════════════════════════════════════
# STATE & ENTRY
# ══════════════════════════════════════════════════════════════

class ViewState(Enum):
    FRESH = "FRESH"
    STALE = "STALE"
    COMPUTING = "COMPUTING"


@dataclass
class CacheEntry:
    """Mutable per-key record. Every field is guarded by `lock`."""

    key: CacheKey
    state: ViewState = ViewState.STALE
    value: Any = None
    computed_at: Optional[datetime] = None
    generation: int = 0
    inflight: Optional[Future] = None
    inflight_generation: int = -1
    waiters: int = 0
    lock: Lock = field(default_factory=Lock, repr=False)

    @property
    def has_value(self) -> bool:
        return self.computed_at is not None


@dataclass(frozen=True)
class CachedValue:
    """Last computed value of a key, whatever its current state."""

    value: Any
    computed_at: datetime
    state: ViewState


# ══════════════════════════════════════════════════════════════
# CACHE STATISTICS
# ══════════════════════════════════════════════════════════════

@dataclass
class CacheStats:
    hits: int = 0
    recomputes: int = 0
    joins: int = 0
    failures: int = 0
    invalidations: int = 0
    total_entries: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.recomputes + self.joins
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "recomputes": self.recomputes,
            "joins": self.joins,
            "failures": self.failures,
            "invalidations": self.invalidations,
            "total_entries": self.total_entries,
            "hit_rate": round(self.hit_rate, 4),
        }


# ══════════════════════════════════════════════════════════════
# VIEW CACHE
# ══════════════════════════════════════════════════════════════

class ViewCache:
    """
    Single-flight cache of derived views.

    Owned by whoever composes the system (normally a ViewService);
    there is no module-level instance.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        on_recompute: Optional[Callable[[str, float, bool], None]] = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._on_recompute = on_recompute
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._keys_by_view: Dict[str, Set[CacheKey]] = {}
        self._registry_lock = Lock()
        self._stats_lock = Lock()
        self._stats = CacheStats()

    # ── entries ───────────────────────────────────────────────

    def _entry(self, key: CacheKey) -> CacheEntry:
        with self._registry_lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = CacheEntry(key=key)
                self._entries[key] = entry
                self._keys_by_view.setdefault(key[0], set()).add(key)
                self._stats.total_entries = len(self._entries)
            return entry

    def _entries_for(self, view_key: str) -> List[CacheEntry]:
        with self._registry_lock:
            return [self._entries[k] for k in self._keys_by_view.get(view_key, ())]

    def _count(self, name: str, n: int = 1) -> None:
        with self._stats_lock:
            setattr(self._stats, name, getattr(self._stats, name) + n)

    # ── reads ─────────────────────────────────────────────────

    def get(
        self,
        view_key: str,
        params: Params,
        compute: Callable[[], Any],
        timeout: Optional[float] = None,
    ) -> CachedValue:
        """
        Return the view value, computing it at most once per generation.

        Every caller served by one computation gets the same CachedValue,
        and so the very same value object.

        Raises:
            RecomputeFailure: the computation this call relied on failed.
            ViewPending:      `timeout` elapsed first (computation continues).
        """
        entry = self._entry((view_key, params))
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            with entry.lock:
                if entry.state == ViewState.FRESH:
                    hit = CachedValue(entry.value, entry.computed_at, entry.state)
                    leader = joined = False
                    future = None
                elif entry.state == ViewState.COMPUTING:
                    future = entry.inflight
                    joined = entry.inflight_generation == entry.generation
                    leader = False
                    entry.waiters += 1
                else:
                    future = Future()
                    generation = entry.generation
                    entry.inflight = future
                    entry.inflight_generation = generation
                    entry.state = ViewState.COMPUTING
                    leader = True
                    joined = False

            if future is None:
                self._count("hits")
                logger.debug(f"View hit: {view_key} {params}")
                return hit

            if leader:
                self._count("recomputes")
                self._run(entry, future, generation, compute)
                return future.result()

            try:
                remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
                if joined:
                    self._count("joins")
                    logger.debug(f"View join: {view_key} {params}")
                    return future.result(timeout=remaining)
                # Flight predates the latest invalidation: wait it out, then go again.
                future.exception(timeout=remaining)
            except FutureTimeout:
                raise ViewPending(view_key, timeout) from None
            finally:
                with entry.lock:
                    entry.waiters -= 1

    def _run(
        self,
        entry: CacheEntry,
        future: Future,
        generation: int,
        compute: Callable[[], Any],
    ) -> None:
        view_key = entry.key[0]
        started = time.perf_counter()
        try:
            value = compute()
        except BaseException as exc:
            duration_ms = (time.perf_counter() - started) * 1000
            failure = RecomputeFailure(view_key, exc)
            with entry.lock:
                entry.state = ViewState.STALE
                entry.inflight = None
            self._count("failures")
            logger.warning(
                f"View recompute failed: {view_key} {entry.key[1]} "
                f"after {duration_ms:.1f}ms: {type(exc).__name__}: {exc}"
            )
            future.set_exception(failure)
            self._report(view_key, duration_ms, False)
            if not isinstance(exc, Exception):
                raise
            return

        duration_ms = (time.perf_counter() - started) * 1000
        computed_at = self._clock.now_utc()
        with entry.lock:
            entry.value = value
            entry.computed_at = computed_at
            entry.inflight = None
            entry.state = (
                ViewState.FRESH if entry.generation == generation else ViewState.STALE
            )
            state = entry.state
        result = CachedValue(value, computed_at, state)
        logger.info(
            f"View recomputed: {view_key} {entry.key[1]} in {duration_ms:.1f}ms "
            f"({state.value})"
        )
        future.set_result(result)
        self._report(view_key, duration_ms, True)

    def _report(self, view_key: str, duration_ms: float, ok: bool) -> None:
        # Waiters are already resolved; a broken hook must not reach them.
        if not self._on_recompute:
            return
        try:
            self._on_recompute(view_key, duration_ms, ok)
        except Exception:
            logger.warning(f"Recompute hook failed for view {view_key}", exc_info=True)

    # ── invalidation ──────────────────────────────────────────

    def invalidate(self, view_key: str) -> int:
        """
        Mark every parameter variant of `view_key` Stale.

        Returns the number of cached keys touched.
        """
        touched = 0
        for entry in self._entries_for(view_key):
            with entry.lock:
                entry.generation += 1
                if entry.state == ViewState.FRESH:
                    entry.state = ViewState.STALE
            touched += 1
        if touched:
            self._count("invalidations", touched)
        return touched

    def invalidate_many(self, view_keys: Iterable[str]) -> int:
        return sum(self.invalidate(k) for k in view_keys)

    def clear(self) -> None:
        """Forget everything, as after a restart. In-flight computations finish unobserved."""
        with self._registry_lock:
            self._entries.clear()
            self._keys_by_view.clear()
            self._stats.total_entries = 0

    # ── introspection ─────────────────────────────────────────

    def state(self, view_key: str, params: Params = ()) -> ViewState:
        """Current state; a key never read is implicitly STALE."""
        with self._registry_lock:
            entry = self._entries.get((view_key, params))
        if entry is None:
            return ViewState.STALE
        with entry.lock:
            return entry.state

    def last_known(self, view_key: str, params: Params = ()) -> Optional[CachedValue]:
        with self._registry_lock:
            entry = self._entries.get((view_key, params))
        if entry is None:
            return None
        with entry.lock:
            if not entry.has_value:
                return None
            return CachedValue(entry.value, entry.computed_at, entry.state)

    def waiters(self, view_key: str, params: Params = ()) -> int:
        """Readers currently blocked on this key's computation."""
        with self._registry_lock:
            entry = self._entries.get((view_key, params))
        if entry is None:
            return 0
        with entry.lock:
            return entry.waiters

    def cached_keys(self) -> List[CacheKey]:
        with self._registry_lock:
            return list(self._entries)

    @property
    def stats(self) -> CacheStats:
        return self._stats

    @property
    def size(self) -> int:
        return len(self._entries)
