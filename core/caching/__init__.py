"""
FieldOps Core Caching — Public API
====================================
Single-flight view cache with mutation-driven invalidation.

Doctrine: a cached view is disposable, never a source of truth,
and always reproducible from entity snapshots.
"""

from core.caching.errors import (
    InvalidViewParams,
    RecomputeFailure,
    UnknownViewKey,
    ViewCacheError,
    ViewPending,
)
from core.caching.view_cache import (
    CachedValue,
    CacheEntry,
    CacheKey,
    CacheStats,
    Params,
    ViewCache,
    ViewState,
    normalize_params,
)

__all__ = [
    "CacheEntry",
    "CacheKey",
    "CacheStats",
    "CachedValue",
    "InvalidViewParams",
    "Params",
    "RecomputeFailure",
    "UnknownViewKey",
    "ViewCache",
    "ViewCacheError",
    "ViewPending",
    "ViewState",
    "normalize_params",
]
