"""
FieldOps Core Caching — Errors
================================
"""

from __future__ import annotations

from typing import Optional


class ViewCacheError(Exception):
    """Base error for view cache operations."""
    pass


class RecomputeFailure(ViewCacheError):
    """
    Recomputing a stale view failed.

    The view stays Stale with its previous value untouched; every
    caller that was waiting on the same computation receives this
    same exception instance.
    """

    def __init__(self, view_key: str, cause: BaseException):
        self.view_key = view_key
        self.cause = cause
        super().__init__(
            f"Recompute of view '{view_key}' failed: "
            f"{type(cause).__name__}: {cause}"
        )


class ViewPending(ViewCacheError):
    """The caller stopped waiting; the computation itself continues."""

    def __init__(self, view_key: str, timeout: Optional[float]):
        self.view_key = view_key
        self.timeout = timeout
        super().__init__(
            f"View '{view_key}' still computing after {timeout}s."
        )


class UnknownViewKey(ViewCacheError):
    def __init__(self, view_key: str):
        self.view_key = view_key
        super().__init__(f"View key '{view_key}' is not registered.")


class InvalidViewParams(ViewCacheError):
    def __init__(self, view_key: str, reason: str):
        self.view_key = view_key
        self.reason = reason
        super().__init__(f"Invalid params for view '{view_key}': {reason}")
