"""
FieldOps Projections — View Result Guard
==========================================
What a view read hands back to the presentation layer.

A read never throws at the page: a failed recompute degrades to the
last value that was computed, or to an explicit UNAVAILABLE when
there is none; a read that gave up waiting reports PENDING while
the computation carries on for everyone else.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Tuple


class ViewStatus(Enum):
    FRESH = "FRESH"
    STALE_FALLBACK = "STALE_FALLBACK"
    PENDING = "PENDING"
    UNAVAILABLE = "UNAVAILABLE"


@dataclass(frozen=True)
class ViewResult:
    view_key: str
    params: Tuple[Tuple[str, Any], ...]
    status: ViewStatus
    value: Any = None
    computed_at: Optional[datetime] = None
    error: Optional[BaseException] = None

    @property
    def available(self) -> bool:
        """True when `value` may be rendered."""
        if self.status == ViewStatus.FRESH:
            return True
        return self.computed_at is not None

    @property
    def is_fresh(self) -> bool:
        return self.status == ViewStatus.FRESH
