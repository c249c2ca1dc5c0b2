"""
FieldOps Core Time — Clock
============================
Views never call datetime.now() themselves. "Today", the revenue
window and the upcoming-jobs cut-off are all measured against a
Clock handed to the ViewService, so the same inputs always produce
the same view.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Injectable time source."""

    def now_utc(self) -> datetime:
        """Return current UTC time."""
        ...  # pragma: no cover


class SystemClock:
    """Production clock backed by the system time."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Test clock pinned to one instant.

    Usage:
        clock = FixedClock(datetime(2025, 6, 1, 12, tzinfo=timezone.utc))
        clock.advance(hours=13)   # now on the next calendar day
    """

    def __init__(self, fixed_dt: datetime) -> None:
        if fixed_dt.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime.")
        self._fixed_dt = fixed_dt

    def now_utc(self) -> datetime:
        return self._fixed_dt

    def advance(self, **delta: float) -> None:
        """Move the pinned instant forward by timedelta keyword arguments."""
        self._fixed_dt = self._fixed_dt + timedelta(**delta)

    def set(self, fixed_dt: datetime) -> None:
        if fixed_dt.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime.")
        self._fixed_dt = fixed_dt
