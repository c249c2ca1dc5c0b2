"""
FieldOps Core Time — Temporal Helpers
=======================================
Pure functions for windows and calendar keys.

Every calendar computation goes through one reference timezone:
aware datetimes are converted into it, naive datetimes are taken
to already be expressed in it. Bucketing and "is this today"
comparisons therefore always agree with each other.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from functools import lru_cache
from typing import Optional, Union
from zoneinfo import ZoneInfo

TimezoneLike = Union[str, tzinfo]


# ══════════════════════════════════════════════════════════════
# TIME WINDOW — Closed interval [start, end]
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TimeWindow:
    """
    A closed time interval [start, end].

    Invariant: start <= end (enforced at construction).
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"TimeWindow start ({self.start}) must be <= end ({self.end})."
            )

    def contains(self, dt: datetime) -> bool:
        """Check if datetime falls within window (inclusive)."""
        return self.start <= dt <= self.end

    def duration(self) -> timedelta:
        return self.end - self.start


def trailing_window(now: datetime, days: int) -> TimeWindow:
    """The `days`-long window ending at `now` (inclusive on both ends)."""
    if days <= 0:
        raise ValueError(f"Window length must be positive, got {days} days.")
    return TimeWindow(start=now - timedelta(days=days), end=now)


# ══════════════════════════════════════════════════════════════
# REFERENCE TIMEZONE
# ══════════════════════════════════════════════════════════════

@lru_cache(maxsize=32)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def resolve_timezone(tz: TimezoneLike) -> tzinfo:
    """Accept a zone name ("UTC", "America/Chicago") or a tzinfo."""
    if isinstance(tz, str):
        return _zone(tz)
    return tz


def to_reference(dt: datetime, tz: TimezoneLike) -> datetime:
    """
    Express `dt` as wall-clock time in the reference timezone.

    Naive datetimes are assumed to already be reference-local.
    """
    zone = resolve_timezone(tz)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=zone)
    return dt.astimezone(zone)


def day_key(dt: datetime, tz: TimezoneLike) -> date:
    """Calendar day of `dt` in the reference timezone."""
    return to_reference(dt, tz).date()


def month_key(dt: datetime, tz: TimezoneLike) -> str:
    """'YYYY-MM' label of `dt` in the reference timezone."""
    local = to_reference(dt, tz)
    return f"{local.year:04d}-{local.month:02d}"


def start_of_day(dt: datetime, tz: TimezoneLike) -> datetime:
    """Midnight (reference timezone) of the day containing `dt`."""
    zone = resolve_timezone(tz)
    return datetime.combine(day_key(dt, zone), time.min, tzinfo=zone)


def same_day(a: Optional[datetime], b: datetime, tz: TimezoneLike) -> bool:
    if a is None:
        return False
    return day_key(a, tz) == day_key(b, tz)
