"""
FieldOps Core Time — Public API
=================================
Explicit clock protocol and temporal helpers.
"""

from core.time.clock import Clock, FixedClock, SystemClock
from core.time.temporal import (
    TimeWindow,
    TimezoneLike,
    day_key,
    month_key,
    resolve_timezone,
    same_day,
    start_of_day,
    to_reference,
    trailing_window,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "TimeWindow",
    "TimezoneLike",
    "day_key",
    "month_key",
    "resolve_timezone",
    "same_day",
    "start_of_day",
    "to_reference",
    "trailing_window",
]
