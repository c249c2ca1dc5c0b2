"""
FieldOps Core Config — View Settings
======================================
Tunables for the derived-view layer. Values come from the
FIELDOPS_VIEWS dict in Django settings, never from engine code.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from core.time import resolve_timezone


class ConfigurationError(ValueError):
    """A FIELDOPS_VIEWS value is out of range or unusable."""

    def __init__(self, setting: str, reason: str):
        self.setting = setting
        self.reason = reason
        super().__init__(f"FIELDOPS_VIEWS['{setting}']: {reason}")


@dataclass(frozen=True)
class ViewSettings:
    """
    Frozen configuration for ViewService.

    reference_timezone:  the one timezone every day/month key is cut in.
    revenue_window_days: trailing window behind totalRevenueThisMonth.
    wait_timeout_seconds: how long a reader waits on an in-flight
                          recompute before getting PENDING; None waits.
    """

    reference_timezone: str = "UTC"
    revenue_window_days: int = 30
    upcoming_jobs_limit: int = 20
    recent_jobs_limit: int = 8
    top_usage_limit: int = 10
    wait_timeout_seconds: Optional[float] = None

    def __post_init__(self) -> None:
        for name in (
            "revenue_window_days",
            "upcoming_jobs_limit",
            "recent_jobs_limit",
            "top_usage_limit",
        ):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ConfigurationError(name, f"must be a positive integer, got {value!r}.")
        if self.wait_timeout_seconds is not None and self.wait_timeout_seconds < 0:
            raise ConfigurationError(
                "wait_timeout_seconds", f"must be >= 0 or None, got {self.wait_timeout_seconds!r}."
            )
        try:
            resolve_timezone(self.reference_timezone)
        except (KeyError, ValueError) as exc:
            raise ConfigurationError(
                "reference_timezone", f"unknown timezone {self.reference_timezone!r}."
            ) from exc

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Any]]) -> "ViewSettings":
        """Build from a plain dict; missing keys keep their defaults, unknown keys are rejected."""
        raw = dict(raw or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ConfigurationError(unknown[0], "unknown setting.")
        return cls(**raw)

    @classmethod
    def from_django(cls) -> "ViewSettings":
        from django.conf import settings

        return cls.from_mapping(getattr(settings, "FIELDOPS_VIEWS", None))
