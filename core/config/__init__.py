"""
FieldOps Core Config — Public API
====================================
View-layer settings read from Django settings.
Doctrine: no tunable is hardcoded in aggregation logic.
"""

from core.config.settings import ConfigurationError, ViewSettings

__all__ = [
    "ConfigurationError",
    "ViewSettings",
]
