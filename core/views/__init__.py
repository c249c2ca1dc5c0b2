"""
FieldOps Core Views — Public API
==================================
ViewService and the view key catalog.
"""

from core.projections.registry import INVALIDATION_TABLE, ViewKey
from core.views.builders import BuildContext, default_registry
from core.views.service import ViewService

__all__ = [
    "BuildContext",
    "INVALIDATION_TABLE",
    "ViewKey",
    "ViewService",
    "default_registry",
]
