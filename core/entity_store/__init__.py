"""
FieldOps Entity Store — Public API
====================================
Store contract, snapshot filters, errors and the in-memory store.

The ORM-backed store lives in core.entity_store.repository and is
imported explicitly, so this package stays importable without a
configured Django project.
"""

from core.entity_store.contracts import ENTITY_TYPES, EntityStore, kind_of
from core.entity_store.errors import (
    CompoundWriteFailure,
    EntityNotFound,
    EntityStoreError,
    InsufficientStock,
    InvalidEntity,
)
from core.entity_store.memory import InMemoryEntityStore

__all__ = [
    "ENTITY_TYPES",
    "CompoundWriteFailure",
    "EntityNotFound",
    "EntityStore",
    "EntityStoreError",
    "InMemoryEntityStore",
    "InsufficientStock",
    "InvalidEntity",
    "kind_of",
]
