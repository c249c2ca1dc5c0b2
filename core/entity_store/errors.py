"""
FieldOps Entity Store — Errors
================================
Write-path failures raised by Entity Store implementations.

Reads never raise for dangling foreign keys; those are a data
condition the aggregation layer tolerates, not an error.
"""

from __future__ import annotations

from typing import Optional


class EntityStoreError(Exception):
    """Base error for Entity Store operations."""
    pass


class EntityNotFound(EntityStoreError):
    """No record of the given kind exists under the given id."""

    def __init__(self, kind, entity_id: int):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(
            f"{getattr(kind, 'value', kind)} #{entity_id} does not exist."
        )


class InvalidEntity(EntityStoreError):
    """A record was rejected before any write took place."""

    def __init__(self, kind, reason: str):
        self.kind = kind
        self.reason = reason
        super().__init__(f"Invalid {getattr(kind, 'value', kind)}: {reason}")


class InsufficientStock(EntityStoreError):
    """Usage would take an item's stock below zero."""

    def __init__(self, item_id: int, requested: int, available: int):
        self.item_id = item_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Inventory item #{item_id} has {available} in stock, "
            f"cannot use {requested}."
        )


class CompoundWriteFailure(EntityStoreError):
    """
    The usage record and its stock decrement did not both commit.

    usage_id is set when the usage record was written and is now
    dangling (applied=False); it is None when nothing was written.
    """

    def __init__(self, usage_id: Optional[int], item_id: int, cause: Exception):
        self.usage_id = usage_id
        self.item_id = item_id
        self.cause = cause
        state = (
            f"usage record #{usage_id} is pending reconciliation"
            if usage_id is not None
            else "nothing was written"
        )
        super().__init__(
            f"Stock usage for item #{item_id} failed "
            f"({type(cause).__name__}: {cause}); {state}."
        )
