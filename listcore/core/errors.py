"""Exception hierarchy for listcore engines.

Argument and bounds problems use :class:`ValueError` and :class:`IndexError`
directly. Policy rejections (duplicates, disabled items) are never raised;
they are reported through sentinel return values.
"""

from __future__ import annotations


class ListCoreError(Exception):
    """Base class for all custom errors raised by listcore."""


class ItemNotFoundError(ListCoreError, LookupError):
    """Raised when an item or group referenced by value is not present."""


class UnsupportedOperationError(ListCoreError, TypeError):
    """Raised when data lacks a capability required by an operation."""


class FilteringNotSupportedError(UnsupportedOperationError):
    """Raised when filtering without a predicate on non-matchable data."""


class SortingNotSupportedError(UnsupportedOperationError):
    """Raised when sorting without a key on data lacking natural ordering."""


class SelectionNotSupportedError(ListCoreError, RuntimeError):
    """Raised when selecting under a choice mode that forbids it."""


class ConcurrentModificationError(ListCoreError, RuntimeError):
    """Raised when a store changed structurally during iteration."""


class ReentrantMutationError(ListCoreError, RuntimeError):
    """Raised when a listener mutates a store while a structural event is dispatched."""


__all__ = [
    "ConcurrentModificationError",
    "FilteringNotSupportedError",
    "ItemNotFoundError",
    "ListCoreError",
    "ReentrantMutationError",
    "SelectionNotSupportedError",
    "SortingNotSupportedError",
    "UnsupportedOperationError",
]
