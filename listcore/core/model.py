"""Domain models for stateful item collections."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import TYPE_CHECKING, Any

from .errors import FilteringNotSupportedError

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .item_store import ItemStore

# Returned by index-producing insertions that were rejected by policy.
REJECTED = -1

# Group filter flag hiding groups without visible children.
FLAG_FILTER_EMPTY_GROUPS = 1 << 30


class Order(str, Enum):
    """Enumerate supported sort directions."""

    ASCENDING = "ascending"
    DESCENDING = "descending"


class ChoiceMode(str, Enum):
    """Enumerate how many items may be selected at once."""

    NONE = "none"
    SINGLE = "single"
    MULTIPLE = "multiple"


class SelectionScope(str, Enum):
    """Enumerate which levels of a two-level structure are selectable."""

    GROUPS_ONLY = "groups_only"
    CHILDREN_ONLY = "children_only"
    GROUPS_AND_CHILDREN = "groups_and_children"

    @property
    def groups_selectable(self) -> bool:
        """Return ``True`` when groups may carry a selection."""
        return self is not SelectionScope.CHILDREN_ONLY

    @property
    def children_selectable(self) -> bool:
        """Return ``True`` when children may carry a selection."""
        return self is not SelectionScope.GROUPS_ONLY


class Matchable(ABC):
    """Capability of data that can decide whether it matches a filter query.

    Data types opt in by subclassing or by ``Matchable.register(cls)``.
    """

    @abstractmethod
    def match(self, query: str, flags: int) -> bool:
        """Return ``True`` if this data matches ``query`` under ``flags``."""


class Orderable(ABC):
    """Capability of data with a natural ordering.

    Subclasses implement ``__lt__``; built-in scalar types are registered
    below so plain strings and numbers sort without a key.
    """

    @abstractmethod
    def __lt__(self, other: Any) -> bool:
        """Return ``True`` if this data sorts before ``other``."""


for _natural in (str, bytes, int, float, Decimal, Fraction, date, datetime, tuple):
    Orderable.register(_natural)


def is_matchable(data: Any) -> bool:
    """Return ``True`` if ``data`` implements :class:`Matchable`."""
    return isinstance(data, Matchable)


def is_orderable(data: Any) -> bool:
    """Return ``True`` if ``data`` implements :class:`Orderable`."""
    return isinstance(data, Orderable)


@dataclass(frozen=True)
class FilterQuery:
    """Value object identifying an active filter by query text and flags."""

    query: str
    flags: int = 0

    def __post_init__(self) -> None:
        """Reject a missing query text."""
        if self.query is None:
            raise ValueError("The query may not be None")


@dataclass(eq=False)
class Item:
    """Wrap one data object together with its per-item flags.

    Items compare by identity; the wrapped ``data`` drives lookup and
    duplicate detection.
    """

    data: Any
    state: int = 0
    enabled: bool = True
    selected: bool = False

    def __post_init__(self) -> None:
        """Reject missing data."""
        if self.data is None:
            raise ValueError("The data may not be None")

    def matches(self, query: str, flags: int) -> bool:
        """Delegate matching to the data's :class:`Matchable` capability."""
        if not is_matchable(self.data):
            raise FilteringNotSupportedError(
                f"Filtering is not supported by data of type {type(self.data).__name__}"
            )
        return self.data.match(query, flags)


@dataclass(eq=False)
class Group(Item):
    """Item owning an independent store of child items.

    ``allow_duplicate_children`` is ``None`` while the group inherits the
    engine-wide child duplicate policy.
    """

    children: ItemStore | None = None
    expanded: bool = False
    allow_duplicate_children: bool | None = None

    def matches(self, query: str, flags: int) -> bool:
        """Hide empty groups under :data:`FLAG_FILTER_EMPTY_GROUPS`, else match data."""
        if flags == FLAG_FILTER_EMPTY_GROUPS:
            return not self.is_empty
        return super().matches(query, flags)

    @property
    def child_count(self) -> int:
        """Return the number of currently visible children."""
        return 0 if self.children is None else self.children.count

    @property
    def is_empty(self) -> bool:
        """Return ``True`` when no child is visible."""
        return self.child_count == 0


__all__ = [
    "ChoiceMode",
    "FLAG_FILTER_EMPTY_GROUPS",
    "FilterQuery",
    "Group",
    "Item",
    "Matchable",
    "Order",
    "Orderable",
    "REJECTED",
    "SelectionScope",
    "is_matchable",
    "is_orderable",
]
