"""Listener registry and event payloads for collection engines."""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from .errors import ReentrantMutationError
from .model import FilterQuery, Order


class EventCategory(str, Enum):
    """Enumerate listener categories an observer can subscribe to."""

    STRUCTURE = "structure"
    ENABLE_STATE = "enable_state"
    ITEM_STATE = "item_state"
    SELECTION = "selection"
    FILTER = "filter"
    SORTING = "sorting"
    EXPANSION = "expansion"


class EventKind(str, Enum):
    """Enumerate every event an engine may emit."""

    ADDED = "added"
    REMOVED = "removed"
    ENABLED = "enabled"
    DISABLED = "disabled"
    STATE_CHANGED = "state_changed"
    SELECTED = "selected"
    UNSELECTED = "unselected"
    FILTER_APPLIED = "filter_applied"
    FILTER_RESET = "filter_reset"
    SORTED = "sorted"
    EXPANDED = "expanded"
    COLLAPSED = "collapsed"

    @property
    def category(self) -> EventCategory:
        """Return the listener category this kind is dispatched to."""
        return _KIND_CATEGORIES[self]


_KIND_CATEGORIES = {
    EventKind.ADDED: EventCategory.STRUCTURE,
    EventKind.REMOVED: EventCategory.STRUCTURE,
    EventKind.ENABLED: EventCategory.ENABLE_STATE,
    EventKind.DISABLED: EventCategory.ENABLE_STATE,
    EventKind.STATE_CHANGED: EventCategory.ITEM_STATE,
    EventKind.SELECTED: EventCategory.SELECTION,
    EventKind.UNSELECTED: EventCategory.SELECTION,
    EventKind.FILTER_APPLIED: EventCategory.FILTER,
    EventKind.FILTER_RESET: EventCategory.FILTER,
    EventKind.SORTED: EventCategory.SORTING,
    EventKind.EXPANDED: EventCategory.EXPANSION,
    EventKind.COLLAPSED: EventCategory.EXPANSION,
}


class Level(str, Enum):
    """Enumerate the structural level an event refers to."""

    ITEM = "item"
    GROUP = "group"
    CHILD = "child"


@dataclass(frozen=True)
class Event:
    """Payload delivered to listeners after a mutation took effect.

    ``group``/``group_index`` are only set for :attr:`Level.CHILD` events.
    ``items`` carries the resulting view for filter and sort events.
    """

    kind: EventKind
    level: Level
    source: Any
    data: Any = None
    index: int = -1
    group: Any = None
    group_index: int = -1
    state: int | None = None
    query: FilterQuery | None = None
    order: Order | None = None
    items: tuple[Any, ...] = ()

    @property
    def category(self) -> EventCategory:
        """Return the category of :attr:`kind`."""
        return self.kind.category


Listener = Callable[[Event], None]


class ListenerHub:
    """Ordered, duplicate-suppressing multicast registry.

    Dispatch is synchronous and follows registration order. While a
    structural event is being dispatched, mutating engine operations raise
    :class:`ReentrantMutationError`.
    """

    def __init__(self) -> None:
        """Create an empty registry with one ordered set per category."""
        self._listeners: dict[EventCategory, dict[Listener, None]] = {
            category: {} for category in EventCategory
        }
        self._structural_depth = 0
        self._muted = 0

    def add_listener(
        self,
        listener: Listener,
        categories: Iterable[EventCategory] | None = None,
    ) -> Callable[[], None]:
        """Register *listener* and return a callable removing it again.

        Registering the same listener twice for a category is a no-op.
        ``categories`` defaults to every category.
        """
        if listener is None:
            raise ValueError("The listener may not be None")
        selected = tuple(categories) if categories is not None else tuple(EventCategory)
        for category in selected:
            self._listeners[EventCategory(category)].setdefault(listener, None)

        def _remove() -> None:
            self.remove_listener(listener, selected)

        return _remove

    def remove_listener(
        self,
        listener: Listener,
        categories: Iterable[EventCategory] | None = None,
    ) -> None:
        """Unregister *listener* ignoring unknown references."""
        selected = tuple(categories) if categories is not None else tuple(EventCategory)
        for category in selected:
            self._listeners[EventCategory(category)].pop(listener, None)

    def listeners(self, category: EventCategory) -> tuple[Listener, ...]:
        """Return listeners registered for *category* in registration order."""
        return tuple(self._listeners[EventCategory(category)])

    def has_listeners(self, category: EventCategory | None = None) -> bool:
        """Return ``True`` if any listener is registered (for *category*)."""
        if category is None:
            return any(self._listeners.values())
        return bool(self._listeners[EventCategory(category)])

    @property
    def in_structural_dispatch(self) -> bool:
        """Return ``True`` while a structural event is being delivered."""
        return self._structural_depth > 0

    @property
    def is_muted(self) -> bool:
        """Return ``True`` while dispatch is suppressed for a bulk load."""
        return self._muted > 0

    @contextmanager
    def muted(self) -> Iterator[None]:
        """Suppress every dispatch inside the ``with`` block."""
        self._muted += 1
        try:
            yield
        finally:
            self._muted -= 1

    def dispatch(self, event: Event) -> None:
        """Deliver *event* to the listeners of its category."""
        if self._muted:
            return
        listeners = tuple(self._listeners[event.category])
        if not listeners:
            return
        structural = event.category is EventCategory.STRUCTURE
        if structural:
            self._structural_depth += 1
        try:
            for listener in listeners:
                listener(event)
        finally:
            if structural:
                self._structural_depth -= 1


_F = TypeVar("_F", bound=Callable[..., Any])


def mutation(method: _F) -> _F:
    """Guard an engine method against re-entry from structural listeners."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if self.hub.in_structural_dispatch:
            raise ReentrantMutationError(
                f"{method.__name__}() may not be called while a structural event is dispatched"
            )
        return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


__all__ = [
    "Event",
    "EventCategory",
    "EventKind",
    "Level",
    "Listener",
    "ListenerHub",
    "mutation",
]
