"""Ordered item container with a non-destructive filtered projection."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Any

from ..log import change_record, logger
from .errors import ConcurrentModificationError
from .events import EventKind
from .filtering import FilterEngine
from .model import REJECTED, Item
from .sorting import SortEngine

Emitter = Callable[..., None]


def _no_emit(kind: EventKind, item: Item | None, index: int, **payload: Any) -> None:
    return None


class ItemStore:
    """Hold the items of one scope and the projection currently visible.

    The unfiltered list is always retained. While at least one filter is
    active ``_view`` is a subsequence of it (same relative order), otherwise
    it is ``None`` and the unfiltered list is the view. All index arguments
    address the current view.

    ``emit`` is invoked after every structural change with the event kind,
    the affected item and its view index. ``guard`` adds an extra admission
    rule checked together with the local duplicate policy.
    """

    def __init__(
        self,
        *,
        allow_duplicates: bool = False,
        emit: Emitter | None = None,
        guard: Callable[[Any], bool] | None = None,
    ) -> None:
        """Create an empty store."""
        self.allow_duplicates = allow_duplicates
        self.emit: Emitter = emit or _no_emit
        self._guard = guard
        self._items: list[Item] = []
        self._view: list[Item] | None = None
        self._mod_count = 0
        self.filters = FilterEngine(self)
        self.sorting = SortEngine(self)

    # ------------------------------------------------------------------
    # size and access
    @property
    def count(self) -> int:
        """Return the number of visible items."""
        return len(self._visible)

    @property
    def unfiltered_count(self) -> int:
        """Return the number of items including filtered-out ones."""
        return len(self._items)

    @property
    def is_empty(self) -> bool:
        """Return ``True`` when no item is visible."""
        return not self._visible

    @property
    def is_filtered(self) -> bool:
        """Return ``True`` while a filtered projection is active."""
        return self._view is not None

    @property
    def modification_count(self) -> int:
        """Return the structural modification counter."""
        return self._mod_count

    @property
    def _visible(self) -> list[Item]:
        return self._items if self._view is None else self._view

    def items(self) -> tuple[Item, ...]:
        """Return the visible items in view order."""
        return tuple(self._visible)

    def unfiltered_items(self) -> tuple[Item, ...]:
        """Return every stored item in unfiltered order."""
        return tuple(self._items)

    def data(self) -> list[Any]:
        """Return the data of the visible items."""
        return [item.data for item in self._visible]

    def check_index(self, index: int, *, allow_end: bool = False) -> int:
        """Validate *index* against the view and return it."""
        upper = self.count if allow_end else self.count - 1
        if not isinstance(index, int) or isinstance(index, bool):
            raise TypeError(f"index must be an int, got {type(index).__name__}")
        if index < 0 or index > upper:
            raise IndexError(f"index {index} out of range [0, {upper}]")
        return index

    def get(self, index: int) -> Item:
        """Return the visible item at *index*."""
        return self._visible[self.check_index(index)]

    def index_of(self, data: Any) -> int:
        """Return the first view index whose data equals *data* or ``-1``."""
        _require(data)
        for index, item in enumerate(self._visible):
            if item.data == data:
                return index
        return -1

    def last_index_of(self, data: Any) -> int:
        """Return the last view index whose data equals *data* or ``-1``."""
        _require(data)
        visible = self._visible
        for index in range(len(visible) - 1, -1, -1):
            if visible[index].data == data:
                return index
        return -1

    def position(self, item: Item) -> int:
        """Return the view index of *item* by identity or ``-1``."""
        for index, candidate in enumerate(self._visible):
            if candidate is item:
                return index
        return -1

    def indices_where(self, predicate: Callable[[Item], bool]) -> list[int]:
        """Return view indices of items satisfying *predicate*."""
        return [index for index, item in enumerate(self._visible) if predicate(item)]

    def data_where(self, predicate: Callable[[Item], bool]) -> list[Any]:
        """Return data of visible items satisfying *predicate*."""
        return [item.data for item in self._visible if predicate(item)]

    def first_index_where(self, predicate: Callable[[Item], bool]) -> int:
        """Return the first view index satisfying *predicate* or ``-1``."""
        for index, item in enumerate(self._visible):
            if predicate(item):
                return index
        return -1

    def last_index_where(self, predicate: Callable[[Item], bool]) -> int:
        """Return the last view index satisfying *predicate* or ``-1``."""
        visible = self._visible
        for index in range(len(visible) - 1, -1, -1):
            if predicate(visible[index]):
                return index
        return -1

    def data_at(self, index: int) -> Any | None:
        """Return the data at *index* or ``None`` for ``-1``."""
        return None if index == -1 else self.get(index).data

    def contains(self, data: Any) -> bool:
        """Return ``True`` if a visible item holds *data*."""
        return self.index_of(data) != -1

    def contains_unfiltered(self, data: Any) -> bool:
        """Return ``True`` if any stored item, visible or not, holds *data*."""
        _require(data)
        return any(item.data == data for item in self._items)

    def admits(self, data: Any) -> bool:
        """Return ``True`` if *data* may be inserted under the duplicate policy."""
        if not self.allow_duplicates and self.contains_unfiltered(data):
            return False
        if self._guard is not None and not self._guard(data):
            return False
        return True

    # ------------------------------------------------------------------
    # structural mutation
    def insert(self, index: int, item: Item) -> bool:
        """Insert *item* before view position *index*.

        Returns ``False`` without side effects when the duplicate policy
        rejects the item. While filtered, the item joins the view only if it
        matches every active filter.
        """
        _require(item)
        self.check_index(index, allow_end=True)
        if not self.admits(item.data):
            logger.debug("Item %r not added, because duplicates are not allowed", item.data)
            return False
        if self._view is None:
            self._items.insert(index, item)
        else:
            shown = self.filters.accepts(item)
            if index < len(self._view):
                self._items.insert(self._unfiltered_position(self._view[index]), item)
            else:
                self._items.append(item)
            if shown:
                self._view.insert(index, item)
        self._mod_count += 1
        logger.info(
            "Added item %r at index %d",
            item.data,
            index,
            extra=change_record("added", index=index, data=item.data),
        )
        self.emit(EventKind.ADDED, item, index)
        return True

    def append(self, item: Item) -> int:
        """Append *item* and return its view index or :data:`REJECTED`."""
        index = self.count
        return index if self.insert(index, item) else REJECTED

    def pop(self, index: int) -> Item:
        """Remove and return the visible item at *index*."""
        item = self.get(index)
        if self._view is not None:
            del self._view[index]
        self._remove_identity(item)
        self._mod_count += 1
        logger.info(
            "Removed item %r from index %d",
            item.data,
            index,
            extra=change_record("removed", index=index, data=item.data),
        )
        self.emit(EventKind.REMOVED, item, index)
        return item

    def replace(self, index: int, item: Item) -> Item | None:
        """Replace the visible item at *index* and return the previous one.

        Returns ``None`` when *item* would duplicate another stored item.
        Listeners observe a removal followed by an addition at *index*; while
        filtered, a replacement failing the active filters leaves the view.
        """
        _require(item)
        previous = self.get(index)
        others = [candidate for candidate in self._items if candidate is not previous]
        if not self.allow_duplicates and any(c.data == item.data for c in others):
            logger.debug("Item %r not replaced, because duplicates are not allowed", item.data)
            return None
        if self._guard is not None and item.data != previous.data and not self._guard(item.data):
            logger.debug("Item %r not replaced, because duplicates are not allowed", item.data)
            return None
        shown = self._view is None or self.filters.accepts(item)
        self._items[self._unfiltered_position(previous)] = item
        if self._view is not None:
            if shown:
                self._view[index] = item
            else:
                del self._view[index]
        self._mod_count += 1
        logger.info(
            "Replaced item %r at index %d with %r",
            previous.data,
            index,
            item.data,
            extra=change_record(
                "replaced", index=index, previous=previous.data, data=item.data
            ),
        )
        self.emit(EventKind.REMOVED, previous, index)
        self.emit(EventKind.ADDED, item, index)
        return previous

    def remove_where(self, predicate: Callable[[Item], bool]) -> int:
        """Remove visible items matching *predicate*, last first; return the count."""
        removed = 0
        for index in range(self.count - 1, -1, -1):
            if predicate(self._visible[index]):
                self.pop(index)
                removed += 1
        return removed

    def clear(self) -> None:
        """Remove every visible item, last first."""
        self.remove_where(lambda item: True)

    # ------------------------------------------------------------------
    # projection maintenance used by the filter and sort engines
    def set_view(self, view: Iterable[Item] | None) -> None:
        """Install a filtered projection or drop it when *view* is ``None``."""
        self._view = None if view is None else list(view)
        self._mod_count += 1

    def rearrange(self, ordered: list[Item], view: list[Item] | None) -> None:
        """Replace the storage order with *ordered* and the projection with *view*."""
        self._items = list(ordered)
        self._view = None if view is None else list(view)
        self._mod_count += 1

    def load(self, items: Iterable[Item]) -> None:
        """Replace all content without emitting events."""
        self._items = list(items)
        self._view = None
        self._mod_count += 1

    # ------------------------------------------------------------------
    # iteration
    def __iter__(self) -> Iterator[Item]:
        """Iterate over visible items, failing fast on structural change."""
        return self.iterate()

    def __len__(self) -> int:
        """Return the number of visible items."""
        return self.count

    def iterate(self, start: int = 0) -> Iterator[Item]:
        """Yield visible items from *start*; raise if the store changes meanwhile."""
        self.check_index(start, allow_end=True)
        expected = self._mod_count
        index = start
        while True:
            if self._mod_count != expected:
                raise ConcurrentModificationError("The store was modified during iteration")
            visible = self._visible
            if index >= len(visible):
                return
            yield visible[index]
            index += 1

    def sub_list(self, start: int, end: int) -> tuple[Item, ...]:
        """Return a snapshot of the visible items in ``[start, end)``."""
        self.check_index(start, allow_end=True)
        self.check_index(end, allow_end=True)
        if start > end:
            raise IndexError(f"start {start} is greater than end {end}")
        return tuple(self._visible[start:end])

    # ------------------------------------------------------------------
    def _unfiltered_position(self, item: Item) -> int:
        for position, candidate in enumerate(self._items):
            if candidate is item:
                return position
        raise LookupError(item)

    def _remove_identity(self, item: Item) -> None:
        del self._items[self._unfiltered_position(item)]

    def __repr__(self) -> str:
        """Return a debugging representation listing visible data."""
        return f"ItemStore({self.data()!r}, filtered={self.is_filtered})"


def _require(value: Any) -> None:
    if value is None:
        raise ValueError("The item may not be None")


__all__ = ["Emitter", "ItemStore"]
