"""Bidirectional cursor over the visible items of a store."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from .errors import ConcurrentModificationError
from .item_store import ItemStore


class ListIterator:
    """Walk a store's view in both directions and edit it in place.

    The cursor sits between two visible items. Edits go through the owning
    engine, so listeners are notified and the mutation guard applies; the
    iterator keeps working after its own edits but fails fast once anything
    else changes the store structurally.
    """

    def __init__(
        self,
        store: ItemStore,
        *,
        insert: Callable[[int, Any], bool],
        replace: Callable[[int, Any], Any | None],
        remove: Callable[[int], Any],
        start: int = 0,
    ) -> None:
        """Place the cursor before the visible item at *start*."""
        self._store = store
        self._insert = insert
        self._replace = replace
        self._remove = remove
        self._cursor = store.check_index(start, allow_end=True)
        self._last = -1
        self._expected = store.modification_count

    def _check(self) -> None:
        if self._store.modification_count != self._expected:
            raise ConcurrentModificationError("The store was modified during iteration")

    def _resync(self) -> None:
        self._expected = self._store.modification_count

    def _require_last(self) -> int:
        if self._last == -1:
            raise RuntimeError("next() or previous() must be called first")
        return self._last

    def __iter__(self) -> ListIterator:
        """Return the iterator itself."""
        return self

    def __next__(self) -> Any:
        """Return the next data, raising :class:`StopIteration` at the end."""
        return self.next()

    def has_next(self) -> bool:
        """Return ``True`` if an item follows the cursor."""
        return self._cursor < self._store.count

    def has_previous(self) -> bool:
        """Return ``True`` if an item precedes the cursor."""
        return self._cursor > 0

    def next_index(self) -> int:
        """Return the index :meth:`next` would return."""
        return self._cursor

    def previous_index(self) -> int:
        """Return the index :meth:`previous` would return, ``-1`` at the start."""
        return self._cursor - 1

    def next(self) -> Any:
        """Return the data after the cursor and advance."""
        self._check()
        if not self.has_next():
            raise StopIteration
        self._last = self._cursor
        self._cursor += 1
        return self._store.get(self._last).data

    def previous(self) -> Any:
        """Return the data before the cursor and step back."""
        self._check()
        if not self.has_previous():
            raise StopIteration
        self._cursor -= 1
        self._last = self._cursor
        return self._store.get(self._last).data

    def add(self, data: Any) -> bool:
        """Insert *data* at the cursor; ``False`` if the engine rejected it.

        A visible insertion is placed before the cursor, so :meth:`next` is
        unaffected by it.
        """
        self._check()
        before = self._store.count
        added = self._insert(self._cursor, data)
        if self._store.count > before:
            self._cursor += 1
        self._last = -1
        self._resync()
        return added

    def set(self, data: Any) -> bool:
        """Replace the data last returned; ``False`` if the engine rejected it."""
        self._check()
        index = self._require_last()
        before = self._store.count
        replaced = self._replace(index, data) is not None
        if self._store.count < before:
            # the replacement failed an active filter and left the view
            if index < self._cursor:
                self._cursor -= 1
            self._last = -1
        self._resync()
        return replaced

    def remove(self) -> Any:
        """Remove the data last returned and return it."""
        self._check()
        index = self._require_last()
        data = self._remove(index)
        if index < self._cursor:
            self._cursor -= 1
        self._last = -1
        self._resync()
        return data


__all__ = ["ListIterator"]
