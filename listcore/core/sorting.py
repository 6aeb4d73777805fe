"""Stable sorting of an item store with a remembered order."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from ..log import change_record, logger
from .errors import SortingNotSupportedError
from .events import EventKind
from .model import Item, Order, is_orderable

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .item_store import ItemStore

SortKey = Callable[[Any], Any]


class SortEngine:
    """Sort one store and remember the last ``(order, key)`` pair.

    ``key`` is a one-argument function applied to item data, as accepted by
    :func:`sorted`. Without a key the data must be
    :class:`~listcore.core.model.Orderable`.
    """

    def __init__(self, store: ItemStore) -> None:
        """Bind the engine to *store* with no remembered order."""
        self._store = store
        self.order: Order | None = None
        self.key: SortKey | None = None

    def _item_key(self, key: SortKey | None) -> Callable[[Item], Any]:
        if key is not None:
            return lambda item: key(item.data)
        return lambda item: item.data

    def _require_orderable(self, items: tuple[Item, ...], key: SortKey | None) -> None:
        if key is not None:
            return
        for item in items:
            if not is_orderable(item.data):
                raise SortingNotSupportedError(
                    f"Sorting without a key is not supported by data of type "
                    f"{type(item.data).__name__}"
                )

    def sort(self, order: Order | str | None = None, key: SortKey | None = None) -> None:
        """Sort the store stably.

        Omitted arguments fall back to the remembered order and key; without
        any, the data is sorted ascending by natural order. Both the
        unfiltered items and the filtered view are reordered.
        """
        order = Order(order) if order is not None else (self.order or Order.ASCENDING)
        key = key if key is not None else self.key
        store = self._store
        unfiltered = store.unfiltered_items()
        self._require_orderable(unfiltered, key)
        try:
            ordered = sorted(
                unfiltered,
                key=self._item_key(key),
                reverse=order is Order.DESCENDING,
            )
        except TypeError as exc:
            raise SortingNotSupportedError(str(exc)) from exc
        view = None
        if store.is_filtered:
            visible = {id(item) for item in store.items()}
            view = [item for item in ordered if id(item) in visible]
        store.rearrange(ordered, view)
        self.order = order
        self.key = key
        logger.info(
            "Sorted %d items in %s order",
            len(ordered),
            order.value,
            extra=change_record("sorted", order=order.value, count=len(ordered)),
        )
        store.emit(
            EventKind.SORTED,
            None,
            -1,
            order=order,
            items=tuple(store.data()),
        )

    def insertion_index(self, item: Item, key: SortKey | None = None) -> int:
        """Return the view index keeping the remembered order when inserting *item*.

        Equal keys are placed after existing ones.
        """
        order = self.order or Order.ASCENDING
        key = key if key is not None else self.key
        visible = self._store.items()
        self._require_orderable((item, *visible), key)
        item_key = self._item_key(key)
        value = item_key(item)
        low, high = 0, len(visible)
        try:
            while low < high:
                middle = (low + high) // 2
                other = item_key(visible[middle])
                if order is Order.ASCENDING:
                    after = not value < other
                else:
                    after = not other < value
                if after:
                    low = middle + 1
                else:
                    high = middle
        except TypeError as exc:
            raise SortingNotSupportedError(str(exc)) from exc
        return low

    def load(self, order: Order | None, key: SortKey | None) -> None:
        """Install a remembered order without sorting."""
        self.order = order
        self.key = key


__all__ = ["SortEngine", "SortKey"]
