"""Selection bookkeeping enforcing choice-mode rules."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from ..log import logger
from .errors import SelectionNotSupportedError
from .events import EventKind
from .model import ChoiceMode, Item

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .item_store import ItemStore


class SelectionTrack:
    """Select and deselect items of one or more stores.

    ``domain`` arguments name every store sharing the selection; in
    :attr:`ChoiceMode.SINGLE` at most one item across all of them is
    selected. Disabled items are never selected.
    """

    def __init__(self, choice_mode: ChoiceMode | str = ChoiceMode.MULTIPLE) -> None:
        """Create a track using *choice_mode*."""
        self._choice_mode = ChoiceMode(choice_mode)

    @property
    def choice_mode(self) -> ChoiceMode:
        """Return the active choice mode."""
        return self._choice_mode

    def set_choice_mode(self, choice_mode: ChoiceMode | str, domain: Iterable[ItemStore]) -> None:
        """Switch the choice mode, dropping selections the new mode forbids."""
        choice_mode = ChoiceMode(choice_mode)
        stores = list(domain)
        self._choice_mode = choice_mode
        logger.debug("Set choice mode to %s", choice_mode.value)
        if choice_mode is ChoiceMode.NONE:
            self._deselect_all(stores, keep=None)
        elif choice_mode is ChoiceMode.SINGLE:
            keep = next(
                (item for store in stores for item in store.items() if item.selected), None
            )
            self._deselect_all(stores, keep=keep)

    def require_selectable(self) -> None:
        """Raise :class:`SelectionNotSupportedError` under ``ChoiceMode.NONE``."""
        if self._choice_mode is ChoiceMode.NONE:
            raise SelectionNotSupportedError("Items can not be selected in choice mode 'none'")

    def is_selected(self, store: ItemStore, index: int) -> bool:
        """Return ``True`` if the visible item at *index* is selected."""
        return store.get(index).selected

    def set_selected(
        self,
        store: ItemStore,
        index: int,
        selected: bool,
        domain: Iterable[ItemStore] = (),
    ) -> bool:
        """Change the selection at *index*; return ``True`` if it changed.

        Selecting a disabled item is a no-op. In single choice mode the
        previously selected item is deselected first.
        """
        self.require_selectable()
        item = store.get(index)
        selected = bool(selected)
        if item.selected == selected:
            logger.debug(
                "Selection of item %r at index %d not changed, because it already is %s",
                item.data,
                index,
                "selected" if selected else "unselected",
            )
            return False
        if not selected:
            self._apply(store, index, item, False)
            return True
        if not item.enabled:
            logger.debug(
                "Item %r at index %d not selected, because it is disabled", item.data, index
            )
            return False
        if self._choice_mode is ChoiceMode.SINGLE:
            self._deselect_all([store, *domain], keep=item)
        self._apply(store, index, item, True)
        return True

    def trigger_selection(
        self,
        store: ItemStore,
        index: int,
        domain: Iterable[ItemStore] = (),
    ) -> bool:
        """Toggle the selection at *index*; return ``True`` if it changed."""
        return self.set_selected(store, index, not store.get(index).selected, domain)

    def set_all_selected(self, store: ItemStore, selected: bool) -> bool:
        """Select or deselect every visible item; ``True`` if any changed.

        Selecting all items requires multiple choice mode. Disabled items
        are skipped when selecting.
        """
        self.require_selectable()
        if selected and self._choice_mode is ChoiceMode.SINGLE:
            raise SelectionNotSupportedError(
                "Only one item can be selected in choice mode 'single'"
            )
        changed = False
        for index, item in enumerate(store.items()):
            if item.selected == bool(selected) or (selected and not item.enabled):
                continue
            self._apply(store, index, item, bool(selected))
            changed = True
        return changed

    def select_nearest_enabled(
        self,
        store: ItemStore,
        index: int,
        domain: Iterable[ItemStore] = (),
    ) -> int:
        """Select the enabled item nearest to *index* and return its index.

        Candidates are tried at ``index, index - 1, index + 1, index - 2``
        and so on; ``-1`` is returned when no item is enabled.
        """
        ascending = index
        descending = index - 1
        count = store.count
        while ascending < count or descending >= 0:
            if 0 <= ascending < count and store.get(ascending).enabled:
                self.set_selected(store, ascending, True, domain)
                return ascending
            if descending >= 0 and descending < count and store.get(descending).enabled:
                self.set_selected(store, descending, True, domain)
                return descending
            ascending += 1
            descending -= 1
        return -1

    # ------------------------------------------------------------------
    # queries
    def selected_index(self, store: ItemStore) -> int:
        """Return the first selected view index or ``-1``."""
        return store.first_index_where(_is_selected)

    def selected_item(self, store: ItemStore) -> Any | None:
        """Return the data of the first selected item or ``None``."""
        return store.data_at(self.selected_index(store))

    def selected_indices(self, store: ItemStore) -> list[int]:
        """Return view indices of selected items."""
        return store.indices_where(_is_selected)

    def unselected_indices(self, store: ItemStore) -> list[int]:
        """Return view indices of unselected items."""
        return store.indices_where(_is_unselected)

    def selected_items(self, store: ItemStore) -> list[Any]:
        """Return data of selected items."""
        return store.data_where(_is_selected)

    def unselected_items(self, store: ItemStore) -> list[Any]:
        """Return data of unselected items."""
        return store.data_where(_is_unselected)

    def first_selected_index(self, store: ItemStore) -> int:
        """Return the first selected view index or ``-1``."""
        return store.first_index_where(_is_selected)

    def last_selected_index(self, store: ItemStore) -> int:
        """Return the last selected view index or ``-1``."""
        return store.last_index_where(_is_selected)

    def first_unselected_index(self, store: ItemStore) -> int:
        """Return the first unselected view index or ``-1``."""
        return store.first_index_where(_is_unselected)

    def last_unselected_index(self, store: ItemStore) -> int:
        """Return the last unselected view index or ``-1``."""
        return store.last_index_where(_is_unselected)

    def first_selected_item(self, store: ItemStore) -> Any | None:
        """Return the data of the first selected item or ``None``."""
        return store.data_at(self.first_selected_index(store))

    def last_selected_item(self, store: ItemStore) -> Any | None:
        """Return the data of the last selected item or ``None``."""
        return store.data_at(self.last_selected_index(store))

    def first_unselected_item(self, store: ItemStore) -> Any | None:
        """Return the data of the first unselected item or ``None``."""
        return store.data_at(self.first_unselected_index(store))

    def last_unselected_item(self, store: ItemStore) -> Any | None:
        """Return the data of the last unselected item or ``None``."""
        return store.data_at(self.last_unselected_index(store))

    def selected_count(self, store: ItemStore) -> int:
        """Return the number of selected visible items."""
        return len(self.selected_indices(store))

    # ------------------------------------------------------------------
    def _apply(self, store: ItemStore, index: int, item: Item, selected: bool) -> None:
        item.selected = selected
        logger.debug(
            "%s item %r at index %d", "Selected" if selected else "Unselected", item.data, index
        )
        store.emit(EventKind.SELECTED if selected else EventKind.UNSELECTED, item, index)

    def _deselect_all(self, stores: Iterable[ItemStore], keep: Item | None) -> None:
        seen: set[int] = set()
        for store in stores:
            if id(store) in seen:
                continue
            seen.add(id(store))
            for index, item in enumerate(store.items()):
                if item.selected and item is not keep:
                    self._apply(store, index, item, False)


def _is_selected(item: Item) -> bool:
    return item.selected


def _is_unselected(item: Item) -> bool:
    return not item.selected


__all__ = ["SelectionTrack"]
