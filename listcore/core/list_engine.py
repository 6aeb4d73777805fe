"""Single-level stateful collection engine."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Any

from ..log import logger
from ..settings import ListSettings
from .codec import StateCodec
from .collaborators import Host, HostBinding, Renderer, Transport
from .errors import ItemNotFoundError
from .events import Event, EventCategory, EventKind, Level, Listener, ListenerHub, mutation
from .filtering import AppliedFilter, Predicate
from .item_store import ItemStore
from .list_iterator import ListIterator
from .model import REJECTED, ChoiceMode, FilterQuery, Item, Order
from .selection import SelectionTrack
from .sorting import SortKey
from .state import StateTrack

_STRUCTURAL_KINDS = frozenset(
    {
        EventKind.ADDED,
        EventKind.REMOVED,
        EventKind.FILTER_APPLIED,
        EventKind.FILTER_RESET,
        EventKind.SORTED,
    }
)


class ListEngine:
    """Ordered list of data items with state, selection, filtering and sorting.

    All index arguments and results address the current (possibly filtered)
    view. Operations on data take and return the caller's data objects; the
    :class:`~listcore.core.model.Item` wrappers stay internal.
    """

    def __init__(
        self,
        items: Iterable[Any] = (),
        *,
        settings: ListSettings | None = None,
        renderer: Renderer | None = None,
    ) -> None:
        """Create an engine holding *items* configured by *settings*."""
        self.settings = settings.model_copy() if settings is not None else ListSettings()
        self.hub = ListenerHub()
        self.renderer = renderer
        self._binding = HostBinding()
        self._states = StateTrack(self.settings.number_of_states)
        self._selection = SelectionTrack(self.settings.choice_mode)
        self._store = ItemStore(allow_duplicates=self.settings.allow_duplicates, emit=self._emit)
        for data in items:
            self._store.append(Item(data))

    # ------------------------------------------------------------------
    # plumbing
    @property
    def store(self) -> ItemStore:
        """Return the underlying item store."""
        return self._store

    def _emit(self, kind: EventKind, item: Item | None, index: int, **payload: Any) -> None:
        self.hub.dispatch(
            Event(
                kind,
                Level.ITEM,
                self,
                data=None if item is None else item.data,
                index=index,
                **payload,
            )
        )
        if not self.settings.notify_on_change:
            return
        if kind in _STRUCTURAL_KINDS:
            self._binding.structure_changed()
        elif index >= 0:
            self._binding.item_changed(index)

    def add_listener(
        self,
        listener: Listener,
        categories: Iterable[EventCategory] | None = None,
    ) -> Callable[[], None]:
        """Register *listener* and return a callable unregistering it."""
        remove = self.hub.add_listener(listener, categories)
        logger.debug("Added listener %r", listener)
        return remove

    def remove_listener(
        self,
        listener: Listener,
        categories: Iterable[EventCategory] | None = None,
    ) -> None:
        """Unregister *listener*."""
        self.hub.remove_listener(listener, categories)
        logger.debug("Removed listener %r", listener)

    # ------------------------------------------------------------------
    # host and renderer
    def attach(self, host: Host) -> None:
        """Attach the engine to *host* and request a full refresh."""
        self._binding.attach(host)
        if self.settings.notify_on_change:
            self._binding.structure_changed()

    def detach(self) -> None:
        """Detach the engine from its host."""
        self._binding.detach()

    @property
    def is_attached(self) -> bool:
        """Return ``True`` while attached to a host."""
        return self._binding.is_attached

    @property
    def notify_on_change(self) -> bool:
        """Return whether the host is refreshed after changes."""
        return self.settings.notify_on_change

    @notify_on_change.setter
    def notify_on_change(self, value: bool) -> None:
        """Enable or disable host notifications."""
        self.settings.notify_on_change = value

    def render(self, index: int) -> Any:
        """Ask the renderer for a view handle of the item at *index*."""
        if self.renderer is None:
            raise RuntimeError("No renderer is configured")
        item = self._store.get(index)
        return self.renderer.render_item(
            item.data,
            index,
            view_type=self.renderer.view_type(item.data),
            enabled=item.enabled,
            state=item.state,
            filtered=self._store.is_filtered,
            selected=item.selected,
        )

    # ------------------------------------------------------------------
    # structure
    @property
    def allow_duplicates(self) -> bool:
        """Return whether data-equal items may be stored."""
        return self._store.allow_duplicates

    @allow_duplicates.setter
    def allow_duplicates(self, value: bool) -> None:
        """Change the duplicate policy; existing items are kept."""
        self.settings.allow_duplicates = value
        self._store.allow_duplicates = self.settings.allow_duplicates
        logger.debug("Duplicates are now %s", "allowed" if value else "disallowed")

    @property
    def count(self) -> int:
        """Return the number of visible items."""
        return self._store.count

    @property
    def is_empty(self) -> bool:
        """Return ``True`` when no item is visible."""
        return self._store.is_empty

    def __len__(self) -> int:
        """Return the number of visible items."""
        return self._store.count

    def __iter__(self) -> Iterator[Any]:
        """Iterate over visible data, failing fast on structural change."""
        return self.iterate()

    def iterate(self, start: int = 0) -> Iterator[Any]:
        """Yield visible data from *start* on."""
        for item in self._store.iterate(start):
            yield item.data

    def get(self, index: int) -> Any:
        """Return the data at *index*."""
        return self._store.get(index).data

    def all_items(self) -> tuple[Any, ...]:
        """Return the visible data as an immutable tuple."""
        return tuple(self._store.data())

    def sub_list(self, start: int, end: int) -> list[Any]:
        """Return the visible data in ``[start, end)``."""
        return [item.data for item in self._store.sub_list(start, end)]

    def list_iterator(self, start: int = 0) -> ListIterator:
        """Return a bidirectional iterator positioned before *start*.

        Its ``add``, ``set`` and ``remove`` go through :meth:`insert`,
        :meth:`replace` and :meth:`remove_at`.
        """
        return ListIterator(
            self._store,
            insert=self.insert,
            replace=self.replace,
            remove=self.remove_at,
            start=start,
        )

    def index_of(self, data: Any) -> int:
        """Return the first index of *data* or ``-1``."""
        return self._store.index_of(data)

    def last_index_of(self, data: Any) -> int:
        """Return the last index of *data* or ``-1``."""
        return self._store.last_index_of(data)

    def require_index(self, data: Any) -> int:
        """Return the index of *data* or raise :class:`ItemNotFoundError`."""
        index = self._store.index_of(data)
        if index == -1:
            raise ItemNotFoundError(f"{data!r} is not contained")
        return index

    def contains(self, data: Any) -> bool:
        """Return ``True`` if *data* is visible."""
        return self._store.contains(data)

    def __contains__(self, data: object) -> bool:
        """Return ``True`` if *data* is visible."""
        return data is not None and self._store.contains(data)

    def contains_all(self, items: Iterable[Any]) -> bool:
        """Return ``True`` if every element of *items* is visible."""
        return all(self._store.contains(data) for data in _require_items(items))

    @mutation
    def add(self, data: Any) -> int:
        """Append *data*; return its index or :data:`REJECTED` for duplicates."""
        return self._insert(self._store.count, data)

    @mutation
    def insert(self, index: int, data: Any) -> bool:
        """Insert *data* at *index*; return ``False`` for duplicates."""
        return self._insert(index, data) != REJECTED

    @mutation
    def add_all(self, items: Iterable[Any], index: int | None = None) -> bool:
        """Add every element of *items*; ``True`` only if all were added.

        Successful insertions are kept even when others are rejected. Items
        hidden by an active filter do not advance the insertion position.
        """
        items = _require_items(items)
        if index is None:
            position = self._store.count
        else:
            position = self._store.check_index(index, allow_end=True)
        result = True
        for data in items:
            item = Item(data)
            if self._insert(position, data, item) == REJECTED:
                result = False
            elif self._store.position(item) != -1:
                position += 1
        return result

    @mutation
    def add_sorted(self, data: Any, key: SortKey | None = None) -> int:
        """Insert *data* where the remembered order places it."""
        item = Item(data)
        index = self._store.sorting.insertion_index(item, key)
        return self._insert(index, data, item)

    def _insert(self, index: int, data: Any, item: Item | None = None) -> int:
        item = item if item is not None else Item(data)
        if not self._store.insert(index, item):
            return REJECTED
        if self._adapting and self._store.count == 1:
            self._selection.select_nearest_enabled(self._store, 0)
        return index

    @mutation
    def replace(self, index: int, data: Any) -> Any | None:
        """Replace the data at *index*; return the old data or ``None`` if rejected."""
        selected = self._store.get(index).selected
        previous = self._store.replace(index, Item(data))
        if previous is None:
            return None
        if selected:
            self._adapt_after_removal(index)
        return previous.data

    @mutation
    def remove_at(self, index: int) -> Any:
        """Remove and return the data at *index*."""
        return self._remove_at(index)

    def _remove_at(self, index: int) -> Any:
        item = self._store.pop(index)
        if item.selected:
            self._adapt_after_removal(index)
        return item.data

    @mutation
    def remove(self, data: Any) -> bool:
        """Remove the first occurrence of *data*; ``False`` if absent."""
        index = self._store.index_of(data)
        if index == -1:
            logger.debug("Item %r not removed, because it is not contained", data)
            return False
        self._remove_at(index)
        return True

    @mutation
    def remove_all(self, items: Iterable[Any]) -> bool:
        """Remove every visible item contained in *items*, last first.

        Returns ``True`` only if as many items were removed as were given.
        """
        items = _require_items(items)
        removed = self._remove_where(lambda item: item.data in items)
        return removed == len(items)

    @mutation
    def retain_all(self, items: Iterable[Any]) -> None:
        """Remove every visible item not contained in *items*."""
        items = _require_items(items)
        self._remove_where(lambda item: item.data not in items)

    @mutation
    def clear(self) -> None:
        """Remove every visible item, last first."""
        self._remove_where(lambda item: True)

    def _remove_where(self, predicate: Callable[[Item], bool]) -> int:
        removed = 0
        lowest = -1
        lost_selection = False
        for index in range(self._store.count - 1, -1, -1):
            item = self._store.get(index)
            if predicate(item):
                self._store.pop(index)
                removed += 1
                lowest = index
                lost_selection |= item.selected
        if lost_selection:
            self._adapt_after_removal(lowest)
        return removed

    # ------------------------------------------------------------------
    # item state
    @property
    def number_of_states(self) -> int:
        """Return how many states an item may have."""
        return self._states.number_of_states

    @number_of_states.setter
    def number_of_states(self, value: int) -> None:
        """Change the state count, clamping existing states."""
        self.settings.number_of_states = value
        self._states.set_number_of_states(value, [self._store])

    @property
    def min_state(self) -> int:
        """Return the smallest valid state."""
        return self._states.min_state

    @property
    def max_state(self) -> int:
        """Return the largest valid state."""
        return self._states.max_state

    def get_state(self, index: int) -> int:
        """Return the state at *index*."""
        return self._states.get_state(self._store, index)

    @mutation
    def set_state(self, index: int, state: int) -> int:
        """Set the state at *index*; return the previous state or :data:`REJECTED`."""
        return self._states.set_state(self._store, index, state)

    @mutation
    def trigger_state(self, index: int) -> int:
        """Advance the state at *index* cyclically; return the new state."""
        return self._states.trigger_state(self._store, index)

    @mutation
    def set_all_states(self, state: int) -> bool:
        """Set *state* on every enabled item; ``True`` if any changed."""
        return self._states.set_all_states(self._store, state)

    @mutation
    def trigger_all_states(self) -> bool:
        """Trigger the state of every item; ``True`` if none was disabled."""
        return self._states.trigger_all_states(self._store)

    def indices_with_state(self, state: int) -> list[int]:
        """Return indices of items in *state*."""
        return self._states.indices_with_state(self._store, state)

    def items_with_state(self, state: int) -> list[Any]:
        """Return data of items in *state*."""
        return self._states.items_with_state(self._store, state)

    def first_index_with_state(self, state: int) -> int:
        """Return the first index in *state* or ``-1``."""
        return self._states.first_index_with_state(self._store, state)

    def last_index_with_state(self, state: int) -> int:
        """Return the last index in *state* or ``-1``."""
        return self._states.last_index_with_state(self._store, state)

    def first_item_with_state(self, state: int) -> Any | None:
        """Return the first data in *state* or ``None``."""
        return self._states.first_item_with_state(self._store, state)

    def last_item_with_state(self, state: int) -> Any | None:
        """Return the last data in *state* or ``None``."""
        return self._states.last_item_with_state(self._store, state)

    def state_count(self, state: int) -> int:
        """Return how many items are in *state*."""
        return self._states.state_count(self._store, state)

    # ------------------------------------------------------------------
    # enable state
    def is_enabled(self, index: int) -> bool:
        """Return ``True`` if the item at *index* is enabled."""
        return self._states.is_enabled(self._store, index)

    @mutation
    def set_enabled(self, index: int, enabled: bool) -> bool:
        """Enable or disable the item at *index*; ``True`` if it changed."""
        return self._set_enabled(index, enabled)

    @mutation
    def trigger_enabled(self, index: int) -> bool:
        """Toggle the enable flag at *index*; return the new value."""
        enabled = not self._store.get(index).enabled
        self._set_enabled(index, enabled)
        return enabled

    @mutation
    def set_all_enabled(self, enabled: bool) -> bool:
        """Enable or disable every item; ``True`` if any changed."""
        changed = False
        for index in range(self._store.count):
            changed |= self._set_enabled(index, enabled)
        return changed

    @mutation
    def trigger_all_enabled(self) -> None:
        """Toggle the enable flag of every item."""
        for index in range(self._store.count):
            self._set_enabled(index, not self._store.get(index).enabled)

    def _set_enabled(self, index: int, enabled: bool) -> bool:
        item = self._store.get(index)
        if not self._states.set_enabled(self._store, index, enabled):
            return False
        if self._adapting:
            if not enabled and item.selected:
                self._selection.set_selected(self._store, index, False)
                self._selection.select_nearest_enabled(self._store, index)
            elif enabled and self._selection.selected_index(self._store) == -1:
                self._selection.set_selected(self._store, index, True)
        return True

    def are_all_enabled(self) -> bool:
        """Return ``True`` if no item is disabled."""
        return self._states.are_all_enabled(self._store)

    def enabled_count(self) -> int:
        """Return the number of enabled items."""
        return self._states.enabled_count(self._store)

    def enabled_indices(self) -> list[int]:
        """Return indices of enabled items."""
        return self._states.enabled_indices(self._store)

    def disabled_indices(self) -> list[int]:
        """Return indices of disabled items."""
        return self._states.disabled_indices(self._store)

    def enabled_items(self) -> list[Any]:
        """Return data of enabled items."""
        return self._states.enabled_items(self._store)

    def disabled_items(self) -> list[Any]:
        """Return data of disabled items."""
        return self._states.disabled_items(self._store)

    def first_enabled_index(self) -> int:
        """Return the first enabled index or ``-1``."""
        return self._states.first_enabled_index(self._store)

    def last_enabled_index(self) -> int:
        """Return the last enabled index or ``-1``."""
        return self._states.last_enabled_index(self._store)

    def first_disabled_index(self) -> int:
        """Return the first disabled index or ``-1``."""
        return self._states.first_disabled_index(self._store)

    def last_disabled_index(self) -> int:
        """Return the last disabled index or ``-1``."""
        return self._states.last_disabled_index(self._store)

    def first_enabled_item(self) -> Any | None:
        """Return the first enabled data or ``None``."""
        return self._states.first_enabled_item(self._store)

    def last_enabled_item(self) -> Any | None:
        """Return the last enabled data or ``None``."""
        return self._states.last_enabled_item(self._store)

    def first_disabled_item(self) -> Any | None:
        """Return the first disabled data or ``None``."""
        return self._states.first_disabled_item(self._store)

    def last_disabled_item(self) -> Any | None:
        """Return the last disabled data or ``None``."""
        return self._states.last_disabled_item(self._store)

    # ------------------------------------------------------------------
    # selection
    @property
    def choice_mode(self) -> ChoiceMode:
        """Return the active choice mode."""
        return self._selection.choice_mode

    @choice_mode.setter
    def choice_mode(self, value: ChoiceMode | str) -> None:
        """Switch the choice mode, dropping selections it forbids."""
        self.settings.choice_mode = ChoiceMode(value)
        self._selection.set_choice_mode(value, [self._store])
        self._adapt_if_unselected()

    @property
    def adapt_selection_automatically(self) -> bool:
        """Return whether single choice keeps an item selected automatically."""
        return self.settings.adapt_selection_automatically

    @adapt_selection_automatically.setter
    def adapt_selection_automatically(self, value: bool) -> None:
        """Toggle automatic selection in single choice mode."""
        self.settings.adapt_selection_automatically = value
        self._adapt_if_unselected()

    @property
    def _adapting(self) -> bool:
        return (
            self.settings.adapt_selection_automatically
            and self._selection.choice_mode is ChoiceMode.SINGLE
        )

    def _adapt_if_unselected(self) -> None:
        if self._adapting and self._selection.selected_index(self._store) == -1:
            self._selection.select_nearest_enabled(self._store, 0)

    def _adapt_after_removal(self, index: int) -> None:
        if self._adapting and self._selection.selected_index(self._store) == -1:
            self._selection.select_nearest_enabled(self._store, min(index, self._store.count))

    def is_selected(self, index: int) -> bool:
        """Return ``True`` if the item at *index* is selected."""
        return self._selection.is_selected(self._store, index)

    @mutation
    def set_selected(self, index: int, selected: bool) -> bool:
        """Select or deselect the item at *index*; ``True`` if it changed."""
        return self._selection.set_selected(self._store, index, selected)

    @mutation
    def select(self, index: int) -> bool:
        """Select the item at *index*; ``True`` if it changed."""
        return self._selection.set_selected(self._store, index, True)

    @mutation
    def trigger_selection(self, index: int) -> bool:
        """Toggle the selection at *index*; ``True`` if it changed."""
        return self._selection.trigger_selection(self._store, index)

    @mutation
    def set_all_selected(self, selected: bool) -> bool:
        """Select or deselect every item; ``True`` if any changed."""
        return self._selection.set_all_selected(self._store, selected)

    @property
    def selected_index(self) -> int:
        """Return the index of the (first) selected item or ``-1``."""
        return self._selection.selected_index(self._store)

    @property
    def selected_item(self) -> Any | None:
        """Return the (first) selected data or ``None``."""
        return self._selection.selected_item(self._store)

    def selected_indices(self) -> list[int]:
        """Return indices of selected items."""
        return self._selection.selected_indices(self._store)

    def unselected_indices(self) -> list[int]:
        """Return indices of unselected items."""
        return self._selection.unselected_indices(self._store)

    def selected_items(self) -> list[Any]:
        """Return data of selected items."""
        return self._selection.selected_items(self._store)

    def unselected_items(self) -> list[Any]:
        """Return data of unselected items."""
        return self._selection.unselected_items(self._store)

    def first_selected_index(self) -> int:
        """Return the first selected index or ``-1``."""
        return self._selection.first_selected_index(self._store)

    def last_selected_index(self) -> int:
        """Return the last selected index or ``-1``."""
        return self._selection.last_selected_index(self._store)

    def first_unselected_index(self) -> int:
        """Return the first unselected index or ``-1``."""
        return self._selection.first_unselected_index(self._store)

    def last_unselected_index(self) -> int:
        """Return the last unselected index or ``-1``."""
        return self._selection.last_unselected_index(self._store)

    def first_selected_item(self) -> Any | None:
        """Return the first selected data or ``None``."""
        return self._selection.first_selected_item(self._store)

    def last_selected_item(self) -> Any | None:
        """Return the last selected data or ``None``."""
        return self._selection.last_selected_item(self._store)

    def first_unselected_item(self) -> Any | None:
        """Return the first unselected data or ``None``."""
        return self._selection.first_unselected_item(self._store)

    def last_unselected_item(self) -> Any | None:
        """Return the last unselected data or ``None``."""
        return self._selection.last_unselected_item(self._store)

    def selected_count(self) -> int:
        """Return the number of selected items."""
        return self._selection.selected_count(self._store)

    # ------------------------------------------------------------------
    # filtering
    @mutation
    def apply_filter(
        self,
        query: str,
        flags: int = 0,
        predicate: Predicate | None = None,
    ) -> list[Any] | None:
        """Apply a filter; return the data it hid or ``None`` if already applied."""
        removed = self._store.filters.apply(query, flags, predicate)
        if removed is None:
            return None
        self._adapt_if_unselected()
        return [item.data for item in removed]

    @mutation
    def reset_filter(self, query: str, flags: int = 0) -> bool:
        """Reset one filter; ``False`` if it was not applied."""
        if not self._store.filters.reset(query, flags):
            return False
        self._adapt_if_unselected()
        return True

    @mutation
    def reset_all_filters(self) -> bool:
        """Reset every filter; ``False`` if none was applied."""
        if not self._store.filters.reset_all():
            return False
        self._adapt_if_unselected()
        return True

    @property
    def is_filtered(self) -> bool:
        """Return ``True`` while at least one filter is applied."""
        return self._store.filters.is_filtered

    def is_filter_applied(self, query: str, flags: int = 0) -> bool:
        """Return ``True`` if the filter ``(query, flags)`` is applied."""
        return self._store.filters.is_applied(query, flags)

    def filter_queries(self) -> tuple[FilterQuery, ...]:
        """Return applied filters in application order."""
        return self._store.filters.queries

    # ------------------------------------------------------------------
    # sorting
    @mutation
    def sort(self, order: Order | str | None = None, key: SortKey | None = None) -> None:
        """Sort stably; omitted arguments reuse the remembered ones."""
        self._store.sorting.sort(order, key)

    @property
    def sort_order(self) -> Order | None:
        """Return the remembered sort order."""
        return self._store.sorting.order

    @property
    def sort_key(self) -> SortKey | None:
        """Return the remembered sort key."""
        return self._store.sorting.key

    # ------------------------------------------------------------------
    # persistence
    def save(self, codec: StateCodec | None = None) -> bytes:
        """Serialise the engine into a blob."""
        return _codec(codec).save_list(self)

    def restore(self, blob: bytes | None, codec: StateCodec | None = None) -> bool:
        """Replace the engine content from *blob*; ``False`` if it is unusable."""
        return _codec(codec).restore_list(self, blob)

    def save_to(self, transport: Transport, key: str, codec: StateCodec | None = None) -> None:
        """Serialise the engine into *transport* under *key*."""
        transport.put(key, self.save(codec))

    def restore_from(
        self, transport: Transport, key: str, codec: StateCodec | None = None
    ) -> bool:
        """Restore the engine from *transport*; ``False`` if absent or unusable."""
        return self.restore(transport.get(key), codec)

    def _install(
        self,
        settings: ListSettings,
        items: list[Item],
        filters: list[AppliedFilter],
        order: Order | None,
        key: SortKey | None,
    ) -> None:
        """Replace all content without emitting events."""
        self.settings = settings
        self._states = StateTrack(settings.number_of_states)
        self._selection = SelectionTrack(settings.choice_mode)
        self._store.allow_duplicates = settings.allow_duplicates
        self._store.load(items)
        self._store.filters.load(filters)
        self._store.sorting.load(order, key)

    def __repr__(self) -> str:
        """Return a debugging representation."""
        return f"ListEngine({list(self._store.data())!r})"


def _require_items(items: Iterable[Any]) -> list[Any]:
    if items is None:
        raise ValueError("The items may not be None")
    items = list(items)
    if any(data is None for data in items):
        raise ValueError("The items may not contain None")
    return items


def _codec(codec: StateCodec | None) -> StateCodec:
    return codec if codec is not None else StateCodec()


__all__ = ["ListEngine"]
