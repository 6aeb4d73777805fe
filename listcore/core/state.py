"""Item-state and enable-state bookkeeping for item stores."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from ..log import logger
from .events import EventKind
from .model import REJECTED, Item

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .item_store import ItemStore


class StateTrack:
    """Apply state and enable operations to the items of a store.

    The track holds the number of states valid for its scope; the flags
    themselves live on the items. Every change is reported through the
    store's emitter. State changes on disabled items are rejected with
    :data:`~listcore.core.model.REJECTED`.
    """

    def __init__(self, number_of_states: int = 1) -> None:
        """Create a track allowing states ``0 .. number_of_states - 1``."""
        self._number_of_states = _validate_count(number_of_states)

    # ------------------------------------------------------------------
    # item state
    @property
    def number_of_states(self) -> int:
        """Return how many distinct states an item may have."""
        return self._number_of_states

    @property
    def min_state(self) -> int:
        """Return the smallest valid state."""
        return 0

    @property
    def max_state(self) -> int:
        """Return the largest valid state."""
        return self._number_of_states - 1

    def set_number_of_states(
        self,
        number_of_states: int,
        stores: Iterable[ItemStore],
        hidden: Iterable[ItemStore] = (),
    ) -> None:
        """Change the number of states and clamp the items of *stores*.

        Items hidden by a filter, and every item of the *hidden* stores, are
        clamped silently; only visible items are reported.
        """
        self._number_of_states = _validate_count(number_of_states)
        logger.debug("Set number of item states to %d", number_of_states)
        hidden = list(hidden)
        silent = {id(store) for store in hidden}
        for store in [*stores, *hidden]:
            for item in store.unfiltered_items():
                if item.state <= self.max_state:
                    continue
                item.state = self.max_state
                index = store.position(item)
                if index != -1 and id(store) not in silent:
                    store.emit(EventKind.STATE_CHANGED, item, index, state=item.state)

    def validate_state(self, state: int) -> int:
        """Return *state* if it lies within ``[0, number_of_states)``."""
        if not isinstance(state, int) or isinstance(state, bool):
            raise ValueError(f"state must be an int, got {type(state).__name__}")
        if not 0 <= state < self._number_of_states:
            raise ValueError(f"state {state} out of range [0, {self._number_of_states - 1}]")
        return state

    def get_state(self, store: ItemStore, index: int) -> int:
        """Return the state of the visible item at *index*."""
        return store.get(index).state

    def set_state(self, store: ItemStore, index: int, state: int) -> int:
        """Set the state at *index* and return the previous one.

        Returns :data:`REJECTED` when the item is disabled.
        """
        self.validate_state(state)
        item = store.get(index)
        if not item.enabled:
            logger.debug(
                "State of item %r at index %d not changed, because it is disabled",
                item.data,
                index,
            )
            return REJECTED
        previous = item.state
        if previous != state:
            item.state = state
            logger.debug("Changed state of item %r at index %d to %d", item.data, index, state)
            store.emit(EventKind.STATE_CHANGED, item, index, state=state)
        return previous

    def trigger_state(self, store: ItemStore, index: int) -> int:
        """Advance the state at *index* cyclically and return the new state."""
        item = store.get(index)
        if not item.enabled:
            logger.debug(
                "State of item %r at index %d not triggered, because it is disabled",
                item.data,
                index,
            )
            return REJECTED
        state = (item.state + 1) % self._number_of_states
        self.set_state(store, index, state)
        return state

    def set_all_states(self, store: ItemStore, state: int) -> bool:
        """Set *state* on every enabled visible item; ``True`` if any changed."""
        self.validate_state(state)
        changed = False
        for index in range(store.count):
            changed |= self.set_state(store, index, state) not in (REJECTED, state)
        return changed

    def trigger_all_states(self, store: ItemStore) -> bool:
        """Trigger every visible item; ``True`` if no item was disabled."""
        result = True
        for index in range(store.count):
            result &= self.trigger_state(store, index) != REJECTED
        return result

    def indices_with_state(self, store: ItemStore, state: int) -> list[int]:
        """Return view indices of items in *state*."""
        return store.indices_where(lambda item: item.state == state)

    def items_with_state(self, store: ItemStore, state: int) -> list[Any]:
        """Return data of items in *state*."""
        return store.data_where(lambda item: item.state == state)

    def first_index_with_state(self, store: ItemStore, state: int) -> int:
        """Return the first view index in *state* or ``-1``."""
        return store.first_index_where(lambda item: item.state == state)

    def last_index_with_state(self, store: ItemStore, state: int) -> int:
        """Return the last view index in *state* or ``-1``."""
        return store.last_index_where(lambda item: item.state == state)

    def first_item_with_state(self, store: ItemStore, state: int) -> Any | None:
        """Return the data of the first item in *state* or ``None``."""
        return store.data_at(self.first_index_with_state(store, state))

    def last_item_with_state(self, store: ItemStore, state: int) -> Any | None:
        """Return the data of the last item in *state* or ``None``."""
        return store.data_at(self.last_index_with_state(store, state))

    def state_count(self, store: ItemStore, state: int) -> int:
        """Return how many visible items are in *state*."""
        return len(self.indices_with_state(store, state))

    # ------------------------------------------------------------------
    # enable state
    def is_enabled(self, store: ItemStore, index: int) -> bool:
        """Return the enable flag at *index*."""
        return store.get(index).enabled

    def set_enabled(self, store: ItemStore, index: int, enabled: bool) -> bool:
        """Set the enable flag at *index*; return ``True`` if it changed."""
        item = store.get(index)
        enabled = bool(enabled)
        if item.enabled == enabled:
            logger.debug(
                "Item %r at index %d not %s, because it already is",
                item.data,
                index,
                "enabled" if enabled else "disabled",
            )
            return False
        item.enabled = enabled
        logger.debug(
            "%s item %r at index %d", "Enabled" if enabled else "Disabled", item.data, index
        )
        store.emit(EventKind.ENABLED if enabled else EventKind.DISABLED, item, index)
        return True

    def trigger_enabled(self, store: ItemStore, index: int) -> bool:
        """Toggle the enable flag at *index* and return the new value."""
        enabled = not store.get(index).enabled
        self.set_enabled(store, index, enabled)
        return enabled

    def set_all_enabled(self, store: ItemStore, enabled: bool) -> bool:
        """Set the enable flag of every visible item; ``True`` if any changed."""
        changed = False
        for index in range(store.count):
            changed |= self.set_enabled(store, index, enabled)
        return changed

    def trigger_all_enabled(self, store: ItemStore) -> None:
        """Toggle the enable flag of every visible item."""
        for index in range(store.count):
            self.trigger_enabled(store, index)

    def are_all_enabled(self, store: ItemStore) -> bool:
        """Return ``True`` if no visible item is disabled."""
        return all(item.enabled for item in store.items())

    def enabled_count(self, store: ItemStore) -> int:
        """Return the number of enabled visible items."""
        return sum(1 for item in store.items() if item.enabled)

    def enabled_indices(self, store: ItemStore) -> list[int]:
        """Return view indices of enabled items."""
        return store.indices_where(_is_enabled)

    def disabled_indices(self, store: ItemStore) -> list[int]:
        """Return view indices of disabled items."""
        return store.indices_where(_is_disabled)

    def enabled_items(self, store: ItemStore) -> list[Any]:
        """Return data of enabled items."""
        return store.data_where(_is_enabled)

    def disabled_items(self, store: ItemStore) -> list[Any]:
        """Return data of disabled items."""
        return store.data_where(_is_disabled)

    def first_enabled_index(self, store: ItemStore) -> int:
        """Return the first enabled view index or ``-1``."""
        return store.first_index_where(_is_enabled)

    def last_enabled_index(self, store: ItemStore) -> int:
        """Return the last enabled view index or ``-1``."""
        return store.last_index_where(_is_enabled)

    def first_disabled_index(self, store: ItemStore) -> int:
        """Return the first disabled view index or ``-1``."""
        return store.first_index_where(_is_disabled)

    def last_disabled_index(self, store: ItemStore) -> int:
        """Return the last disabled view index or ``-1``."""
        return store.last_index_where(_is_disabled)

    def first_enabled_item(self, store: ItemStore) -> Any | None:
        """Return the data of the first enabled item or ``None``."""
        return store.data_at(self.first_enabled_index(store))

    def last_enabled_item(self, store: ItemStore) -> Any | None:
        """Return the data of the last enabled item or ``None``."""
        return store.data_at(self.last_enabled_index(store))

    def first_disabled_item(self, store: ItemStore) -> Any | None:
        """Return the data of the first disabled item or ``None``."""
        return store.data_at(self.first_disabled_index(store))

    def last_disabled_item(self, store: ItemStore) -> Any | None:
        """Return the data of the last disabled item or ``None``."""
        return store.data_at(self.last_disabled_index(store))


def _validate_count(number_of_states: int) -> int:
    if not isinstance(number_of_states, int) or number_of_states < 1:
        raise ValueError(f"number of states must be at least 1, got {number_of_states!r}")
    return number_of_states


def _is_enabled(item: Item) -> bool:
    return item.enabled


def _is_disabled(item: Item) -> bool:
    return not item.enabled


__all__ = ["StateTrack"]
