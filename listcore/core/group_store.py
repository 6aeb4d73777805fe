"""Two-level stateful collection engine: groups owning child lists."""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from ..log import logger
from ..settings import GroupSettings
from .codec import ScopeSnapshot, StateCodec
from .collaborators import Host, HostBinding, Renderer, Transport
from .errors import ItemNotFoundError, SelectionNotSupportedError
from .events import Event, EventCategory, EventKind, Level, Listener, ListenerHub, mutation
from .filtering import Predicate
from .item_store import ItemStore
from .list_iterator import ListIterator
from .model import (
    FLAG_FILTER_EMPTY_GROUPS,
    REJECTED,
    ChoiceMode,
    FilterQuery,
    Group,
    Item,
    Order,
    SelectionScope,
)
from .selection import SelectionTrack
from .sorting import SortKey
from .state import StateTrack

# a visible group index or the data of a visible group
GroupRef = Any

_STRUCTURAL_KINDS = frozenset(
    {
        EventKind.ADDED,
        EventKind.REMOVED,
        EventKind.FILTER_APPLIED,
        EventKind.FILTER_RESET,
        EventKind.SORTED,
    }
)


def _is_expanded(group: Item) -> bool:
    return group.expanded  # type: ignore[attr-defined]


def _is_collapsed(group: Item) -> bool:
    return not group.expanded  # type: ignore[attr-defined]


class GroupStore:
    """Ordered groups, each owning an independent ordered list of children.

    Group indices address the current group view; child indices address the
    current child view of their group. Child operations address their group
    either by index or by the group's data; an ``int`` is always read as an
    index and data not present raises :class:`ItemNotFoundError`. Removing a
    group removes its visible children first, each reported individually,
    then the group itself.
    """

    def __init__(
        self,
        *,
        settings: GroupSettings | None = None,
        renderer: Renderer | None = None,
    ) -> None:
        """Create an empty store configured by *settings*."""
        self.settings = settings.model_copy() if settings is not None else GroupSettings()
        self.hub = ListenerHub()
        self.renderer = renderer
        self._binding = HostBinding()
        self._group_states = StateTrack(self.settings.number_of_group_states)
        self._child_states = StateTrack(self.settings.number_of_child_states)
        self._selection = SelectionTrack(self.settings.choice_mode)
        self._groups = ItemStore(
            allow_duplicates=self.settings.allow_duplicate_groups, emit=self._emit_group
        )

    # ------------------------------------------------------------------
    # plumbing
    @property
    def group_store(self) -> ItemStore:
        """Return the store holding the groups."""
        return self._groups

    def _new_group(self, data: Any) -> Group:
        group = Group(data)
        self._attach_children(group, ())
        return group

    def _attach_children(self, group: Group, children: Iterable[Item]) -> None:
        group.children = ItemStore(
            allow_duplicates=True,
            emit=functools.partial(self._emit_child, group),
            guard=functools.partial(self._admits_child, group),
        )
        group.children.load(children)

    def _admits_child(self, group: Group, data: Any) -> bool:
        if not self.settings.allow_duplicate_children and self.contains_child_anywhere(data):
            return False
        local = group.allow_duplicate_children
        if local is None:
            local = self.settings.allow_duplicate_children
        return local or not group.children.contains_unfiltered(data)

    def _emit_group(self, kind: EventKind, item: Item | None, index: int, **payload: Any) -> None:
        event = Event(
            kind,
            Level.GROUP,
            self,
            data=None if item is None else item.data,
            index=index,
            **payload,
        )
        self._dispatch(event, index, None)

    def _emit_child(
        self, group: Group, kind: EventKind, item: Item | None, index: int, **payload: Any
    ) -> None:
        group_index = self._groups.position(group)
        event = Event(
            kind,
            Level.CHILD,
            self,
            data=None if item is None else item.data,
            index=index,
            group=group.data,
            group_index=group_index,
            **payload,
        )
        self._dispatch(event, group_index, index)

    def _dispatch(self, event: Event, index: int, child_index: int | None) -> None:
        self.hub.dispatch(event)
        if not self.settings.notify_on_change:
            return
        if event.kind in _STRUCTURAL_KINDS:
            self._binding.structure_changed()
        elif index >= 0:
            self._binding.item_changed(index, child_index)

    def _group(self, group_index: int) -> Group:
        return self._groups.get(group_index)  # type: ignore[return-value]

    def _position(self, group: GroupRef) -> int:
        if isinstance(group, int) and not isinstance(group, bool):
            return group
        return self.require_group(group)

    def _children(self, group: GroupRef) -> ItemStore:
        return self._group(self._position(group)).children

    def _all_groups(self) -> tuple[Group, ...]:
        return self._groups.unfiltered_items()  # type: ignore[return-value]

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
        """Attach the store to *host* and request a full refresh."""
        self._binding.attach(host)
        if self.settings.notify_on_change:
            self._binding.structure_changed()

    def detach(self) -> None:
        """Detach the store from its host."""
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

    def _renderer(self) -> Renderer:
        if self.renderer is None:
            raise RuntimeError("No renderer is configured")
        return self.renderer

    def render_group(self, group_index: int) -> Any:
        """Ask the renderer for a view handle of the group at *group_index*."""
        renderer = self._renderer()
        group = self._group(group_index)
        return renderer.render_group(
            group.data,
            group_index,
            expanded=group.expanded,
            view_type=renderer.view_type(group.data),
            enabled=group.enabled,
            state=group.state,
            filtered=self._groups.is_filtered,
            selected=group.selected,
        )

    def render_child(self, group_index: GroupRef, child_index: int) -> Any:
        """Ask the renderer for a view handle of one child."""
        renderer = self._renderer()
        group_index = self._position(group_index)
        group = self._group(group_index)
        child = group.children.get(child_index)
        return renderer.render_child(
            child.data,
            group_index,
            child_index,
            group=group.data,
            view_type=renderer.view_type(child.data),
            enabled=child.enabled,
            state=child.state,
            filtered=group.children.is_filtered,
            selected=child.selected,
        )

    # ------------------------------------------------------------------
    # duplicate policies
    @property
    def allow_duplicate_groups(self) -> bool:
        """Return whether data-equal groups may be stored."""
        return self._groups.allow_duplicates

    @allow_duplicate_groups.setter
    def allow_duplicate_groups(self, value: bool) -> None:
        """Change the duplicate policy of the group list."""
        self.settings.allow_duplicate_groups = value
        self._groups.allow_duplicates = self.settings.allow_duplicate_groups
        logger.debug("Duplicate groups are now %s", "allowed" if value else "disallowed")

    @property
    def allow_duplicate_children(self) -> bool:
        """Return whether data-equal children may exist across all groups."""
        return self.settings.allow_duplicate_children

    @allow_duplicate_children.setter
    def allow_duplicate_children(self, value: bool) -> None:
        """Change the store-wide duplicate policy of children."""
        self.settings.allow_duplicate_children = value
        logger.debug("Duplicate children are now %s", "allowed" if value else "disallowed")

    def are_duplicate_children_allowed(self, group_index: GroupRef) -> bool:
        """Return the effective duplicate policy within one group."""
        local = self._group(self._position(group_index)).allow_duplicate_children
        return self.settings.allow_duplicate_children if local is None else local

    def set_allow_duplicate_children(self, group_index: GroupRef, value: bool | None) -> None:
        """Set the duplicate policy of one group; ``None`` inherits the global one."""
        self._group(self._position(group_index)).allow_duplicate_children = value

    # ------------------------------------------------------------------
    # groups: structure
    @property
    def group_count(self) -> int:
        """Return the number of visible groups."""
        return self._groups.count

    @property
    def is_empty(self) -> bool:
        """Return ``True`` when no group is visible."""
        return self._groups.is_empty

    def __len__(self) -> int:
        """Return the number of visible groups."""
        return self._groups.count

    def __iter__(self) -> Iterator[Any]:
        """Iterate over visible group data, failing fast on structural change."""
        return self.iterate_groups()

    def iterate_groups(self, start: int = 0) -> Iterator[Any]:
        """Yield visible group data from *start* on."""
        for group in self._groups.iterate(start):
            yield group.data

    def get_group(self, group_index: int) -> Any:
        """Return the data of the group at *group_index*."""
        return self._group(group_index).data

    def all_groups(self) -> tuple[Any, ...]:
        """Return the visible group data as an immutable tuple."""
        return tuple(self._groups.data())

    def index_of_group(self, data: Any) -> int:
        """Return the first index of group *data* or ``-1``."""
        return self._groups.index_of(data)

    def last_index_of_group(self, data: Any) -> int:
        """Return the last index of group *data* or ``-1``."""
        return self._groups.last_index_of(data)

    def require_group(self, data: Any) -> int:
        """Return the index of group *data* or raise :class:`ItemNotFoundError`."""
        index = self._groups.index_of(data)
        if index == -1:
            raise ItemNotFoundError(f"group {data!r} is not contained")
        return index

    def contains_group(self, data: Any) -> bool:
        """Return ``True`` if group *data* is visible."""
        return self._groups.contains(data)

    def contains_all_groups(self, items: Iterable[Any]) -> bool:
        """Return ``True`` if every element of *items* is a visible group."""
        return all(self._groups.contains(data) for data in _require_items(items))

    @mutation
    def add_group(self, data: Any) -> int:
        """Append group *data*; return its index or :data:`REJECTED`."""
        return self._insert_group(self._groups.count, self._new_group(data))

    @mutation
    def insert_group(self, group_index: int, data: Any) -> bool:
        """Insert group *data* at *group_index*; ``False`` for duplicates."""
        return self._insert_group(group_index, self._new_group(data)) != REJECTED

    @mutation
    def add_all_groups(self, items: Iterable[Any], group_index: int | None = None) -> bool:
        """Add every element of *items* as a group; ``True`` only if all were added.

        Groups hidden by an active group filter do not advance the insertion
        position.
        """
        items = _require_items(items)
        if group_index is None:
            position = self._groups.count
        else:
            position = self._groups.check_index(group_index, allow_end=True)
        result = True
        for data in items:
            group = self._new_group(data)
            if self._insert_group(position, group) == REJECTED:
                result = False
            elif self._groups.position(group) != -1:
                position += 1
        return result

    @mutation
    def add_group_sorted(self, data: Any, key: SortKey | None = None) -> int:
        """Insert group *data* where the remembered group order places it."""
        group = self._new_group(data)
        return self._insert_group(self._groups.sorting.insertion_index(group, key), group)

    def _insert_group(self, group_index: int, group: Group) -> int:
        if not self._groups.insert(group_index, group):
            return REJECTED
        self._adapt(self._groups, group_index)
        return group_index

    @mutation
    def replace_group(self, group_index: int, data: Any) -> Any | None:
        """Replace the group at *group_index*; return the old data or ``None``.

        The children of the replaced group are removed first.
        """
        previous = self._group(group_index)
        if previous.data != data and not self._groups.admits(data):
            logger.debug("Group %r not replaced, because duplicates are not allowed", data)
            return None
        self._clear_children(previous)
        replaced = self._groups.replace(group_index, self._new_group(data))
        if replaced is None:
            return None
        self._adapt(self._groups, group_index)
        return replaced.data

    @mutation
    def remove_group_at(self, group_index: int) -> Any:
        """Remove the group at *group_index* with its children; return its data."""
        return self._remove_group_at(group_index)

    @mutation
    def remove_group(self, data: Any) -> bool:
        """Remove the first group holding *data*; ``False`` if absent."""
        group_index = self._groups.index_of(data)
        if group_index == -1:
            logger.debug("Group %r not removed, because it is not contained", data)
            return False
        self._remove_group_at(group_index)
        return True

    @mutation
    def remove_all_groups(self, items: Iterable[Any]) -> bool:
        """Remove every visible group in *items*; ``True`` if as many were removed."""
        items = _require_items(items)
        return self._remove_groups_where(lambda group: group.data in items) == len(items)

    @mutation
    def retain_all_groups(self, items: Iterable[Any]) -> None:
        """Remove every visible group not in *items*."""
        items = _require_items(items)
        self._remove_groups_where(lambda group: group.data not in items)

    @mutation
    def clear_groups(self) -> None:
        """Remove every visible group with its children, last first."""
        self._remove_groups_where(lambda group: True)

    def _remove_group_at(self, group_index: int) -> Any:
        group = self._group(group_index)
        self._clear_children(group)
        self._groups.pop(group_index)
        self._adapt(self._groups, group_index)
        return group.data

    def _remove_groups_where(self, predicate: Callable[[Item], bool]) -> int:
        removed = 0
        for group_index in range(self._groups.count - 1, -1, -1):
            if predicate(self._groups.get(group_index)):
                self._remove_group_at(group_index)
                removed += 1
        return removed

    def _clear_children(self, group: Group) -> None:
        children = group.children
        for child_index in range(children.count - 1, -1, -1):
            children.pop(child_index)

    # ------------------------------------------------------------------
    # children: structure
    def child_count(self, group_index: GroupRef) -> int:
        """Return the number of visible children of one group."""
        return self._children(group_index).count

    def total_child_count(self) -> int:
        """Return the number of visible children of all visible groups."""
        return sum(group.child_count for group in self._groups.items())

    def is_group_empty(self, group_index: GroupRef) -> bool:
        """Return ``True`` when the group has no visible child."""
        return self._children(group_index).is_empty

    def all_children(self, group_index: GroupRef | None = None) -> tuple[Any, ...]:
        """Return the visible child data of one group, or of every visible group."""
        if group_index is None:
            return tuple(data for group in self._groups.items() for data in group.children.data())
        return tuple(self._children(group_index).data())

    def get_child(self, group_index: GroupRef, child_index: int) -> Any:
        """Return the data of one child."""
        return self._children(group_index).get(child_index).data

    def iterate_children(self, group_index: GroupRef, start: int = 0) -> Iterator[Any]:
        """Yield visible child data of one group, failing fast on change."""
        for child in self._children(group_index).iterate(start):
            yield child.data

    def iterate_all_children(self) -> Iterator[Any]:
        """Yield the visible children of every visible group, group by group.

        Fails fast when the groups or the children being walked change.
        """
        for group in self._groups.iterate():
            for child in group.children.iterate():  # type: ignore[attr-defined]
                yield child.data

    def child_iterator(self, group_index: GroupRef | None = None) -> Iterator[Any]:
        """Return a fail-fast iterator over one group's children, or all of them."""
        if group_index is None:
            return self.iterate_all_children()
        return self.iterate_children(group_index)

    def group_list_iterator(self, start: int = 0) -> ListIterator:
        """Return a bidirectional iterator over the groups positioned before *start*.

        Its ``add``, ``set`` and ``remove`` go through :meth:`insert_group`,
        :meth:`replace_group` and :meth:`remove_group_at`.
        """
        return ListIterator(
            self._groups,
            insert=self.insert_group,
            replace=self.replace_group,
            remove=self.remove_group_at,
            start=start,
        )

    def child_list_iterator(self, group_index: GroupRef, start: int = 0) -> ListIterator:
        """Return a bidirectional iterator over one group's children.

        Edits go through :meth:`insert_child`, :meth:`replace_child` and
        :meth:`remove_child_at`, addressing the group by its current index.
        """
        group = self._group(self._position(group_index))

        def owner() -> int:
            group_index = self._groups.position(group)
            if group_index == -1:
                raise ItemNotFoundError(f"group {group.data!r} is no longer visible")
            return group_index

        return ListIterator(
            group.children,
            insert=lambda index, data: self.insert_child(owner(), index, data),
            replace=lambda index, data: self.replace_child(owner(), index, data),
            remove=lambda index: self.remove_child_at(owner(), index),
            start=start,
        )

    def sub_list_groups(self, start: int, end: int) -> list[Any]:
        """Return the visible group data in ``[start, end)``."""
        return [group.data for group in self._groups.sub_list(start, end)]

    def sub_list_children(self, group_index: GroupRef, start: int, end: int) -> list[Any]:
        """Return the visible child data of one group in ``[start, end)``."""
        return [child.data for child in self._children(group_index).sub_list(start, end)]

    def index_of_child(self, group_index: GroupRef, data: Any) -> int:
        """Return the first index of child *data* in one group or ``-1``."""
        return self._children(group_index).index_of(data)

    def last_index_of_child(self, group_index: GroupRef, data: Any) -> int:
        """Return the last index of child *data* in one group or ``-1``."""
        return self._children(group_index).last_index_of(data)

    def group_index_of_child(self, data: Any) -> int:
        """Return the index of the first visible group showing child *data*, or ``-1``."""
        return self._groups.first_index_where(
            lambda group: group.children.contains(data)  # type: ignore[attr-defined]
        )

    def last_group_index_of_child(self, data: Any) -> int:
        """Return the index of the last visible group showing child *data*, or ``-1``."""
        return self._groups.last_index_where(
            lambda group: group.children.contains(data)  # type: ignore[attr-defined]
        )

    def contains_child(self, group_index: GroupRef, data: Any) -> bool:
        """Return ``True`` if child *data* is visible in one group."""
        return self._children(group_index).contains(data)

    def contains_child_in_any_group(self, data: Any) -> bool:
        """Return ``True`` if child *data* is visible in any visible group."""
        return self.group_index_of_child(data) != -1

    def contains_child_anywhere(self, data: Any) -> bool:
        """Return ``True`` if any group stores child *data*, visible or not."""
        return any(group.children.contains_unfiltered(data) for group in self._all_groups())

    def contains_all_children(self, group_index: GroupRef, items: Iterable[Any]) -> bool:
        """Return ``True`` if every element of *items* is visible in one group."""
        children = self._children(group_index)
        return all(children.contains(data) for data in _require_items(items))

    @mutation
    def add_child(self, group_index: GroupRef, data: Any) -> int:
        """Append child *data* to one group; return its index or :data:`REJECTED`."""
        children = self._children(group_index)
        return self._insert_child(children, children.count, Item(data))

    @mutation
    def insert_child(self, group_index: GroupRef, child_index: int, data: Any) -> bool:
        """Insert child *data* at *child_index*; ``False`` for duplicates."""
        return self._insert_child(self._children(group_index), child_index, Item(data)) != REJECTED

    @mutation
    def add_all_children(
        self, group_index: GroupRef, items: Iterable[Any], child_index: int | None = None
    ) -> bool:
        """Add every element of *items* to one group; ``True`` only if all were added.

        Children hidden by an active child filter do not advance the
        insertion position.
        """
        items = _require_items(items)
        children = self._children(group_index)
        if child_index is None:
            position = children.count
        else:
            position = children.check_index(child_index, allow_end=True)
        result = True
        for data in items:
            child = Item(data)
            if self._insert_child(children, position, child) == REJECTED:
                result = False
            elif children.position(child) != -1:
                position += 1
        return result

    @mutation
    def add_child_sorted(
        self, group_index: GroupRef, data: Any, key: SortKey | None = None
    ) -> int:
        """Insert child *data* where the group's remembered order places it."""
        children = self._children(group_index)
        child = Item(data)
        return self._insert_child(children, children.sorting.insertion_index(child, key), child)

    def _insert_child(self, children: ItemStore, child_index: int, child: Item) -> int:
        if not children.insert(child_index, child):
            return REJECTED
        self._adapt(children, child_index)
        return child_index

    @mutation
    def replace_child(self, group_index: GroupRef, child_index: int, data: Any) -> Any | None:
        """Replace one child; return the old data or ``None`` if rejected."""
        children = self._children(group_index)
        previous = children.replace(child_index, Item(data))
        if previous is None:
            return None
        self._adapt(children, child_index)
        return previous.data

    @mutation
    def remove_child_at(
        self, group_index: GroupRef, child_index: int, remove_empty_group: bool = False
    ) -> Any:
        """Remove one child and return its data.

        With *remove_empty_group* the group is removed as well once it has
        no child left.
        """
        group_index = self._position(group_index)
        group = self._group(group_index)
        child = group.children.pop(child_index)
        self._after_child_removal(group_index, group, child_index, remove_empty_group)
        return child.data

    @mutation
    def remove_child(
        self, group_index: GroupRef, data: Any, remove_empty_group: bool = False
    ) -> bool:
        """Remove the first child holding *data* from one group; ``False`` if absent."""
        group_index = self._position(group_index)
        group = self._group(group_index)
        child_index = group.children.index_of(data)
        if child_index == -1:
            logger.debug("Child %r not removed, because it is not contained", data)
            return False
        group.children.pop(child_index)
        self._after_child_removal(group_index, group, child_index, remove_empty_group)
        return True

    @mutation
    def remove_all_children(
        self, group_index: GroupRef, items: Iterable[Any], remove_empty_group: bool = False
    ) -> bool:
        """Remove visible children in *items*; ``True`` if as many were removed."""
        items = _require_items(items)
        removed = self._remove_children_where(
            self._position(group_index), lambda child: child.data in items, remove_empty_group
        )
        return removed == len(items)

    @mutation
    def remove_children_from_all_groups(
        self, items: Iterable[Any], remove_empty_groups: bool = False
    ) -> bool:
        """Remove visible children in *items* from every visible group, last group first.

        Returns ``True`` if as many children were removed as were given.
        """
        items = _require_items(items)
        removed = 0
        for group_index in range(self._groups.count - 1, -1, -1):
            removed += self._remove_children_where(
                group_index, lambda child: child.data in items, remove_empty_groups
            )
        return removed == len(items)

    @mutation
    def retain_all_children(self, group_index: GroupRef, items: Iterable[Any]) -> None:
        """Remove visible children of one group not in *items*."""
        items = _require_items(items)
        self._remove_children_where(
            self._position(group_index), lambda child: child.data not in items, False
        )

    @mutation
    def retain_children_in_all_groups(
        self, items: Iterable[Any], remove_empty_groups: bool = False
    ) -> None:
        """Remove visible children not in *items* from every visible group."""
        items = _require_items(items)
        for group_index in range(self._groups.count - 1, -1, -1):
            self._remove_children_where(
                group_index, lambda child: child.data not in items, remove_empty_groups
            )

    @mutation
    def clear_children(
        self, group_index: GroupRef | None = None, remove_empty_group: bool = False
    ) -> None:
        """Remove every visible child of one group, or of every visible group, last first."""
        if group_index is not None:
            positions = [self._position(group_index)]
        else:
            positions = list(range(self._groups.count - 1, -1, -1))
        for position in positions:
            self._remove_children_where(position, lambda child: True, remove_empty_group)

    def _remove_children_where(
        self,
        group_index: int,
        predicate: Callable[[Item], bool],
        remove_empty_group: bool,
    ) -> int:
        group = self._group(group_index)
        children = group.children
        removed = 0
        lowest = 0
        for child_index in range(children.count - 1, -1, -1):
            if predicate(children.get(child_index)):
                children.pop(child_index)
                removed += 1
                lowest = child_index
        if removed:
            self._after_child_removal(group_index, group, lowest, remove_empty_group)
        return removed

    def _after_child_removal(
        self, group_index: int, group: Group, child_index: int, remove_empty_group: bool
    ) -> None:
        if remove_empty_group and group.children.unfiltered_count == 0:
            self._remove_group_at(group_index)
            return
        self._adapt(group.children, child_index)

    # ------------------------------------------------------------------
    # expansion
    def is_group_expanded(self, group_index: int) -> bool:
        """Return ``True`` if the group at *group_index* is expanded."""
        return self._group(group_index).expanded

    @mutation
    def expand_group(self, group_index: int) -> bool:
        """Expand one group; ``True`` if it was collapsed."""
        return self._set_expanded(group_index, True)

    @mutation
    def collapse_group(self, group_index: int) -> bool:
        """Collapse one group; ``True`` if it was expanded."""
        return self._set_expanded(group_index, False)

    @mutation
    def trigger_expansion(self, group_index: int) -> bool:
        """Toggle the expansion of one group and return the new value."""
        expanded = not self._group(group_index).expanded
        self._set_expanded(group_index, expanded)
        return expanded

    @mutation
    def expand_all(self) -> bool:
        """Expand every visible group; ``True`` if any changed."""
        changed = False
        for group_index in range(self._groups.count):
            changed |= self._set_expanded(group_index, True)
        return changed

    @mutation
    def collapse_all(self) -> bool:
        """Collapse every visible group; ``True`` if any changed."""
        changed = False
        for group_index in range(self._groups.count):
            changed |= self._set_expanded(group_index, False)
        return changed

    def _set_expanded(self, group_index: int, expanded: bool) -> bool:
        group = self._group(group_index)
        if group.expanded == expanded:
            return False
        group.expanded = expanded
        logger.debug(
            "%s group %r at index %d",
            "Expanded" if expanded else "Collapsed",
            group.data,
            group_index,
        )
        kind = EventKind.EXPANDED if expanded else EventKind.COLLAPSED
        self._emit_group(kind, group, group_index)
        return True

    def expanded_count(self) -> int:
        """Return the number of expanded visible groups."""
        return len(self.expanded_indices())

    def collapsed_count(self) -> int:
        """Return the number of collapsed visible groups."""
        return len(self.collapsed_indices())

    def expanded_indices(self) -> list[int]:
        """Return indices of expanded groups."""
        return self._groups.indices_where(_is_expanded)

    def collapsed_indices(self) -> list[int]:
        """Return indices of collapsed groups."""
        return self._groups.indices_where(_is_collapsed)

    def expanded_groups(self) -> list[Any]:
        """Return data of expanded groups."""
        return self._groups.data_where(_is_expanded)

    def collapsed_groups(self) -> list[Any]:
        """Return data of collapsed groups."""
        return self._groups.data_where(_is_collapsed)

    def first_expanded_index(self) -> int:
        """Return the first expanded group index or ``-1``."""
        return self._groups.first_index_where(_is_expanded)

    def last_expanded_index(self) -> int:
        """Return the last expanded group index or ``-1``."""
        return self._groups.last_index_where(_is_expanded)

    def first_collapsed_index(self) -> int:
        """Return the first collapsed group index or ``-1``."""
        return self._groups.first_index_where(_is_collapsed)

    def last_collapsed_index(self) -> int:
        """Return the last collapsed group index or ``-1``."""
        return self._groups.last_index_where(_is_collapsed)

    def first_expanded_group(self) -> Any | None:
        """Return the first expanded group data or ``None``."""
        return self._groups.data_at(self.first_expanded_index())

    def last_expanded_group(self) -> Any | None:
        """Return the last expanded group data or ``None``."""
        return self._groups.data_at(self.last_expanded_index())

    def first_collapsed_group(self) -> Any | None:
        """Return the first collapsed group data or ``None``."""
        return self._groups.data_at(self.first_collapsed_index())

    def last_collapsed_group(self) -> Any | None:
        """Return the last collapsed group data or ``None``."""
        return self._groups.data_at(self.last_collapsed_index())

    # ------------------------------------------------------------------
    # item state
    @property
    def number_of_group_states(self) -> int:
        """Return how many states a group may have."""
        return self._group_states.number_of_states

    @number_of_group_states.setter
    def number_of_group_states(self, value: int) -> None:
        """Change the group state count, clamping existing states."""
        self.settings.number_of_group_states = value
        self._group_states.set_number_of_states(value, [self._groups])

    @property
    def number_of_child_states(self) -> int:
        """Return how many states a child may have."""
        return self._child_states.number_of_states

    @number_of_child_states.setter
    def number_of_child_states(self, value: int) -> None:
        """Change the child state count, clamping existing states."""
        self.settings.number_of_child_states = value
        groups = self._all_groups()
        self._child_states.set_number_of_states(
            value,
            [group.children for group in groups if self._groups.position(group) != -1],
            hidden=[group.children for group in groups if self._groups.position(group) == -1],
        )

    @property
    def set_child_states_implicitly(self) -> bool:
        """Return whether group state changes are copied to the children."""
        return self.settings.set_child_states_implicitly

    @set_child_states_implicitly.setter
    def set_child_states_implicitly(self, value: bool) -> None:
        """Toggle copying group states to children."""
        self.settings.set_child_states_implicitly = value

    def get_group_state(self, group_index: int) -> int:
        """Return the state of one group."""
        return self._group_states.get_state(self._groups, group_index)

    @mutation
    def set_group_state(self, group_index: int, state: int) -> int:
        """Set the state of one group; return the previous one or :data:`REJECTED`."""
        previous = self._group_states.set_state(self._groups, group_index, state)
        if previous != REJECTED:
            self._cascade_state(group_index, state)
        return previous

    @mutation
    def trigger_group_state(self, group_index: int) -> int:
        """Advance the state of one group cyclically; return the new state."""
        state = self._group_states.trigger_state(self._groups, group_index)
        if state != REJECTED:
            self._cascade_state(group_index, state)
        return state

    @mutation
    def set_all_group_states(self, state: int) -> bool:
        """Set *state* on every enabled group; ``True`` if any changed."""
        self._group_states.validate_state(state)
        changed = False
        for group_index in range(self._groups.count):
            previous = self._group_states.set_state(self._groups, group_index, state)
            if previous != REJECTED:
                changed |= previous != state
                self._cascade_state(group_index, state)
        return changed

    @mutation
    def trigger_all_group_states(self) -> bool:
        """Trigger every group state; ``True`` if no group was disabled."""
        result = True
        for group_index in range(self._groups.count):
            state = self._group_states.trigger_state(self._groups, group_index)
            if state == REJECTED:
                result = False
            else:
                self._cascade_state(group_index, state)
        return result

    def _cascade_state(self, group_index: int, state: int) -> None:
        if not self.settings.set_child_states_implicitly:
            return
        children = self._children(group_index)
        state = min(state, self._child_states.max_state)
        for child_index in range(children.count):
            self._child_states.set_state(children, child_index, state)

    def indices_with_group_state(self, state: int) -> list[int]:
        """Return indices of groups in *state*."""
        return self._group_states.indices_with_state(self._groups, state)

    def groups_with_state(self, state: int) -> list[Any]:
        """Return data of groups in *state*."""
        return self._group_states.items_with_state(self._groups, state)

    def first_group_index_with_state(self, state: int) -> int:
        """Return the first group index in *state* or ``-1``."""
        return self._group_states.first_index_with_state(self._groups, state)

    def last_group_index_with_state(self, state: int) -> int:
        """Return the last group index in *state* or ``-1``."""
        return self._group_states.last_index_with_state(self._groups, state)

    def group_state_count(self, state: int) -> int:
        """Return how many groups are in *state*."""
        return self._group_states.state_count(self._groups, state)

    def get_child_state(self, group_index: GroupRef, child_index: int) -> int:
        """Return the state of one child."""
        return self._child_states.get_state(self._children(group_index), child_index)

    @mutation
    def set_child_state(self, group_index: GroupRef, child_index: int, state: int) -> int:
        """Set the state of one child; return the previous one or :data:`REJECTED`."""
        return self._child_states.set_state(self._children(group_index), child_index, state)

    @mutation
    def trigger_child_state(self, group_index: GroupRef, child_index: int) -> int:
        """Advance the state of one child cyclically; return the new state."""
        return self._child_states.trigger_state(self._children(group_index), child_index)

    @mutation
    def set_all_child_states(self, group_index: GroupRef, state: int) -> bool:
        """Set *state* on every enabled child of one group; ``True`` if any changed."""
        return self._child_states.set_all_states(self._children(group_index), state)

    @mutation
    def trigger_all_child_states(self, group_index: GroupRef) -> bool:
        """Trigger every child state of one group; ``True`` if none was disabled."""
        return self._child_states.trigger_all_states(self._children(group_index))

    def child_indices_with_state(self, group_index: GroupRef, state: int) -> list[int]:
        """Return indices of children of one group in *state*."""
        return self._child_states.indices_with_state(self._children(group_index), state)

    def children_with_state(self, group_index: GroupRef, state: int) -> list[Any]:
        """Return data of children of one group in *state*."""
        return self._child_states.items_with_state(self._children(group_index), state)

    def child_state_count(self, group_index: GroupRef, state: int) -> int:
        """Return how many children of one group are in *state*."""
        return self._child_states.state_count(self._children(group_index), state)

    # ------------------------------------------------------------------
    # enable state
    @property
    def set_child_enable_states_implicitly(self) -> bool:
        """Return whether group enable changes are copied to the children."""
        return self.settings.set_child_enable_states_implicitly

    @set_child_enable_states_implicitly.setter
    def set_child_enable_states_implicitly(self, value: bool) -> None:
        """Toggle copying group enable states to children."""
        self.settings.set_child_enable_states_implicitly = value

    def is_group_enabled(self, group_index: int) -> bool:
        """Return ``True`` if the group at *group_index* is enabled."""
        return self._group_states.is_enabled(self._groups, group_index)

    @mutation
    def set_group_enabled(self, group_index: int, enabled: bool) -> bool:
        """Enable or disable one group; ``True`` if it changed."""
        return self._set_group_enabled(group_index, enabled)

    @mutation
    def trigger_group_enabled(self, group_index: int) -> bool:
        """Toggle the enable flag of one group and return the new value."""
        enabled = not self._group(group_index).enabled
        self._set_group_enabled(group_index, enabled)
        return enabled

    @mutation
    def set_all_groups_enabled(self, enabled: bool) -> bool:
        """Enable or disable every group; ``True`` if any changed."""
        changed = False
        for group_index in range(self._groups.count):
            changed |= self._set_group_enabled(group_index, enabled)
        return changed

    def _set_group_enabled(self, group_index: int, enabled: bool) -> bool:
        group = self._group(group_index)
        changed = self._group_states.set_enabled(self._groups, group_index, enabled)
        if changed and self.settings.set_child_enable_states_implicitly:
            for child_index in range(group.children.count):
                self._set_child_enabled(group.children, child_index, enabled)
        if changed and not enabled and group.selected:
            self._adapt_after_disable(self._groups, group_index)
        elif changed and enabled:
            self._adapt(self._groups, group_index)
        return changed

    def are_all_groups_enabled(self) -> bool:
        """Return ``True`` if no visible group is disabled."""
        return self._group_states.are_all_enabled(self._groups)

    def enabled_group_count(self) -> int:
        """Return the number of enabled groups."""
        return self._group_states.enabled_count(self._groups)

    def enabled_group_indices(self) -> list[int]:
        """Return indices of enabled groups."""
        return self._group_states.enabled_indices(self._groups)

    def disabled_group_indices(self) -> list[int]:
        """Return indices of disabled groups."""
        return self._group_states.disabled_indices(self._groups)

    def enabled_groups(self) -> list[Any]:
        """Return data of enabled groups."""
        return self._group_states.enabled_items(self._groups)

    def disabled_groups(self) -> list[Any]:
        """Return data of disabled groups."""
        return self._group_states.disabled_items(self._groups)

    def first_enabled_group_index(self) -> int:
        """Return the first enabled group index or ``-1``."""
        return self._group_states.first_enabled_index(self._groups)

    def last_enabled_group_index(self) -> int:
        """Return the last enabled group index or ``-1``."""
        return self._group_states.last_enabled_index(self._groups)

    def is_child_enabled(self, group_index: GroupRef, child_index: int) -> bool:
        """Return ``True`` if one child is enabled."""
        return self._child_states.is_enabled(self._children(group_index), child_index)

    @mutation
    def set_child_enabled(self, group_index: GroupRef, child_index: int, enabled: bool) -> bool:
        """Enable or disable one child; ``True`` if it changed."""
        return self._set_child_enabled(self._children(group_index), child_index, enabled)

    @mutation
    def trigger_child_enabled(self, group_index: GroupRef, child_index: int) -> bool:
        """Toggle the enable flag of one child and return the new value."""
        children = self._children(group_index)
        enabled = not children.get(child_index).enabled
        self._set_child_enabled(children, child_index, enabled)
        return enabled

    @mutation
    def set_all_children_enabled(self, group_index: GroupRef, enabled: bool) -> bool:
        """Enable or disable every child of one group; ``True`` if any changed."""
        children = self._children(group_index)
        changed = False
        for child_index in range(children.count):
            changed |= self._set_child_enabled(children, child_index, enabled)
        return changed

    def _set_child_enabled(self, children: ItemStore, child_index: int, enabled: bool) -> bool:
        child = children.get(child_index)
        changed = self._child_states.set_enabled(children, child_index, enabled)
        if changed and not enabled and child.selected:
            self._adapt_after_disable(children, child_index)
        elif changed and enabled:
            self._adapt(children, child_index)
        return changed

    def enabled_child_count(self, group_index: GroupRef) -> int:
        """Return the number of enabled children of one group."""
        return self._child_states.enabled_count(self._children(group_index))

    def enabled_child_indices(self, group_index: GroupRef) -> list[int]:
        """Return indices of enabled children of one group."""
        return self._child_states.enabled_indices(self._children(group_index))

    def disabled_child_indices(self, group_index: GroupRef) -> list[int]:
        """Return indices of disabled children of one group."""
        return self._child_states.disabled_indices(self._children(group_index))

    def enabled_children(self, group_index: GroupRef) -> list[Any]:
        """Return data of enabled children of one group."""
        return self._child_states.enabled_items(self._children(group_index))

    def disabled_children(self, group_index: GroupRef) -> list[Any]:
        """Return data of disabled children of one group."""
        return self._child_states.disabled_items(self._children(group_index))

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
        self._selection.set_choice_mode(value, self._selection_domain())
        self._adapt(None, 0)

    @property
    def selection_scope(self) -> SelectionScope:
        """Return which levels may be selected."""
        return self.settings.selection_scope

    @selection_scope.setter
    def selection_scope(self, value: SelectionScope | str) -> None:
        """Change the selectable levels, deselecting forbidden ones."""
        scope = SelectionScope(value)
        self.settings.selection_scope = scope
        if not scope.groups_selectable:
            self._deselect_stores([self._groups])
        if not scope.children_selectable:
            self._deselect_stores(group.children for group in self._all_groups())
        self._adapt(None, 0)

    @property
    def adapt_selection_automatically(self) -> bool:
        """Return whether single choice keeps something selected automatically."""
        return self.settings.adapt_selection_automatically

    @adapt_selection_automatically.setter
    def adapt_selection_automatically(self, value: bool) -> None:
        """Toggle automatic selection in single choice mode."""
        self.settings.adapt_selection_automatically = value
        self._adapt(None, 0)

    def _selection_domain(self) -> list[ItemStore]:
        return [self._groups, *(group.children for group in self._all_groups())]

    def _deselect_stores(self, stores: Iterable[ItemStore]) -> None:
        for store in stores:
            for index, item in enumerate(store.items()):
                if item.selected:
                    self._selection.set_selected(store, index, False)

    def _has_selection(self) -> bool:
        return any(
            item.selected for store in self._selection_domain() for item in store.items()
        )

    def _adapt(self, store: ItemStore | None, index: int) -> None:
        """Select the enabled item nearest to *index* if nothing is selected."""
        if not (
            self.settings.adapt_selection_automatically
            and self._selection.choice_mode is ChoiceMode.SINGLE
        ):
            return
        if self._has_selection():
            return
        domain = self._selection_domain()
        scope = self.settings.selection_scope
        if store is not None and self._selectable(store) and store.count:
            start = min(index, store.count)
            if self._selection.select_nearest_enabled(store, start, domain) != -1:
                return
        if scope.groups_selectable:
            if self._selection.select_nearest_enabled(self._groups, 0, domain) != -1:
                return
        if scope.children_selectable:
            for group in self._groups.items():
                if self._selection.select_nearest_enabled(group.children, 0, domain) != -1:
                    return

    def _adapt_after_disable(self, store: ItemStore, index: int) -> None:
        if not (
            self.settings.adapt_selection_automatically
            and self._selection.choice_mode is ChoiceMode.SINGLE
        ):
            return
        self._selection.set_selected(store, index, False)
        self._adapt(store, index)

    def _selectable(self, store: ItemStore) -> bool:
        scope = self.settings.selection_scope
        if store is self._groups:
            return scope.groups_selectable
        return scope.children_selectable

    def _require_groups_selectable(self, selected: bool) -> None:
        if selected and not self.settings.selection_scope.groups_selectable:
            raise SelectionNotSupportedError("Groups are not selectable in this selection scope")

    def _require_children_selectable(self, selected: bool) -> None:
        if selected and not self.settings.selection_scope.children_selectable:
            raise SelectionNotSupportedError("Children are not selectable in this selection scope")

    def is_group_selected(self, group_index: int) -> bool:
        """Return ``True`` if the group at *group_index* is selected."""
        return self._selection.is_selected(self._groups, group_index)

    @mutation
    def set_group_selected(self, group_index: int, selected: bool) -> bool:
        """Select or deselect one group; ``True`` if it changed."""
        return self._set_group_selected(group_index, selected)

    def _set_group_selected(self, group_index: int, selected: bool) -> bool:
        self._require_groups_selectable(selected)
        return self._selection.set_selected(
            self._groups, group_index, selected, self._selection_domain()
        )

    @mutation
    def select_group(self, group_index: int) -> bool:
        """Select one group; ``True`` if it changed."""
        return self._set_group_selected(group_index, True)

    @mutation
    def trigger_group_selection(self, group_index: int) -> bool:
        """Toggle the selection of one group; ``True`` if it changed."""
        selected = not self._group(group_index).selected
        return self._set_group_selected(group_index, selected)

    @mutation
    def set_all_groups_selected(self, selected: bool) -> bool:
        """Select or deselect every group; ``True`` if any changed."""
        self._require_groups_selectable(selected)
        return self._selection.set_all_selected(self._groups, selected)

    def is_child_selected(self, group_index: GroupRef, child_index: int) -> bool:
        """Return ``True`` if one child is selected."""
        return self._selection.is_selected(self._children(group_index), child_index)

    @mutation
    def set_child_selected(self, group_index: GroupRef, child_index: int, selected: bool) -> bool:
        """Select or deselect one child; ``True`` if it changed."""
        return self._set_child_selected(group_index, child_index, selected)

    def _set_child_selected(self, group_index: GroupRef, child_index: int, selected: bool) -> bool:
        self._require_children_selectable(selected)
        return self._selection.set_selected(
            self._children(group_index), child_index, selected, self._selection_domain()
        )

    @mutation
    def select_child(self, group_index: GroupRef, child_index: int) -> bool:
        """Select one child; ``True`` if it changed."""
        return self._set_child_selected(group_index, child_index, True)

    @mutation
    def trigger_child_selection(self, group_index: GroupRef, child_index: int) -> bool:
        """Toggle the selection of one child; ``True`` if it changed."""
        selected = not self._children(group_index).get(child_index).selected
        return self._set_child_selected(group_index, child_index, selected)

    @mutation
    def set_all_children_selected(self, group_index: GroupRef, selected: bool) -> bool:
        """Select or deselect every child of one group; ``True`` if any changed."""
        self._require_children_selectable(selected)
        return self._selection.set_all_selected(self._children(group_index), selected)

    @property
    def selected_group_index(self) -> int:
        """Return the index of the (first) selected group or ``-1``."""
        return self._selection.selected_index(self._groups)

    @property
    def selected_group(self) -> Any | None:
        """Return the (first) selected group data or ``None``."""
        return self._selection.selected_item(self._groups)

    @property
    def selected_child_position(self) -> tuple[int, int] | None:
        """Return ``(group_index, child_index)`` of the first selected child."""
        for group_index, group in enumerate(self._groups.items()):
            child_index = self._selection.selected_index(group.children)
            if child_index != -1:
                return group_index, child_index
        return None

    def selected_group_indices(self) -> list[int]:
        """Return indices of selected groups."""
        return self._selection.selected_indices(self._groups)

    def unselected_group_indices(self) -> list[int]:
        """Return indices of unselected groups."""
        return self._selection.unselected_indices(self._groups)

    def selected_groups(self) -> list[Any]:
        """Return data of selected groups."""
        return self._selection.selected_items(self._groups)

    def unselected_groups(self) -> list[Any]:
        """Return data of unselected groups."""
        return self._selection.unselected_items(self._groups)

    def selected_group_count(self) -> int:
        """Return the number of selected groups."""
        return self._selection.selected_count(self._groups)

    def selected_child_indices(self, group_index: GroupRef) -> list[int]:
        """Return indices of selected children of one group."""
        return self._selection.selected_indices(self._children(group_index))

    def unselected_child_indices(self, group_index: GroupRef) -> list[int]:
        """Return indices of unselected children of one group."""
        return self._selection.unselected_indices(self._children(group_index))

    def selected_children(self, group_index: GroupRef) -> list[Any]:
        """Return data of selected children of one group."""
        return self._selection.selected_items(self._children(group_index))

    def unselected_children(self, group_index: GroupRef) -> list[Any]:
        """Return data of unselected children of one group."""
        return self._selection.unselected_items(self._children(group_index))

    def selected_child_count(self, group_index: GroupRef | None = None) -> int:
        """Return the number of selected children of one or all visible groups."""
        if group_index is not None:
            return self._selection.selected_count(self._children(group_index))
        return sum(
            self._selection.selected_count(group.children) for group in self._groups.items()
        )

    # ------------------------------------------------------------------
    # filtering
    @mutation
    def apply_group_filter(
        self,
        query: str,
        flags: int = 0,
        predicate: Predicate | None = None,
    ) -> list[Any] | None:
        """Filter the groups; return the hidden group data or ``None`` if already applied."""
        removed = self._groups.filters.apply(query, flags, predicate)
        if removed is None:
            return None
        self._adapt(self._groups, 0)
        return [group.data for group in removed]

    @mutation
    def reset_group_filter(self, query: str, flags: int = 0) -> bool:
        """Reset one group filter; ``False`` if it was not applied."""
        if not self._groups.filters.reset(query, flags):
            return False
        self._adapt(self._groups, 0)
        return True

    @mutation
    def reset_all_group_filters(self) -> bool:
        """Reset every group filter; ``False`` if none was applied."""
        if not self._groups.filters.reset_all():
            return False
        self._adapt(self._groups, 0)
        return True

    @property
    def are_groups_filtered(self) -> bool:
        """Return ``True`` while a group filter is applied."""
        return self._groups.filters.is_filtered

    def is_group_filter_applied(self, query: str, flags: int = 0) -> bool:
        """Return ``True`` if the group filter ``(query, flags)`` is applied."""
        return self._groups.filters.is_applied(query, flags)

    def group_filter_queries(self) -> tuple[FilterQuery, ...]:
        """Return applied group filters in application order."""
        return self._groups.filters.queries

    def _target_groups(self, group_index: GroupRef | None) -> tuple[Group, ...]:
        if group_index is None:
            return self._all_groups()
        return (self._group(self._position(group_index)),)

    @mutation
    def apply_child_filter(
        self,
        query: str,
        flags: int = 0,
        predicate: Predicate | None = None,
        *,
        group_index: GroupRef | None = None,
        filter_empty_groups: bool = False,
    ) -> bool:
        """Filter the children of one group, or of every group when omitted.

        Returns ``True`` only if the filter was newly applied to every
        targeted group. With *filter_empty_groups* groups left without
        visible children are hidden as well.
        """
        result = True
        for group in self._target_groups(group_index):
            result &= group.children.filters.apply(query, flags, predicate) is not None
        if filter_empty_groups:
            self._filter_empty_groups()
        self._adapt(None, 0)
        return result

    def _filter_empty_groups(self) -> None:
        if self._groups.filters.is_applied("", FLAG_FILTER_EMPTY_GROUPS):
            self._groups.filters.reset("", FLAG_FILTER_EMPTY_GROUPS)
        self._groups.filters.apply("", FLAG_FILTER_EMPTY_GROUPS)

    @mutation
    def reset_child_filter(
        self, query: str, flags: int = 0, *, group_index: GroupRef | None = None
    ) -> bool:
        """Reset a child filter of one or every group; ``True`` if reset everywhere.

        Groups hidden because they were empty are shown again.
        """
        result = True
        for group in self._target_groups(group_index):
            result &= group.children.filters.reset(query, flags)
        if self._groups.filters.is_applied("", FLAG_FILTER_EMPTY_GROUPS):
            self._groups.filters.reset("", FLAG_FILTER_EMPTY_GROUPS)
        self._adapt(None, 0)
        return result

    @mutation
    def reset_all_child_filters(self, group_index: GroupRef | None = None) -> None:
        """Reset every child filter of one or every group."""
        if self._groups.filters.is_applied("", FLAG_FILTER_EMPTY_GROUPS):
            self._groups.filters.reset("", FLAG_FILTER_EMPTY_GROUPS)
        for group in self._target_groups(group_index):
            group.children.filters.reset_all()
        self._adapt(None, 0)

    def are_children_filtered(self, group_index: GroupRef) -> bool:
        """Return ``True`` while a child filter of one group is applied."""
        return self._children(group_index).filters.is_filtered

    def is_child_filter_applied(self, group_index: GroupRef, query: str, flags: int = 0) -> bool:
        """Return ``True`` if the child filter ``(query, flags)`` is applied to one group."""
        return self._children(group_index).filters.is_applied(query, flags)

    def child_filter_queries(self, group_index: GroupRef) -> tuple[FilterQuery, ...]:
        """Return applied child filters of one group in application order."""
        return self._children(group_index).filters.queries

    # ------------------------------------------------------------------
    # sorting
    @mutation
    def sort_groups(self, order: Order | str | None = None, key: SortKey | None = None) -> None:
        """Sort the groups stably; omitted arguments reuse the remembered ones."""
        self._groups.sorting.sort(order, key)

    @mutation
    def sort_children(
        self,
        group_index: GroupRef | None = None,
        order: Order | str | None = None,
        key: SortKey | None = None,
    ) -> None:
        """Sort the children of one group, or of every group when omitted."""
        for group in self._target_groups(group_index):
            group.children.sorting.sort(order, key)

    @property
    def group_sort_order(self) -> Order | None:
        """Return the remembered group sort order."""
        return self._groups.sorting.order

    def child_sort_order(self, group_index: GroupRef) -> Order | None:
        """Return the remembered child sort order of one group."""
        return self._children(group_index).sorting.order

    # ------------------------------------------------------------------
    # persistence
    def save(self, codec: StateCodec | None = None) -> bytes:
        """Serialise the store into a blob."""
        return (codec or StateCodec()).save_groups(self)

    def restore(self, blob: bytes | None, codec: StateCodec | None = None) -> bool:
        """Replace the store content from *blob*; ``False`` if it is unusable."""
        return (codec or StateCodec()).restore_groups(self, blob)

    def save_to(self, transport: Transport, key: str, codec: StateCodec | None = None) -> None:
        """Serialise the store into *transport* under *key*."""
        transport.put(key, self.save(codec))

    def restore_from(
        self, transport: Transport, key: str, codec: StateCodec | None = None
    ) -> bool:
        """Restore the store from *transport*; ``False`` if absent or unusable."""
        return self.restore(transport.get(key), codec)

    def _install(
        self,
        settings: GroupSettings,
        scope: ScopeSnapshot,
        children: list[ScopeSnapshot],
    ) -> None:
        """Replace all content without emitting events."""
        self.settings = settings
        self._group_states = StateTrack(settings.number_of_group_states)
        self._child_states = StateTrack(settings.number_of_child_states)
        self._selection = SelectionTrack(settings.choice_mode)
        self._groups.allow_duplicates = settings.allow_duplicate_groups
        for group, child_scope in zip(scope.items, children):
            self._attach_children(group, child_scope.items)  # type: ignore[arg-type]
            group.children.filters.load(child_scope.filters)
            group.children.sorting.load(child_scope.order, child_scope.key)
        self._groups.load(scope.items)
        self._groups.filters.load(scope.filters)
        self._groups.sorting.load(scope.order, scope.key)

    def __repr__(self) -> str:
        """Return a debugging representation."""
        groups = {group.data: group.children.data() for group in self._groups.items()}
        return f"GroupStore({groups!r})"


def _require_items(items: Iterable[Any]) -> list[Any]:
    if items is None:
        raise ValueError("The items may not be None")
    items = list(items)
    if any(data is None for data in items):
        raise ValueError("The items may not contain None")
    return items


__all__ = ["GroupStore"]
