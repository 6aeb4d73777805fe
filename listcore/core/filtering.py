"""Live, non-destructive filtering of an item store."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..log import change_record, logger
from .events import EventKind
from .model import FLAG_FILTER_EMPTY_GROUPS, FilterQuery, Item

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .item_store import ItemStore

# text_filter flag making the substring match case-sensitive.
FLAG_CASE_SENSITIVE = 1

Predicate = Callable[[Any, str, int], bool]


def text_filter(data: Any, query: str, flags: int) -> bool:
    """Return ``True`` if ``query`` occurs in ``str(data)``.

    Matching is case-insensitive unless :data:`FLAG_CASE_SENSITIVE` is set.
    An empty query matches everything.
    """
    if not query:
        return True
    text = str(data)
    if flags & FLAG_CASE_SENSITIVE:
        return query in text
    return query.lower() in text.lower()


@dataclass(frozen=True)
class AppliedFilter:
    """Active filter of one scope, identified by ``(query, flags)``.

    The optional predicate takes priority over the data's own
    :class:`~listcore.core.model.Matchable` implementation and does not take
    part in equality.
    """

    query: str
    flags: int = 0
    predicate: Predicate | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        """Reject a missing query text."""
        if self.query is None:
            raise ValueError("The query may not be None")

    @property
    def key(self) -> FilterQuery:
        """Return the value object identifying this filter."""
        return FilterQuery(self.query, self.flags)

    def matches(self, item: Item) -> bool:
        """Return ``True`` if *item* passes this filter."""
        if self.predicate is not None:
            return bool(self.predicate(item.data, self.query, self.flags))
        return item.matches(self.query, self.flags)


class FilterEngine:
    """Maintain the applied filters of one store and its projected view.

    Filters are ANDed. Applying narrows the current view; resetting
    recomputes the view from the unfiltered items against the remaining
    filters, so the unfiltered order is restored exactly once none is left.
    """

    def __init__(self, store: ItemStore) -> None:
        """Bind the engine to *store*."""
        self._store = store
        self._applied: dict[AppliedFilter, None] = {}

    @property
    def applied(self) -> tuple[AppliedFilter, ...]:
        """Return applied filters in application order."""
        return tuple(self._applied)

    @property
    def queries(self) -> tuple[FilterQuery, ...]:
        """Return the ``(query, flags)`` pairs of applied filters."""
        return tuple(applied.key for applied in self._applied)

    @property
    def is_filtered(self) -> bool:
        """Return ``True`` while at least one filter is applied."""
        return bool(self._applied)

    def is_applied(self, query: str, flags: int = 0) -> bool:
        """Return ``True`` if a filter with ``query`` and ``flags`` is applied."""
        return AppliedFilter(query, flags) in self._applied

    def accepts(self, item: Item) -> bool:
        """Return ``True`` if *item* matches every applied filter."""
        return all(applied.matches(item) for applied in self._applied)

    def apply(
        self,
        query: str,
        flags: int = 0,
        predicate: Predicate | None = None,
    ) -> list[Item] | None:
        """Apply a filter and return the items it removed from the view.

        Returns ``None`` when a filter with the same ``query`` and ``flags``
        is already applied. Selected items that get filtered out are
        deselected.
        """
        applied = AppliedFilter(query, flags, predicate)
        if applied in self._applied:
            logger.debug(
                "Filter with query %r and flags %d not applied, because it is already applied",
                query,
                flags,
            )
            return None
        store = self._store
        current = store.items()
        verdicts = [applied.matches(item) for item in current]
        kept = [item for item, keep in zip(current, verdicts) if keep]
        removed = [
            (index, item) for index, (item, keep) in enumerate(zip(current, verdicts)) if not keep
        ]
        self._applied[applied] = None
        store.set_view(kept)
        for index, item in removed:
            if item.selected:
                item.selected = False
                store.emit(EventKind.UNSELECTED, item, index)
        logger.info(
            "Applied filter with query %r and flags %d, %d of %d items remain",
            query,
            flags,
            len(kept),
            len(current),
            extra=change_record(
                "filter_applied", query=query, flags=flags, visible=len(kept)
            ),
        )
        store.emit(
            EventKind.FILTER_APPLIED,
            None,
            -1,
            query=applied.key,
            items=tuple(item.data for item in kept),
        )
        return [item for _, item in removed]

    def reset(self, query: str, flags: int = 0) -> bool:
        """Remove one filter and recompute the view; ``False`` if not applied."""
        applied = AppliedFilter(query, flags)
        if applied not in self._applied:
            logger.debug(
                "Filter with query %r and flags %d not reset, because it is not applied",
                query,
                flags,
            )
            return False
        del self._applied[applied]
        self.refresh()
        logger.info(
            "Reset filter with query %r and flags %d",
            query,
            flags,
            extra=change_record("filter_reset", query=query, flags=flags),
        )
        self._store.emit(
            EventKind.FILTER_RESET,
            None,
            -1,
            query=applied.key,
            items=tuple(self._store.data()),
        )
        return True

    def reset_all(self) -> bool:
        """Reset every applied filter, last applied first."""
        if not self._applied:
            return False
        for applied in reversed(self.applied):
            self.reset(applied.query, applied.flags)
        return True

    def refresh(self) -> None:
        """Recompute the view from the unfiltered items."""
        store = self._store
        if not self._applied:
            store.set_view(None)
            return
        store.set_view(item for item in store.unfiltered_items() if self.accepts(item))

    def load(self, applied: list[AppliedFilter]) -> None:
        """Install *applied* filters without events and recompute the view."""
        self._applied = dict.fromkeys(applied)
        self.refresh()


def is_empty_group_filter(applied: AppliedFilter) -> bool:
    """Return ``True`` for the filter hiding groups without visible children."""
    return applied.query == "" and applied.flags == FLAG_FILTER_EMPTY_GROUPS


__all__ = [
    "AppliedFilter",
    "FLAG_CASE_SENSITIVE",
    "FilterEngine",
    "Predicate",
    "is_empty_group_filter",
    "text_filter",
]
