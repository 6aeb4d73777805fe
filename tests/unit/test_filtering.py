from __future__ import annotations

import pytest

from listcore.core.errors import FilteringNotSupportedError, UnsupportedOperationError
from listcore.core.events import EventCategory, EventKind
from listcore.core.filtering import FLAG_CASE_SENSITIVE, text_filter
from listcore.core.list_engine import ListEngine
from listcore.core.model import FilterQuery, Matchable

pytestmark = pytest.mark.unit

FRUIT = ["apple", "banana", "cherry", "mango", "kiwi"]


class Tag(Matchable):
    def __init__(self, name: str) -> None:
        self.name = name

    def match(self, query: str, flags: int) -> bool:
        return self.name.startswith(query)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Tag) and other.name == self.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"Tag({self.name!r})"


def test_apply_then_reset_restores_original_order():
    engine = ListEngine(FRUIT)

    hidden = engine.apply_filter("an", 0, text_filter)

    assert engine.all_items() == ("banana", "mango")
    assert hidden == ["apple", "cherry", "kiwi"]
    assert engine.reset_filter("an") is True
    assert engine.all_items() == tuple(FRUIT)
    assert not engine.is_filtered


def test_resetting_first_of_two_filters_equals_second_alone():
    engine = ListEngine(FRUIT)
    only_second = ListEngine(FRUIT)

    engine.apply_filter("a", 0, text_filter)
    engine.apply_filter("e", 0, text_filter)
    engine.reset_filter("a")
    only_second.apply_filter("e", 0, text_filter)

    assert engine.all_items() == only_second.all_items() == ("apple", "cherry")


def test_filters_are_anded():
    engine = ListEngine(FRUIT)

    engine.apply_filter("a", 0, text_filter)
    engine.apply_filter("n", 0, text_filter)

    assert engine.all_items() == ("banana", "mango")
    assert engine.filter_queries() == (FilterQuery("a"), FilterQuery("n"))


def test_applying_same_filter_twice_returns_none(recorder):
    engine = ListEngine(FRUIT)
    engine.apply_filter("an", 0, text_filter)
    engine.add_listener(recorder)

    assert engine.apply_filter("an", 0, text_filter) is None
    assert engine.is_filter_applied("an")
    assert not engine.is_filter_applied("an", FLAG_CASE_SENSITIVE)
    assert recorder.events == []


def test_reset_of_unknown_filter_returns_false():
    engine = ListEngine(FRUIT)

    assert engine.reset_filter("x") is False
    assert engine.reset_all_filters() is False


def test_reset_all_filters():
    engine = ListEngine(FRUIT)
    engine.apply_filter("a", 0, text_filter)
    engine.apply_filter("n", 0, text_filter)

    assert engine.reset_all_filters() is True
    assert engine.all_items() == tuple(FRUIT)
    assert engine.filter_queries() == ()


def test_case_sensitive_flag():
    engine = ListEngine(["Apple", "apple"])

    engine.apply_filter("A", FLAG_CASE_SENSITIVE, text_filter)

    assert engine.all_items() == ("Apple",)


def test_filtering_without_capability_fails():
    engine = ListEngine(FRUIT)

    with pytest.raises(FilteringNotSupportedError):
        engine.apply_filter("an")
    assert isinstance(FilteringNotSupportedError("x"), UnsupportedOperationError)
    assert engine.all_items() == tuple(FRUIT)


def test_matchable_data_filters_without_predicate():
    engine = ListEngine([Tag("alpha"), Tag("beta"), Tag("alps")])

    engine.apply_filter("al")

    assert engine.all_items() == (Tag("alpha"), Tag("alps"))


def test_predicate_takes_priority_over_capability():
    engine = ListEngine([Tag("alpha"), Tag("beta")])

    engine.apply_filter("et", 0, lambda data, query, flags: query in data.name)

    assert engine.all_items() == (Tag("beta"),)


def test_filter_events_carry_query_and_view(recorder):
    engine = ListEngine(FRUIT)
    engine.add_listener(recorder, [EventCategory.FILTER])

    engine.apply_filter("an", 0, text_filter)
    engine.reset_filter("an")

    applied, reset = recorder.events
    assert applied.kind is EventKind.FILTER_APPLIED
    assert applied.query == FilterQuery("an")
    assert applied.items == ("banana", "mango")
    assert reset.kind is EventKind.FILTER_RESET
    assert reset.items == tuple(FRUIT)


def test_added_items_are_checked_against_active_filters():
    engine = ListEngine(FRUIT[:3])
    engine.apply_filter("an", 0, text_filter)

    assert engine.add("mango") == 1
    assert engine.add("kiwi") == 2
    assert engine.all_items() == ("banana", "mango")

    engine.reset_filter("an")
    assert engine.all_items() == ("apple", "banana", "cherry", "mango", "kiwi")


def test_hidden_items_still_count_as_duplicates():
    engine = ListEngine(FRUIT)
    engine.apply_filter("an", 0, text_filter)

    assert engine.add("apple") == -1
    assert not engine.contains("apple")


def test_filtered_out_selection_is_cleared(recorder):
    engine = ListEngine(FRUIT)
    engine.select(0)
    engine.add_listener(recorder, [EventCategory.SELECTION])

    engine.apply_filter("an", 0, text_filter)

    (event,) = recorder.events
    assert (event.kind, event.data, event.index) == (EventKind.UNSELECTED, "apple", 0)
    engine.reset_filter("an")
    assert engine.selected_count() == 0


def test_clear_while_filtered_keeps_hidden_items():
    engine = ListEngine(FRUIT)
    engine.apply_filter("an", 0, text_filter)

    engine.clear()
    assert engine.is_empty

    engine.reset_filter("an")
    assert engine.all_items() == ("apple", "cherry", "kiwi")


def test_indices_address_the_filtered_view():
    engine = ListEngine(FRUIT)
    engine.apply_filter("an", 0, text_filter)

    assert engine.get(1) == "mango"
    assert engine.remove_at(0) == "banana"
    engine.reset_filter("an")
    assert engine.all_items() == ("apple", "cherry", "mango", "kiwi")
