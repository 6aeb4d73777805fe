from __future__ import annotations

import pytest

from listcore.core.errors import SortingNotSupportedError
from listcore.core.events import EventCategory, EventKind
from listcore.core.filtering import text_filter
from listcore.core.list_engine import ListEngine
from listcore.core.model import Order
from listcore.settings import ListSettings

pytestmark = pytest.mark.unit


def _first_letter(word: str) -> str:
    return word[0]


class Opaque:
    def __init__(self, value: int) -> None:
        self.value = value


def test_sort_ascending_and_descending_are_reverses():
    engine = ListEngine(["pear", "fig", "apple", "kiwi"])

    engine.sort(Order.ASCENDING)
    ascending = engine.all_items()
    engine.sort(Order.DESCENDING)

    assert ascending == ("apple", "fig", "kiwi", "pear")
    assert engine.all_items() == tuple(reversed(ascending))


def test_sort_keeps_input_order_of_equal_keys():
    words = ["bob", "alf", "bea", "ann", "bart"]
    engine = ListEngine(words)

    engine.sort(Order.ASCENDING, _first_letter)
    assert engine.all_items() == ("alf", "ann", "bob", "bea", "bart")

    engine.sort(Order.DESCENDING)
    assert engine.all_items() == ("bob", "bea", "bart", "alf", "ann")


def test_sort_remembers_order_and_key():
    engine = ListEngine(["b", "c", "a"])

    engine.sort()
    assert engine.sort_order is Order.ASCENDING
    assert engine.sort_key is None

    engine.sort(Order.DESCENDING, str.upper)
    engine.add("d")
    engine.sort()
    assert engine.all_items() == ("d", "c", "b", "a")
    assert engine.sort_key is str.upper


def test_sort_accepts_order_names():
    engine = ListEngine([2, 3, 1])

    engine.sort("descending")

    assert engine.all_items() == (3, 2, 1)


def test_sorted_event(recorder):
    engine = ListEngine(["b", "a"])
    engine.add_listener(recorder, [EventCategory.SORTING])

    engine.sort()

    (event,) = recorder.events
    assert event.kind is EventKind.SORTED
    assert event.order is Order.ASCENDING
    assert event.items == ("a", "b")


def test_sorting_without_capability_fails():
    engine = ListEngine([Opaque(2), Opaque(1)])

    with pytest.raises(SortingNotSupportedError):
        engine.sort()
    engine.sort(Order.ASCENDING, key=lambda data: data.value)
    assert [data.value for data in engine.all_items()] == [1, 2]


def test_sorting_incomparable_values_fails():
    engine = ListEngine([1, "a"])

    with pytest.raises(SortingNotSupportedError):
        engine.sort()
    assert engine.all_items() == (1, "a")


def test_sort_while_filtered_reorders_hidden_items_too():
    engine = ListEngine(["pear", "banana", "apple", "mango"])
    engine.apply_filter("an", 0, text_filter)

    engine.sort()
    assert engine.all_items() == ("banana", "mango")

    engine.reset_filter("an")
    assert engine.all_items() == ("apple", "banana", "mango", "pear")


def test_add_sorted_inserts_at_ordered_position():
    engine = ListEngine(["d", "b", "f"])
    engine.sort()

    assert engine.add_sorted("c") == 1
    assert engine.add_sorted("a") == 0
    assert engine.add_sorted("g") == 5
    assert engine.all_items() == ("a", "b", "c", "d", "f", "g")


def test_add_sorted_places_equal_keys_last():
    engine = ListEngine(["alf", "bob"], settings=ListSettings(allow_duplicates=True))
    engine.sort(Order.ASCENDING, _first_letter)

    assert engine.add_sorted("ann") == 1
    assert engine.all_items() == ("alf", "ann", "bob")


def test_add_sorted_descending():
    engine = ListEngine([1, 5, 3])
    engine.sort(Order.DESCENDING)

    assert engine.add_sorted(4) == 1
    assert engine.all_items() == (5, 4, 3, 1)
