from __future__ import annotations

import pytest

from listcore.core.events import EventCategory, EventKind
from listcore.core.filtering import text_filter
from listcore.core.list_engine import ListEngine
from listcore.core.model import REJECTED
from listcore.settings import ListSettings

pytestmark = pytest.mark.unit


def _engine(items=("a", "b", "c"), states=2) -> ListEngine:
    return ListEngine(items, settings=ListSettings(number_of_states=states))


def test_trigger_state_wraps_around():
    engine = _engine(["a"])

    assert engine.get_state(0) == 0
    assert engine.trigger_state(0) == 1
    assert engine.get_state(0) == 1
    assert engine.trigger_state(0) == 0
    assert engine.get_state(0) == 0


def test_set_state_returns_previous_and_notifies(recorder):
    engine = _engine(states=3)
    engine.add_listener(recorder, [EventCategory.ITEM_STATE])

    assert engine.set_state(1, 2) == 0
    assert engine.set_state(1, 2) == 2

    (event,) = recorder.events
    assert event.kind is EventKind.STATE_CHANGED
    assert (event.index, event.state) == (1, 2)


@pytest.mark.parametrize("state", [-1, 2, 7])
def test_set_state_out_of_range_fails(state):
    engine = _engine()

    with pytest.raises(ValueError):
        engine.set_state(0, state)


def test_disabled_item_keeps_its_state(recorder):
    engine = _engine()
    engine.set_enabled(0, False)
    engine.add_listener(recorder)

    assert engine.set_state(0, 1) == REJECTED
    assert engine.trigger_state(0) == REJECTED
    assert engine.get_state(0) == 0
    assert recorder.events == []


def test_set_all_states_reports_any_change():
    engine = _engine()
    engine.set_state(0, 1)

    assert engine.set_all_states(1) is True
    assert engine.set_all_states(1) is False
    assert engine.indices_with_state(1) == [0, 1, 2]


def test_trigger_all_states_skips_disabled_items():
    engine = _engine()
    engine.set_enabled(1, False)

    assert engine.trigger_all_states() is False
    assert engine.items_with_state(1) == ["a", "c"]
    assert engine.state_count(0) == 1


def test_state_queries():
    engine = _engine(["a", "b", "c", "d"], states=3)
    engine.set_state(1, 2)
    engine.set_state(3, 2)

    assert engine.first_index_with_state(2) == 1
    assert engine.last_index_with_state(2) == 3
    assert engine.first_item_with_state(2) == "b"
    assert engine.last_item_with_state(2) == "d"
    assert engine.first_index_with_state(1) == -1
    assert engine.first_item_with_state(1) is None


def test_reducing_number_of_states_clamps_items():
    engine = _engine(states=3)
    engine.set_state(2, 2)

    engine.number_of_states = 2

    assert engine.get_state(2) == 1
    assert engine.max_state == 1
    assert engine.min_state == 0


def test_reducing_number_of_states_reports_only_visible_items(recorder):
    engine = _engine(["apple", "banana", "apricot"], states=3)
    for index in range(3):
        engine.set_state(index, 2)
    engine.apply_filter("ap", 0, text_filter)
    engine.add_listener(recorder, [EventCategory.ITEM_STATE])

    engine.number_of_states = 2

    assert [(event.data, event.index) for event in recorder.events] == [
        ("apple", 0),
        ("apricot", 1),
    ]
    assert all(event.index >= 0 for event in recorder.events)
    engine.reset_all_filters()
    assert engine.get_state(1) == 1


def test_number_of_states_must_be_positive():
    engine = _engine()

    with pytest.raises(ValueError):
        engine.number_of_states = 0


def test_enable_state_changes(recorder):
    engine = _engine()
    engine.add_listener(recorder, [EventCategory.ENABLE_STATE])

    assert engine.set_enabled(1, False) is True
    assert engine.set_enabled(1, False) is False
    assert engine.trigger_enabled(1) is True

    assert recorder.kinds() == [EventKind.DISABLED, EventKind.ENABLED]


def test_enable_queries():
    engine = _engine(["a", "b", "c", "d"])
    engine.set_enabled(1, False)
    engine.set_enabled(2, False)

    assert not engine.are_all_enabled()
    assert engine.enabled_count() == 2
    assert engine.enabled_indices() == [0, 3]
    assert engine.disabled_indices() == [1, 2]
    assert engine.enabled_items() == ["a", "d"]
    assert engine.disabled_items() == ["b", "c"]
    assert engine.first_disabled_index() == 1
    assert engine.last_disabled_index() == 2
    assert engine.first_enabled_item() == "a"
    assert engine.last_enabled_item() == "d"
    assert engine.first_disabled_item() == "b"
    assert engine.last_disabled_item() == "c"


def test_set_all_enabled_and_trigger_all():
    engine = _engine()

    assert engine.set_all_enabled(False) is True
    assert engine.set_all_enabled(False) is False
    engine.trigger_all_enabled()
    assert engine.are_all_enabled()
