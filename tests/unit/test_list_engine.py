from __future__ import annotations

import pytest

from listcore.core.errors import (
    ConcurrentModificationError,
    ItemNotFoundError,
    ReentrantMutationError,
)
from listcore.core.events import EventCategory, EventKind, Level
from listcore.core.filtering import text_filter
from listcore.core.list_engine import ListEngine
from listcore.core.model import REJECTED
from listcore.settings import ListSettings

pytestmark = pytest.mark.unit


class RecordingHost:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def structure_changed(self) -> None:
        self.calls.append(("structure",))

    def item_changed(self, index: int, child_index: int | None = None) -> None:
        self.calls.append(("item", index, child_index))


class RecordingRenderer:
    def view_type(self, data):
        return "row"

    def view_type_count(self) -> int:
        return 1

    def render_item(self, data, index, **flags):
        return (data, index, flags)

    def render_group(self, data, index, **flags):
        return (data, index, flags)

    def render_child(self, data, group_index, child_index, **flags):
        return (data, group_index, child_index, flags)


def test_duplicate_add_is_rejected(recorder):
    engine = ListEngine()
    engine.add_listener(recorder)

    assert engine.add("a") == 0
    assert engine.add("a") == REJECTED
    assert engine.count == 1
    assert recorder.kinds() == [EventKind.ADDED]


def test_duplicates_allowed_by_settings():
    engine = ListEngine(settings=ListSettings(allow_duplicates=True))

    assert engine.add("a") == 0
    assert engine.add("a") == 1
    assert engine.all_items() == ("a", "a")
    assert engine.last_index_of("a") == 1


def test_added_event_carries_data_and_index(recorder):
    engine = ListEngine(["a", "c"])
    engine.add_listener(recorder)

    assert engine.insert(1, "b")

    (event,) = recorder.events
    assert event.kind is EventKind.ADDED
    assert event.level is Level.ITEM
    assert event.data == "b"
    assert event.index == 1
    assert event.source is engine
    assert engine.all_items() == ("a", "b", "c")


@pytest.mark.parametrize("index", [-1, 3, 10])
def test_index_out_of_range(index):
    engine = ListEngine(["a", "b", "c"])

    with pytest.raises(IndexError):
        engine.get(index)
    with pytest.raises(IndexError):
        engine.remove_at(index)


def test_insert_accepts_end_position_only():
    engine = ListEngine(["a"])

    assert engine.insert(1, "b")
    with pytest.raises(IndexError):
        engine.insert(3, "c")


def test_none_data_is_rejected_with_value_error():
    engine = ListEngine()

    with pytest.raises(ValueError):
        engine.add(None)
    with pytest.raises(ValueError):
        engine.add_all(["a", None])
    with pytest.raises(ValueError):
        engine.add_all(None)


def test_add_all_keeps_partial_success():
    engine = ListEngine(["b"])

    assert engine.add_all(["a", "b", "c"]) is False
    assert engine.all_items() == ("b", "a", "c")


def test_add_all_at_index_preserves_order():
    engine = ListEngine(["a", "d"])

    assert engine.add_all(["b", "c"], 1) is True
    assert engine.all_items() == ("a", "b", "c", "d")


def test_replace_reports_removal_then_addition(recorder):
    engine = ListEngine(["a", "b"])
    engine.add_listener(recorder)

    assert engine.replace(1, "c") == "b"
    assert engine.all_items() == ("a", "c")
    assert recorder.kinds() == [EventKind.REMOVED, EventKind.ADDED]


def test_replace_rejects_duplicate():
    engine = ListEngine(["a", "b"])

    assert engine.replace(1, "a") is None
    assert engine.all_items() == ("a", "b")
    assert engine.replace(1, "b") == "b"


def test_remove_by_value_and_index(recorder):
    engine = ListEngine(["a", "b", "c"])
    engine.add_listener(recorder)

    assert engine.remove("b") is True
    assert engine.remove("x") is False
    assert engine.remove_at(0) == "a"
    assert engine.all_items() == ("c",)
    assert [event.data for event in recorder.of(EventKind.REMOVED)] == ["b", "a"]


def test_remove_all_and_retain_all():
    engine = ListEngine(["a", "b", "c", "d"])

    assert engine.remove_all(["a", "c", "x"]) is False
    assert engine.all_items() == ("b", "d")
    engine.retain_all(["d"])
    assert engine.all_items() == ("d",)


def test_clear_removes_last_first(recorder):
    engine = ListEngine(["a", "b", "c"])
    engine.add_listener(recorder)

    engine.clear()

    assert engine.is_empty
    assert [event.index for event in recorder.of(EventKind.REMOVED)] == [2, 1, 0]


def test_lookup_helpers():
    engine = ListEngine(["a", "b", "c"])

    assert engine.index_of("b") == 1
    assert engine.index_of("x") == -1
    assert engine.contains("c")
    assert "c" in engine
    assert engine.contains_all(["a", "c"])
    assert not engine.contains_all(["a", "x"])
    assert engine.require_index("c") == 2
    with pytest.raises(ItemNotFoundError):
        engine.require_index("x")
    assert engine.sub_list(1, 3) == ["b", "c"]


def test_iteration_fails_fast_on_structural_change():
    engine = ListEngine(["a", "b", "c"])
    iterator = iter(engine)

    assert next(iterator) == "a"
    engine.add("d")
    with pytest.raises(ConcurrentModificationError):
        next(iterator)


def test_iteration_tolerates_flag_changes():
    engine = ListEngine(["a", "b"])

    seen = []
    for data in engine:
        engine.set_enabled(engine.index_of(data), False)
        seen.append(data)

    assert seen == ["a", "b"]
    assert engine.enabled_count() == 0


def test_listener_mutation_during_structural_event_is_rejected():
    engine = ListEngine()
    errors = []

    def listener(event):
        try:
            engine.add("nested")
        except ReentrantMutationError as exc:
            errors.append(exc)

    engine.add_listener(listener, [EventCategory.STRUCTURE])
    engine.add("a")

    assert len(errors) == 1
    assert engine.all_items() == ("a",)


def test_listener_may_mutate_during_non_structural_event():
    engine = ListEngine(["a", "b"])

    def listener(event):
        if event.kind is EventKind.SELECTED:
            engine.set_enabled(1, False)

    engine.add_listener(listener, [EventCategory.SELECTION])
    engine.select(0)

    assert engine.is_enabled(1) is False


def test_listener_errors_propagate():
    engine = ListEngine()

    def listener(event):
        raise RuntimeError("boom")

    engine.add_listener(listener)
    with pytest.raises(RuntimeError, match="boom"):
        engine.add("a")


def test_remove_listener_via_returned_callable(recorder):
    engine = ListEngine()
    remove = engine.add_listener(recorder)

    engine.add("a")
    remove()
    engine.add("b")

    assert len(recorder.events) == 1


def test_attached_host_is_notified():
    engine = ListEngine(["a", "b"])
    host = RecordingHost()

    engine.attach(host)
    engine.add("c")
    engine.set_enabled(0, False)

    assert host.calls == [("structure",), ("structure",), ("item", 0, None)]
    engine.detach()
    engine.add("d")
    assert len(host.calls) == 3


def test_host_not_notified_when_auto_notify_is_off():
    engine = ListEngine(["a"], settings=ListSettings(notify_on_change=False))
    host = RecordingHost()

    engine.attach(host)
    engine.add("b")

    assert host.calls == []


def test_attach_rejects_missing_host():
    with pytest.raises(ValueError):
        ListEngine().attach(None)


def test_render_passes_item_flags():
    engine = ListEngine(["a", "b"], renderer=RecordingRenderer())
    engine.select(1)

    data, index, flags = engine.render(1)

    assert (data, index) == ("b", 1)
    assert flags["selected"] is True
    assert flags["enabled"] is True
    assert flags["state"] == 0
    assert flags["filtered"] is False
    assert flags["view_type"] == "row"


def test_render_without_renderer_fails():
    with pytest.raises(RuntimeError):
        ListEngine(["a"]).render(0)


# ----------------------------------------------------------------------
# bulk adds while filtered
def test_add_all_while_filtered_skips_hidden_positions(recorder):
    engine = ListEngine(["apple", "apricot"])
    engine.apply_filter("ap", 0, text_filter)
    engine.add_listener(recorder, [EventCategory.STRUCTURE])

    assert engine.add_all(["banana", "apex"]) is True

    assert engine.all_items() == ("apple", "apricot", "apex")
    assert [(event.data, event.index) for event in recorder.events] == [
        ("banana", 2),
        ("apex", 2),
    ]
    engine.reset_all_filters()
    assert engine.all_items() == ("apple", "apricot", "banana", "apex")


def test_add_all_at_index_while_filtered_keeps_given_order():
    engine = ListEngine(["apple", "kiwi", "apricot"])
    engine.apply_filter("ap", 0, text_filter)

    assert engine.add_all(["banana", "apex", "cherry", "grape"], 1) is True

    assert engine.all_items() == ("apple", "apex", "grape", "apricot")
    engine.reset_all_filters()
    assert engine.all_items() == (
        "apple",
        "kiwi",
        "banana",
        "apex",
        "cherry",
        "grape",
        "apricot",
    )


def test_add_all_while_filtered_keeps_partial_success(recorder):
    engine = ListEngine(["apple", "banana"])
    engine.apply_filter("ap", 0, text_filter)
    engine.add_listener(recorder, [EventCategory.STRUCTURE])

    assert engine.add_all(["banana", "cherry", "apex"]) is False

    assert engine.all_items() == ("apple", "apex")
    assert [(event.data, event.index) for event in recorder.events] == [
        ("cherry", 1),
        ("apex", 1),
    ]
    engine.reset_all_filters()
    assert engine.all_items() == ("apple", "banana", "cherry", "apex")


# ----------------------------------------------------------------------
# list iterator
def test_list_iterator_walks_both_directions():
    engine = ListEngine(["a", "b", "c"])
    iterator = engine.list_iterator()

    assert iterator.has_previous() is False
    assert iterator.previous_index() == -1
    assert iterator.next() == "a"
    assert iterator.next() == "b"
    assert (iterator.next_index(), iterator.previous_index()) == (2, 1)
    assert iterator.previous() == "b"
    assert iterator.previous() == "a"
    assert iterator.has_previous() is False
    with pytest.raises(StopIteration):
        iterator.previous()


def test_list_iterator_starts_at_given_index():
    engine = ListEngine(["a", "b", "c"])

    assert list(engine.list_iterator(1)) == ["b", "c"]
    iterator = engine.list_iterator(3)
    assert iterator.has_next() is False
    assert iterator.previous() == "c"
    with pytest.raises(IndexError):
        engine.list_iterator(4)


def test_list_iterator_edits_notify_listeners(recorder):
    engine = ListEngine(["a", "b", "c"])
    engine.add_listener(recorder, [EventCategory.STRUCTURE])
    iterator = engine.list_iterator()

    assert iterator.next() == "a"
    assert iterator.add("x") is True
    assert iterator.next() == "b"
    assert iterator.set("B") is True
    assert iterator.next() == "c"
    assert iterator.remove() == "c"

    assert engine.all_items() == ("a", "x", "B")
    assert [(event.kind, event.data) for event in recorder.events] == [
        (EventKind.ADDED, "x"),
        (EventKind.REMOVED, "b"),
        (EventKind.ADDED, "B"),
        (EventKind.REMOVED, "c"),
    ]
    assert iterator.has_next() is False
    assert iterator.previous() == "B"


def test_list_iterator_reports_rejected_edits():
    engine = ListEngine(["a", "b"])
    iterator = engine.list_iterator()

    assert iterator.next() == "a"
    assert iterator.add("b") is False
    assert iterator.next_index() == 1
    assert iterator.next() == "b"
    assert iterator.set("a") is False
    assert engine.all_items() == ("a", "b")


def test_list_iterator_requires_a_returned_item():
    engine = ListEngine(["a", "b"])
    iterator = engine.list_iterator()

    with pytest.raises(RuntimeError):
        iterator.remove()
    iterator.next()
    iterator.remove()
    with pytest.raises(RuntimeError):
        iterator.set("z")
    assert engine.all_items() == ("b",)


def test_list_iterator_fails_fast_on_foreign_change():
    engine = ListEngine(["a", "b"])
    iterator = engine.list_iterator()
    iterator.next()

    engine.add("c")

    with pytest.raises(ConcurrentModificationError):
        iterator.next()


def test_list_iterator_edits_respect_active_filter():
    engine = ListEngine(["apple", "apricot", "avocado"])
    engine.apply_filter("ap", 0, text_filter)
    iterator = engine.list_iterator()

    assert iterator.next() == "apple"
    assert iterator.set("banana") is True
    assert iterator.next_index() == 0
    assert iterator.next() == "apricot"
    assert iterator.add("cherry") is True
    assert iterator.has_next() is False

    assert engine.all_items() == ("apricot",)
    engine.reset_all_filters()
    assert engine.all_items() == ("banana", "apricot", "avocado", "cherry")
