from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from listcore.core.errors import (
    FilteringNotSupportedError,
    ItemNotFoundError,
    ListCoreError,
    ReentrantMutationError,
)
from listcore.core.model import (
    FLAG_FILTER_EMPTY_GROUPS,
    FilterQuery,
    Group,
    Item,
    Order,
    SelectionScope,
    is_matchable,
    is_orderable,
)

pytestmark = pytest.mark.unit


def test_item_rejects_missing_data():
    with pytest.raises(ValueError):
        Item(None)


def test_items_compare_by_identity():
    first = Item("a")

    assert first != Item("a")
    assert first == first


def test_plain_data_is_not_matchable():
    assert not is_matchable("text")
    with pytest.raises(FilteringNotSupportedError):
        Item("text").matches("t", 0)


@pytest.mark.parametrize("value", ["a", 1, 2.5, Decimal("1.5"), date(2024, 1, 1), (1, 2)])
def test_natural_types_are_orderable(value):
    assert is_orderable(value)


def test_custom_objects_are_not_orderable():
    assert not is_orderable(object())


def test_group_hides_itself_when_empty_under_empty_group_flag():
    group = Group("g")

    assert group.is_empty
    assert group.child_count == 0
    assert group.matches("", FLAG_FILTER_EMPTY_GROUPS) is False


def test_filter_query_identity():
    assert FilterQuery("a") == FilterQuery("a", 0)
    assert FilterQuery("a", 1) != FilterQuery("a")
    with pytest.raises(ValueError):
        FilterQuery(None)


def test_enum_values():
    assert Order("descending") is Order.DESCENDING
    assert SelectionScope.GROUPS_ONLY.groups_selectable
    assert not SelectionScope.GROUPS_ONLY.children_selectable
    assert not SelectionScope.CHILDREN_ONLY.groups_selectable


def test_error_hierarchy():
    assert issubclass(ItemNotFoundError, LookupError)
    assert issubclass(ReentrantMutationError, ListCoreError)
    assert issubclass(FilteringNotSupportedError, TypeError)
