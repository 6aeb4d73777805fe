"""Serialise engines into versioned JSON blobs and restore them."""

from __future__ import annotations

import importlib
import json
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from jsonschema import validate as _validate
from jsonschema.exceptions import ValidationError as SchemaValidationError
from pydantic import ValidationError

from ..log import change_record, logger
from ..settings import GroupSettings, ListSettings
from .errors import UnsupportedOperationError
from .filtering import AppliedFilter, is_empty_group_filter
from .model import ChoiceMode, Group, Item, Order

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .group_store import GroupStore
    from .item_store import ItemStore
    from .list_engine import ListEngine

FORMAT_NAME = "listcore"
FORMAT_VERSION = 1

_FILTER: dict[str, Any] = {
    "type": "object",
    "required": ["query", "flags", "predicate"],
    "properties": {
        "query": {"type": "string"},
        "flags": {"type": "integer"},
        "predicate": {"type": ["string", "null"]},
    },
    "additionalProperties": False,
}

_ITEM_PROPERTIES: dict[str, Any] = {
    "data": {},
    "state": {"type": "integer", "minimum": 0},
    "enabled": {"type": "boolean"},
    "selected": {"type": "boolean"},
}


def _scope_schema(item_schema: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "object",
        "required": ["items", "filters", "order", "sort_key"],
        "properties": {
            "items": {"type": "array", "items": item_schema},
            "filters": {"type": "array", "items": _FILTER},
            "order": {"enum": [None, *(order.value for order in Order)]},
            "sort_key": {"type": ["string", "null"]},
        },
        "additionalProperties": False,
    }


_ITEM: dict[str, Any] = {
    "type": "object",
    "required": list(_ITEM_PROPERTIES),
    "properties": _ITEM_PROPERTIES,
    "additionalProperties": False,
}

_GROUP: dict[str, Any] = {
    "type": "object",
    "required": [*_ITEM_PROPERTIES, "expanded", "allow_duplicate_children", "children"],
    "properties": {
        **_ITEM_PROPERTIES,
        "expanded": {"type": "boolean"},
        "allow_duplicate_children": {"type": ["boolean", "null"]},
        "children": _scope_schema(_ITEM),
    },
    "additionalProperties": False,
}

SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["format", "version", "kind", "settings", "scope"],
    "properties": {
        "format": {"const": FORMAT_NAME},
        "version": {"const": FORMAT_VERSION},
        "kind": {"enum": ["list", "groups"]},
        "settings": {"type": "object"},
        "scope": {"type": "object"},
    },
    "if": {"properties": {"kind": {"const": "list"}}},
    "then": {"properties": {"scope": _scope_schema(_ITEM)}},
    "else": {"properties": {"scope": _scope_schema(_GROUP)}},
}


class RestoreError(ValueError):
    """Raised internally when a blob can not be turned back into an engine."""


def callable_reference(func: Callable[..., Any]) -> str:
    """Return the importable ``module:qualname`` reference of *func*."""
    module = getattr(func, "__module__", None)
    qualname = getattr(func, "__qualname__", None)
    if not module or not qualname or "<" in qualname:
        raise ValueError(f"{func!r} is not importable by reference")
    reference = f"{module}:{qualname}"
    if resolve_reference(reference) is not func:
        raise ValueError(f"{func!r} is not importable by reference")
    return reference


def resolve_reference(reference: str) -> Callable[..., Any]:
    """Import the callable named by a ``module:qualname`` *reference*."""
    module_name, sep, qualname = reference.partition(":")
    if not sep or not module_name or not qualname:
        raise ValueError(f"invalid callable reference: {reference!r}")
    try:
        target: Any = importlib.import_module(module_name)
        for part in qualname.split("."):
            target = getattr(target, part)
    except (ImportError, AttributeError) as exc:
        raise ValueError(f"unable to resolve {reference!r}: {exc}") from exc
    if not callable(target):
        raise ValueError(f"{reference!r} does not name a callable")
    return target


def blob_kind(blob: bytes | None) -> str | None:
    """Return the ``kind`` recorded in *blob* or ``None`` if it is unreadable."""
    if blob is None:
        return None
    try:
        document = json.loads(bytes(blob).decode("utf-8"))
    except (TypeError, UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(document, dict):
        return None
    kind = document.get("kind")
    return kind if isinstance(kind, str) else None


def _identity(value: Any) -> Any:
    return value


@dataclass
class ScopeSnapshot:
    """Decoded content of one scope, ready to be installed into a store."""

    items: list[Item]
    filters: list[AppliedFilter] = field(default_factory=list)
    order: Order | None = None
    key: Callable[[Any], Any] | None = None


class StateCodec:
    """Encode engines as UTF-8 JSON validated against :data:`SCHEMA`.

    ``encode_data``/``decode_data`` convert item data to and from JSON
    compatible values; by default data is stored as is. Restoring validates
    the whole blob before the engine is touched and emits no events.
    """

    def __init__(
        self,
        *,
        encode_data: Callable[[Any], Any] | None = None,
        decode_data: Callable[[Any], Any] | None = None,
    ) -> None:
        """Create a codec using the optional data converters."""
        self._encode_data = encode_data or _identity
        self._decode_data = decode_data or _identity

    # ------------------------------------------------------------------
    # saving
    def save_list(self, engine: ListEngine) -> bytes:
        """Return the blob describing *engine*."""
        document = {
            "format": FORMAT_NAME,
            "version": FORMAT_VERSION,
            "kind": "list",
            "settings": engine.settings.model_dump(mode="json"),
            "scope": self._encode_scope(engine.store, self._encode_item),
        }
        return self._dump(document)

    def save_groups(self, store: GroupStore) -> bytes:
        """Return the blob describing the two-level *store*."""
        document = {
            "format": FORMAT_NAME,
            "version": FORMAT_VERSION,
            "kind": "groups",
            "settings": store.settings.model_dump(mode="json"),
            "scope": self._encode_scope(store.group_store, self._encode_group),
        }
        return self._dump(document)

    def _dump(self, document: dict[str, Any]) -> bytes:
        try:
            text = json.dumps(document, ensure_ascii=False)
        except TypeError as exc:
            raise ValueError(f"item data is not JSON serialisable: {exc}") from exc
        return text.encode("utf-8")

    def _encode_scope(
        self, store: ItemStore, encode_item: Callable[[Item], dict[str, Any]]
    ) -> dict[str, Any]:
        sorting = store.sorting
        return {
            "items": [encode_item(item) for item in store.unfiltered_items()],
            "filters": [
                {
                    "query": applied.query,
                    "flags": applied.flags,
                    "predicate": (
                        None
                        if applied.predicate is None
                        else callable_reference(applied.predicate)
                    ),
                }
                for applied in store.filters.applied
            ],
            "order": None if sorting.order is None else sorting.order.value,
            "sort_key": None if sorting.key is None else callable_reference(sorting.key),
        }

    def _encode_item(self, item: Item) -> dict[str, Any]:
        return {
            "data": self._encode_data(item.data),
            "state": item.state,
            "enabled": item.enabled,
            "selected": item.selected,
        }

    def _encode_group(self, group: Group) -> dict[str, Any]:
        encoded = self._encode_item(group)
        encoded["expanded"] = group.expanded
        encoded["allow_duplicate_children"] = group.allow_duplicate_children
        encoded["children"] = self._encode_scope(group.children, self._encode_item)
        return encoded

    # ------------------------------------------------------------------
    # restoring
    def restore_list(self, engine: ListEngine, blob: bytes | None) -> bool:
        """Replace the content of *engine* with *blob*; ``False`` if unusable."""
        try:
            document = self._load(blob, "list")
            settings = _validate_settings(ListSettings, document["settings"])
            scope = self._decode_scope(document["scope"], self._decode_item)
            _check_scope(scope, settings.number_of_states, settings.allow_duplicates)
            _check_selection(settings.choice_mode, scope.items)
        except RestoreError as exc:
            logger.warning(
                "Unable to restore list state: %s",
                exc,
                extra=change_record("restore_failed", kind="list", reason=str(exc)),
            )
            return False
        engine._install(settings, scope.items, scope.filters, scope.order, scope.key)
        logger.info(
            "Restored %d items",
            len(scope.items),
            extra=change_record("restored", kind="list", count=len(scope.items)),
        )
        return True

    def restore_groups(self, store: GroupStore, blob: bytes | None) -> bool:
        """Replace the content of the two-level *store*; ``False`` if unusable."""
        try:
            document = self._load(blob, "groups")
            settings = _validate_settings(GroupSettings, document["settings"])
            raw_groups = document["scope"]["items"]
            scope = self._decode_scope(document["scope"], self._decode_group)
            children = [
                self._decode_scope(raw["children"], self._decode_item) for raw in raw_groups
            ]
            _check_groups(settings, scope, children)
        except RestoreError as exc:
            logger.warning(
                "Unable to restore group state: %s",
                exc,
                extra=change_record("restore_failed", kind="groups", reason=str(exc)),
            )
            return False
        store._install(settings, scope, children)
        logger.info(
            "Restored %d groups",
            len(scope.items),
            extra=change_record("restored", kind="groups", count=len(scope.items)),
        )
        return True

    def _load(self, blob: bytes | None, kind: str) -> dict[str, Any]:
        if blob is None:
            raise RestoreError("no state available")
        try:
            document = json.loads(bytes(blob).decode("utf-8"))
        except (TypeError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise RestoreError(f"malformed blob: {exc}") from exc
        try:
            _validate(instance=document, schema=SCHEMA)
        except SchemaValidationError as exc:
            raise RestoreError(exc.message) from exc
        if document["kind"] != kind:
            raise RestoreError(f"blob holds {document['kind']!r} state, expected {kind!r}")
        return document

    def _decode_scope(
        self, raw: dict[str, Any], decode_item: Callable[[dict[str, Any]], Item]
    ) -> ScopeSnapshot:
        items = [decode_item(entry) for entry in raw["items"]]
        filters = [
            AppliedFilter(
                entry["query"],
                entry["flags"],
                None if entry["predicate"] is None else _resolve(entry["predicate"]),
            )
            for entry in raw["filters"]
        ]
        for applied in filters:
            if is_empty_group_filter(applied):
                continue
            for item in items:
                try:
                    applied.matches(Item(item.data))
                except UnsupportedOperationError as exc:
                    raise RestoreError(str(exc)) from exc
        return ScopeSnapshot(
            items=items,
            filters=filters,
            order=None if raw["order"] is None else Order(raw["order"]),
            key=None if raw["sort_key"] is None else _resolve(raw["sort_key"]),
        )

    def _decode_value(self, raw: Any) -> Any:
        try:
            data = self._decode_data(raw)
        except (TypeError, ValueError, KeyError) as exc:
            raise RestoreError(f"unable to decode item data: {exc}") from exc
        if data is None:
            raise RestoreError("item data may not be null")
        return data

    def _decode_item(self, raw: dict[str, Any]) -> Item:
        return Item(
            self._decode_value(raw["data"]),
            state=raw["state"],
            enabled=raw["enabled"],
            selected=raw["selected"],
        )

    def _decode_group(self, raw: dict[str, Any]) -> Group:
        return Group(
            self._decode_value(raw["data"]),
            state=raw["state"],
            enabled=raw["enabled"],
            selected=raw["selected"],
            expanded=raw["expanded"],
            allow_duplicate_children=raw["allow_duplicate_children"],
        )


def _resolve(reference: str) -> Callable[..., Any]:
    try:
        return resolve_reference(reference)
    except ValueError as exc:
        raise RestoreError(str(exc)) from exc


def _validate_settings(model: type, raw: dict[str, Any]) -> Any:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise RestoreError(str(exc)) from exc


def _has_duplicates(values: Iterable[Any]) -> bool:
    seen: list[Any] = []
    for value in values:
        if value in seen:
            return True
        seen.append(value)
    return False


def _check_scope(scope: ScopeSnapshot, number_of_states: int, allow_duplicates: bool) -> None:
    for item in scope.items:
        if item.state >= number_of_states:
            raise RestoreError(f"state {item.state} exceeds {number_of_states - 1}")
    if not allow_duplicates and _has_duplicates(item.data for item in scope.items):
        raise RestoreError("duplicate items although duplicates are not allowed")


def _check_selection(choice_mode: ChoiceMode, items: Iterable[Item]) -> None:
    selected = sum(1 for item in items if item.selected)
    if choice_mode is ChoiceMode.NONE and selected:
        raise RestoreError("items are selected in choice mode 'none'")
    if choice_mode is ChoiceMode.SINGLE and selected > 1:
        raise RestoreError("more than one item is selected in choice mode 'single'")


def _check_groups(
    settings: GroupSettings, scope: ScopeSnapshot, children: list[ScopeSnapshot]
) -> None:
    _check_scope(scope, settings.number_of_group_states, settings.allow_duplicate_groups)
    for group, child_scope in zip(scope.items, children):
        local = group.allow_duplicate_children  # type: ignore[attr-defined]
        if local is None:
            local = settings.allow_duplicate_children
        _check_scope(child_scope, settings.number_of_child_states, local)
    if not settings.allow_duplicate_children and _has_duplicates(
        child.data for child_scope in children for child in child_scope.items
    ):
        raise RestoreError("duplicate children although duplicates are not allowed")
    scope_rule = settings.selection_scope
    if not scope_rule.groups_selectable and any(group.selected for group in scope.items):
        raise RestoreError("groups are selected although they are not selectable")
    all_children = [child for child_scope in children for child in child_scope.items]
    if not scope_rule.children_selectable and any(child.selected for child in all_children):
        raise RestoreError("children are selected although they are not selectable")
    _check_selection(settings.choice_mode, [*scope.items, *all_children])


__all__ = [
    "FORMAT_NAME",
    "FORMAT_VERSION",
    "RestoreError",
    "SCHEMA",
    "ScopeSnapshot",
    "StateCodec",
    "blob_kind",
    "callable_reference",
    "resolve_reference",
]
