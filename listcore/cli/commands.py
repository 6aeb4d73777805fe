"""Command implementations for the CLI interface."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, TextIO

from listcore.core.codec import blob_kind
from listcore.core.filtering import FLAG_CASE_SENSITIVE, text_filter
from listcore.core.group_store import GroupStore
from listcore.core.item_store import ItemStore
from listcore.core.list_engine import ListEngine
from listcore.core.model import Order
from listcore.log import logger
from listcore.settings import EngineSettings


@dataclass
class Command:
    """Describe a CLI command and its argument handler."""

    func: Callable[[argparse.Namespace], int | None]
    help: str
    add_arguments: Callable[[argparse.ArgumentParser], None]


Engine = ListEngine | GroupStore


def _read_state(path: str, settings: EngineSettings) -> Engine | None:
    """Restore the engine saved at *path*; ``None`` when unusable."""
    try:
        blob = Path(path).read_bytes()
    except OSError as exc:
        sys.stderr.write(f"error: unable to read {path}: {exc}\n")
        return None
    engine: Engine
    if blob_kind(blob) == "groups":
        engine = GroupStore(settings=settings.groups)
    else:
        engine = ListEngine(settings=settings.list)
    if not engine.restore(blob):
        sys.stderr.write(f"error: {path} does not hold usable listcore state\n")
        return None
    return engine


def _write_state(engine: Engine, path: str) -> None:
    Path(path).write_bytes(engine.save())
    logger.info("Saved state to %s", path)


def _scope_rows(store: ItemStore) -> list[dict[str, Any]]:
    return [
        {
            "index": index,
            "data": item.data,
            "state": item.state,
            "enabled": item.enabled,
            "selected": item.selected,
        }
        for index, item in enumerate(store.items())
    ]


def _snapshot(engine: Engine) -> list[dict[str, Any]]:
    """Return the visible content of *engine* as JSON compatible rows."""
    if isinstance(engine, ListEngine):
        return _scope_rows(engine.store)
    rows = []
    for row, group in zip(_scope_rows(engine.group_store), engine.group_store.items()):
        row["expanded"] = group.expanded
        row["children"] = _scope_rows(group.children)
        rows.append(row)
    return rows


def _format_row(row: dict[str, Any]) -> str:
    flags = []
    if row["state"]:
        flags.append(f"state={row['state']}")
    if not row["enabled"]:
        flags.append("disabled")
    if row["selected"]:
        flags.append("selected")
    suffix = f" ({', '.join(flags)})" if flags else ""
    return f"{row['index']}: {row['data']}{suffix}"


def _print(engine: Engine, fmt: str, out: TextIO) -> None:
    rows = _snapshot(engine)
    if fmt == "json":
        out.write(json.dumps(rows, ensure_ascii=False, indent=2) + "\n")
        return
    for row in rows:
        out.write(_format_row(row) + "\n")
        for child in row.get("children", ()):
            out.write("  " + _format_row(child) + "\n")


def _add_format_argument(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--format",
        choices=["plain", "json"],
        default="plain",
        help="output format",
    )


def _build_engine(document: Any, settings: EngineSettings) -> tuple[Engine, list[Any]]:
    """Return the engine built from *document* and the duplicates it skipped.

    Raises :class:`ValueError` for documents the engines cannot hold.
    """
    engine: Engine
    if isinstance(document, list):
        engine = ListEngine(settings=settings.list)
        rejected = [data for data in document if not engine.add_all([data])]
    elif isinstance(document, dict):
        engine = GroupStore(settings=settings.groups)
        rejected = []
        for group, children in document.items():
            if not isinstance(children, list):
                raise ValueError(f"children of group {group!r} must be a JSON array")
            index = engine.add_group(group)
            if index == -1:
                rejected.append(group)
                continue
            rejected.extend(
                data for data in children if not engine.add_all_children(index, [data])
            )
    else:
        raise ValueError("expected a JSON array or object")
    return engine, rejected


def cmd_build(args: argparse.Namespace) -> int:
    """Create saved state from a JSON document of item data.

    A JSON array produces a list; a JSON object mapping group data to arrays
    of children produces groups. ``null`` entries are refused.
    """
    settings: EngineSettings = args.engine_settings
    try:
        with Path(args.input).open(encoding="utf-8") as fh:
            document = json.load(fh)
    except (OSError, ValueError) as exc:
        sys.stderr.write(f"error: unable to read {args.input}: {exc}\n")
        return 1
    try:
        engine, rejected = _build_engine(document, settings)
    except ValueError as exc:
        sys.stderr.write(f"error: {args.input}: {exc}\n")
        return 1
    for data in rejected:
        sys.stderr.write(f"warning: duplicate {data!r} skipped\n")
    _write_state(engine, args.output)
    return 0


def add_build_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``build`` command."""
    p.add_argument("input", help="JSON array of items or object of groups")
    p.add_argument("-o", "--output", required=True, help="file receiving the state")


def cmd_show(args: argparse.Namespace) -> int:
    """Print the visible content of saved state."""
    engine = _read_state(args.state, args.engine_settings)
    if engine is None:
        return 1
    _print(engine, args.format, sys.stdout)
    return 0


def add_show_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``show`` command."""
    p.add_argument("state", help="file holding saved state")
    _add_format_argument(p)


def cmd_filter(args: argparse.Namespace) -> int:
    """Apply a text filter to saved state and print what remains visible."""
    engine = _read_state(args.state, args.engine_settings)
    if engine is None:
        return 1
    flags = FLAG_CASE_SENSITIVE if args.case_sensitive else 0
    if isinstance(engine, ListEngine):
        engine.apply_filter(args.query, flags, text_filter)
    elif args.children:
        engine.apply_child_filter(
            args.query, flags, text_filter, filter_empty_groups=args.hide_empty_groups
        )
    else:
        engine.apply_group_filter(args.query, flags, text_filter)
    _print(engine, args.format, sys.stdout)
    if args.output:
        _write_state(engine, args.output)
    return 0


def add_filter_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``filter`` command."""
    p.add_argument("state", help="file holding saved state")
    p.add_argument("query", help="text that visible items must contain")
    p.add_argument("--case-sensitive", action="store_true", help="match case")
    p.add_argument("--children", action="store_true", help="filter children of groups")
    p.add_argument(
        "--hide-empty-groups",
        action="store_true",
        help="hide groups without visible children",
    )
    p.add_argument("-o", "--output", help="write the filtered state to file")
    _add_format_argument(p)


def cmd_sort(args: argparse.Namespace) -> int:
    """Sort saved state and print the result."""
    engine = _read_state(args.state, args.engine_settings)
    if engine is None:
        return 1
    order = Order.DESCENDING if args.descending else Order.ASCENDING
    if isinstance(engine, ListEngine):
        engine.sort(order)
    elif args.children:
        engine.sort_children(order=order)
    else:
        engine.sort_groups(order)
    _print(engine, args.format, sys.stdout)
    if args.output:
        _write_state(engine, args.output)
    return 0


def add_sort_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``sort`` command."""
    p.add_argument("state", help="file holding saved state")
    p.add_argument("--descending", action="store_true", help="sort in descending order")
    p.add_argument("--children", action="store_true", help="sort children of groups")
    p.add_argument("-o", "--output", help="write the sorted state to file")
    _add_format_argument(p)


COMMANDS: dict[str, Command] = {
    "build": Command(cmd_build, "create saved state from JSON data", add_build_arguments),
    "show": Command(cmd_show, "print saved state", add_show_arguments),
    "filter": Command(cmd_filter, "filter saved state by text", add_filter_arguments),
    "sort": Command(cmd_sort, "sort saved state", add_sort_arguments),
}
