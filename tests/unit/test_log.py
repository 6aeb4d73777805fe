"""Tests for logging config."""

import json
import logging
from pathlib import Path

import pytest

from listcore.log import (
    JSON_LOG_NAME,
    TEXT_LOG_NAME,
    JsonFormatter,
    JsonlHandler,
    change_record,
    configure_logging,
    logger,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def log_dir_env(monkeypatch, tmp_path: Path) -> Path:
    path = tmp_path / "logs"
    monkeypatch.setenv("LISTCORE_LOG_DIR", str(path))
    return path


def _record(msg: str, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="listcore",
        level=level,
        pathname=__file__,
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )


def _json_lines(directory: Path) -> list[dict]:
    for handler in logger.handlers:
        handler.flush()
    path = directory / JSON_LOG_NAME
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_configure_logging_attaches_handlers_once(
    reset_logger: None, log_dir_env: Path
) -> None:
    configure_logging()
    handlers = list(logger.handlers)
    assert len(handlers) == 3
    json_handlers = [h for h in handlers if isinstance(h, JsonlHandler)]
    assert len(json_handlers) == 1
    configure_logging()
    assert logger.handlers == handlers


def test_configure_logging_sets_console_level(
    reset_logger: None, log_dir_env: Path
) -> None:
    configure_logging(level=logging.WARNING)
    assert logger.level == logging.DEBUG
    stream_handler = next(
        h
        for h in logger.handlers
        if isinstance(h, logging.StreamHandler)
        and not isinstance(h, logging.FileHandler)
    )
    assert stream_handler.level == logging.WARNING


def test_configure_logging_returns_directory_from_environment(
    reset_logger: None, log_dir_env: Path
) -> None:
    directory = configure_logging()

    assert directory == log_dir_env.resolve()
    assert directory.is_dir()
    assert configure_logging(log_dir=log_dir_env / "elsewhere") == directory


def test_configure_logging_prefers_explicit_directory(
    reset_logger: None, log_dir_env: Path, tmp_path: Path
) -> None:
    directory = configure_logging(log_dir=tmp_path / "explicit")

    assert directory == (tmp_path / "explicit").resolve()
    logger.info("hello")
    for handler in logger.handlers:
        handler.flush()
    assert "hello" in (directory / TEXT_LOG_NAME).read_text(encoding="utf-8")


def test_engine_changes_reach_json_log_with_fields(
    reset_logger: None, log_dir_env: Path
) -> None:
    from listcore.core.filtering import text_filter
    from listcore.core.list_engine import ListEngine

    directory = configure_logging()
    engine = ListEngine(["apple"])
    engine.add("pear")
    engine.apply_filter("ea", 0, text_filter)
    engine.remove_at(0)

    lines = _json_lines(directory)
    added = [line for line in lines if line.get("event") == "added"]
    assert [line["data"] for line in added] == ["apple", "pear"]
    added = added[-1]
    assert added["index"] == 1
    applied = next(line for line in lines if line.get("event") == "filter_applied")
    assert applied["query"] == "ea"
    assert applied["visible"] == 1
    removed = next(line for line in lines if line.get("event") == "removed")
    assert removed["data"] == "pear"
    assert removed["level"] == "INFO"
    assert removed["logger"] == "listcore"


def test_failed_restore_reaches_json_log(reset_logger: None, log_dir_env: Path) -> None:
    from listcore.core.list_engine import ListEngine

    directory = configure_logging()
    ListEngine().restore(b"garbage")

    warning = next(line for line in _json_lines(directory) if line["level"] == "WARNING")
    assert warning["message"].startswith("Unable to restore list state")
    assert warning["event"] == "restore_failed"
    assert warning["kind"] == "list"


def test_json_formatter_merges_change_record() -> None:
    record = _record("Sorted 2 items")
    record.json = change_record("sorted", order="ascending", count=2)["json"]

    data = json.loads(JsonFormatter().format(record))

    assert data["event"] == "sorted"
    assert data["order"] == "ascending"
    assert data["message"] == "Sorted 2 items"
    assert data["level"] == "INFO"
    assert "timestamp" in data


def test_json_formatter_writes_unserialisable_data_as_repr() -> None:
    class Token:
        def __repr__(self) -> str:
            return "<token>"

    record = _record("Added item")
    record.json = change_record("added", index=0, data=Token())["json"]

    data = json.loads(JsonFormatter().format(record))

    assert data["data"] == "<token>"


def test_json_formatter_without_extra_keeps_message() -> None:
    data = json.loads(JsonFormatter().format(_record("plain", logging.WARNING)))

    assert data["message"] == "plain"
    assert data["level"] == "WARNING"
    assert "event" not in data
