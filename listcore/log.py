"""Logging utilities for listcore.

Engines log through :data:`logger`. Structural changes and restores attach a
``json`` extra built by :func:`change_record`; :class:`JsonFormatter` merges
it into the JSON-lines log so each change is machine readable, while the
console and the text log show only the message.
"""

from __future__ import annotations

import datetime
import json
import logging
from logging.handlers import RotatingFileHandler
import os
import sys
from pathlib import Path
from typing import Any

LOG_DIR_ENV = "LISTCORE_LOG_DIR"
_DEFAULT_LOG_DIR = Path(".listcore") / "logs"
TEXT_LOG_NAME = "listcore.log"
JSON_LOG_NAME = "listcore.jsonl"
_ROTATION_BACKUPS = 5
_LOG_MAX_BYTES = 5 * 1024 * 1024

logger = logging.getLogger("listcore")

_log_dir: Path | None = None


def change_record(event: str, **fields: Any) -> dict[str, Any]:
    """Return the ``extra`` mapping describing one engine change for the JSON log."""
    return {"json": {"event": event, **fields}}


class JsonFormatter(logging.Formatter):
    """Convert log records into JSON strings.

    The ``json`` extra of a record, when present, supplies the fields;
    message, level, logger and a UTC timestamp are filled in around it.
    Item data that JSON cannot hold is written as its ``repr``.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Serialise *record* and its optional ``json`` extra into one line."""
        data: dict[str, Any] = dict(getattr(record, "json", None) or {})
        data.setdefault("message", record.getMessage())
        data.setdefault("level", record.levelname)
        data.setdefault("logger", record.name)
        data.setdefault(
            "timestamp",
            datetime.datetime.now(datetime.UTC).isoformat(timespec="seconds"),
        )
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False, default=repr)


class JsonlHandler(RotatingFileHandler):
    """Write log records as JSON lines with built-in rotation."""

    def __init__(self, filename: Path | str, *, max_bytes: int = _LOG_MAX_BYTES) -> None:
        """Open *filename*, creating its directory, with :class:`JsonFormatter`."""
        path = Path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(
            path, maxBytes=max_bytes, backupCount=_ROTATION_BACKUPS, encoding="utf-8"
        )
        self.setFormatter(JsonFormatter())


def _resolve_log_dir(log_dir: str | Path | None) -> Path:
    if log_dir is None:
        env_dir = os.environ.get(LOG_DIR_ENV)
        log_dir = env_dir if env_dir else Path.home() / _DEFAULT_LOG_DIR
    path = Path(log_dir).expanduser().resolve()
    path.mkdir(parents=True, exist_ok=True)
    return path


def configure_logging(level: int = logging.INFO, *, log_dir: str | Path | None = None) -> Path:
    """Configure the ``listcore`` logger once and return its log directory.

    The console shows records from *level* up; the rotating text log and the
    JSON-lines log record everything. The directory is *log_dir*, else
    ``$LISTCORE_LOG_DIR``, else ``~/.listcore/logs``. Once the logger has
    handlers, from an earlier call or from the host, nothing is installed.
    """
    global _log_dir

    if logger.handlers:
        if _log_dir is None:
            _log_dir = _resolve_log_dir(log_dir)
        return _log_dir

    _log_dir = _resolve_log_dir(log_dir)

    if sys.stderr is not None:
        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(console)

    text_handler = RotatingFileHandler(
        _log_dir / TEXT_LOG_NAME,
        encoding="utf-8",
        maxBytes=_LOG_MAX_BYTES,
        backupCount=_ROTATION_BACKUPS,
    )
    text_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logger.addHandler(text_handler)
    logger.addHandler(JsonlHandler(_log_dir / JSON_LOG_NAME))

    logger.setLevel(logging.DEBUG)
    return _log_dir


__all__ = [
    "JSON_LOG_NAME",
    "JsonFormatter",
    "JsonlHandler",
    "TEXT_LOG_NAME",
    "change_record",
    "configure_logging",
    "logger",
]
