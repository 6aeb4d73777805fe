"""Pytest configuration for the listcore test suite."""

from __future__ import annotations

import logging

import pytest

from listcore.core.events import Event, EventKind, Level


class EventRecorder:
    """Listener collecting every delivered event in order."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    def kinds(self) -> list[EventKind]:
        return [event.kind for event in self.events]

    def of(self, kind: EventKind, level: Level | None = None) -> list[Event]:
        return [
            event
            for event in self.events
            if event.kind is kind and (level is None or event.level is level)
        ]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def recorder() -> EventRecorder:
    """Return a fresh event recorder."""

    return EventRecorder()


@pytest.fixture(autouse=True)
def _isolated_log_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> None:
    """Keep log files written during tests out of the home directory."""

    monkeypatch.setenv("LISTCORE_LOG_DIR", str(tmp_path_factory.mktemp("logs")))


@pytest.fixture
def reset_logger():
    """Detach handlers installed by ``configure_logging`` after the test."""

    import listcore.log as log_module

    logger = log_module.logger
    prev_handlers = list(logger.handlers)
    prev_level = logger.level
    prev_log_dir = log_module._log_dir
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    log_module._log_dir = None
    try:
        yield
    finally:
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
        logger.handlers.extend(prev_handlers)
        logger.setLevel(prev_level)
        log_module._log_dir = prev_log_dir
