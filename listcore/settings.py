"""Configuration models for listcore engines."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import tomllib
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .core.model import ChoiceMode, SelectionScope


def _coerce_level(value: int | str) -> int:
    """Translate level names such as ``"debug"`` into numeric levels."""
    if isinstance(value, str):
        raw = value.strip()
        if raw.isdigit():
            return int(raw)
        level = logging.getLevelName(raw.upper())
        if not isinstance(level, int):
            raise ValueError(f"unknown log level: {value!r}")
        return level
    return value


class ListSettings(BaseModel):
    """Settings of a single-level :class:`~listcore.core.list_engine.ListEngine`."""

    model_config = ConfigDict(validate_assignment=True)

    allow_duplicates: bool = False
    notify_on_change: bool = True
    number_of_states: int = Field(default=1, ge=1)
    choice_mode: ChoiceMode = ChoiceMode.MULTIPLE
    adapt_selection_automatically: bool = False


class GroupSettings(BaseModel):
    """Settings of a two-level :class:`~listcore.core.group_store.GroupStore`."""

    model_config = ConfigDict(validate_assignment=True)

    allow_duplicate_groups: bool = False
    allow_duplicate_children: bool = False
    notify_on_change: bool = True
    number_of_group_states: int = Field(default=1, ge=1)
    number_of_child_states: int = Field(default=1, ge=1)
    choice_mode: ChoiceMode = ChoiceMode.MULTIPLE
    selection_scope: SelectionScope = SelectionScope.GROUPS_AND_CHILDREN
    adapt_selection_automatically: bool = False
    set_child_states_implicitly: bool = False
    set_child_enable_states_implicitly: bool = False


class EngineSettings(BaseModel):
    """Aggregate settings for list and group engines."""

    model_config = ConfigDict(validate_assignment=True)

    list: ListSettings = Field(default_factory=ListSettings)
    groups: GroupSettings = Field(default_factory=GroupSettings)
    log_level: int = Field(default=logging.INFO)

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: int | str) -> int:
        return _coerce_level(value)

    def to_dict(self) -> dict:
        """Return settings as a plain dictionary."""
        return self.model_dump(mode="json")


def load_settings(path: str | Path) -> EngineSettings:
    """Load :class:`EngineSettings` from *path* with validation.

    Format is detected by file extension: ``.toml`` uses :mod:`tomllib`,
    everything else is treated as JSON. Validation errors are wrapped into
    :class:`ValueError`.
    """
    p = Path(path)
    with p.open("rb") as fh:
        data = tomllib.load(fh) if p.suffix.lower() == ".toml" else json.load(fh)
    try:
        return EngineSettings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc


__all__ = ["EngineSettings", "GroupSettings", "ListSettings", "load_settings"]
