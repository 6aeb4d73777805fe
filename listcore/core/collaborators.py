"""Interfaces of the collaborators an engine talks to."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from ..log import logger


@runtime_checkable
class Renderer(Protocol):
    """Turn items into opaque view handles on demand."""

    def view_type(self, data: Any) -> int:
        """Return the view type used for *data*."""

    def view_type_count(self) -> int:
        """Return how many distinct view types exist."""

    def render_item(
        self,
        data: Any,
        index: int,
        *,
        view_type: int,
        enabled: bool,
        state: int,
        filtered: bool,
        selected: bool,
    ) -> Any:
        """Return a view handle for the list item at *index*."""

    def render_group(
        self,
        data: Any,
        group_index: int,
        *,
        expanded: bool,
        view_type: int,
        enabled: bool,
        state: int,
        filtered: bool,
        selected: bool,
    ) -> Any:
        """Return a view handle for the group at *group_index*."""

    def render_child(
        self,
        data: Any,
        group_index: int,
        child_index: int,
        *,
        group: Any,
        view_type: int,
        enabled: bool,
        state: int,
        filtered: bool,
        selected: bool,
    ) -> Any:
        """Return a view handle for a child of the group at *group_index*."""


@runtime_checkable
class Host(Protocol):
    """Widget an engine is attached to."""

    def structure_changed(self) -> None:
        """Refresh after items were added, removed, filtered or sorted."""

    def item_changed(self, index: int, child_index: int | None = None) -> None:
        """Refresh the row at *index* (or one of its children)."""


@runtime_checkable
class Transport(Protocol):
    """Opaque key/value store persisting engine blobs."""

    def put(self, key: str, blob: bytes) -> None:
        """Store *blob* under *key*."""

    def get(self, key: str) -> bytes | None:
        """Return the blob stored under *key* or ``None``."""


class MemoryTransport:
    """In-memory :class:`Transport` backed by a dictionary."""

    def __init__(self) -> None:
        """Create an empty transport."""
        self._blobs: dict[str, bytes] = {}

    def put(self, key: str, blob: bytes) -> None:
        """Store *blob* under *key*."""
        self._blobs[key] = bytes(blob)

    def get(self, key: str) -> bytes | None:
        """Return the blob stored under *key* or ``None``."""
        return self._blobs.get(key)

    def __contains__(self, key: object) -> bool:
        """Return ``True`` if a blob is stored under *key*."""
        return key in self._blobs


class HostBinding:
    """Attach point forwarding change notifications to a :class:`Host`."""

    def __init__(self) -> None:
        """Create an unattached binding."""
        self._host: Host | None = None

    @property
    def host(self) -> Host | None:
        """Return the attached host, if any."""
        return self._host

    @property
    def is_attached(self) -> bool:
        """Return ``True`` while a host is attached."""
        return self._host is not None

    def attach(self, host: Host) -> None:
        """Attach *host*, replacing any previously attached one."""
        if host is None:
            raise ValueError("The host may not be None")
        self._host = host
        logger.debug("Attached host %r", host)

    def detach(self) -> None:
        """Detach the current host; no-op when nothing is attached."""
        if self._host is not None:
            logger.debug("Detached host %r", self._host)
        self._host = None

    def structure_changed(self) -> None:
        """Forward a structural change to the attached host."""
        if self._host is not None:
            self._host.structure_changed()

    def item_changed(self, index: int, child_index: int | None = None) -> None:
        """Forward a per-row change to the attached host."""
        if self._host is not None:
            self._host.item_changed(index, child_index)


__all__ = ["Host", "HostBinding", "MemoryTransport", "Renderer", "Transport"]
