"""Shared data models for websync_core."""

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
)


class ChangeKind(Enum):
    """Kind of change reported for a watched object."""

    CREATED = "created"
    CHANGED = "changed"
    DELETED = "deleted"
    RENAMED = "renamed"
    BULK = "bulk"
    """Forced notification not tied to a single object (e.g. manual refresh)."""


_KIND_BY_EVENT_TYPE = {
    EVENT_TYPE_CREATED: ChangeKind.CREATED,
    EVENT_TYPE_MODIFIED: ChangeKind.CHANGED,
    EVENT_TYPE_DELETED: ChangeKind.DELETED,
    EVENT_TYPE_MOVED: ChangeKind.RENAMED,
}


@dataclass(frozen=True)
class ChangeEvent:
    """A single change notification from one watch binding."""

    name: str
    """Object name relative to the binding root, '/' separated."""

    kind: ChangeKind
    """What happened to the object."""

    timestamp: float = field(default_factory=time.monotonic)
    """Monotonic time the notification was received."""

    @classmethod
    def kind_for(cls, event: FileSystemEvent) -> ChangeKind | None:
        """Map a watchdog event type to a ChangeKind (None for ignored types)."""
        return _KIND_BY_EVENT_TYPE.get(event.event_type)

    @classmethod
    def from_fs_event(cls, event: FileSystemEvent, root: str | Path) -> "ChangeEvent":
        """Create a ChangeEvent from a watchdog event.

        Args:
            event: Raw watchdog event.
            root: Root directory of the binding that produced the event.

        Returns:
            ChangeEvent named relative to root. Renames report the destination.

        Raises:
            ValueError: If the event type is not a change (opened, closed, ...).
        """
        kind = cls.kind_for(event)
        if kind is None:
            raise ValueError(f"Unsupported event type: {event.event_type}")

        raw_path = event.dest_path if kind is ChangeKind.RENAMED and event.dest_path else event.src_path
        if isinstance(raw_path, bytes):
            raw_path = raw_path.decode()
        path = Path(raw_path)
        try:
            name = path.relative_to(root).as_posix()
        except ValueError:
            name = path.as_posix()
        return cls(name=name, kind=kind)


@dataclass(frozen=True)
class TabDescriptor:
    """One open browser page as reported by the discovery endpoint."""

    id: str
    title: str
    url: str
    websocket_debugger_url: str | None = None
    """Control channel address. Missing when DevTools is already attached to the tab."""

    type: str = "page"
    devtools_frontend_url: str | None = None
    favicon_url: str | None = None
    thumbnail_url: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "TabDescriptor":
        """Build a descriptor from one element of the /json array."""
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title", ""),
            url=data.get("url", ""),
            websocket_debugger_url=data.get("webSocketDebuggerUrl") or None,
            type=data.get("type", "page"),
            devtools_frontend_url=data.get("devtoolsFrontendUrl"),
            favicon_url=data.get("faviconUrl"),
            thumbnail_url=data.get("thumbnailUrl"),
        )


@dataclass(frozen=True)
class ReloadRequest:
    """Page.reload request of the remote-debugging protocol."""

    id: int = 1
    method: str = "Page.reload"
    ignore_cache: bool = True

    def to_json(self) -> str:
        return json.dumps(
            {"id": self.id, "method": self.method, "params": {"ignoreCache": self.ignore_cache}}
        )


@dataclass(frozen=True)
class ProtocolError:
    """Error object carried by a protocol response."""

    code: int
    message: str


@dataclass(frozen=True)
class ReloadResponse:
    """Response to a ReloadRequest. No error means the reload was accepted."""

    id: int
    error: ProtocolError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "ReloadResponse":
        """Parse a decoded response message.

        Raises:
            ValueError: If the message or its error member is not a JSON
                object, or an id/code is not an integer.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected response payload: {data!r}")

        error = None
        raw_error = data.get("error")
        if raw_error is not None:
            if not isinstance(raw_error, dict):
                raise ValueError(f"Unexpected error member: {raw_error!r}")
            error = ProtocolError(
                code=_int_field(raw_error, "code"),
                message=str(raw_error.get("message", "")),
            )
        return cls(id=_int_field(data, "id"), error=error)


def _int_field(data: dict[str, Any], key: str) -> int:
    """Read an integer member, treating a missing one as 0."""
    value = data.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected an integer for {key!r}, got {value!r}")
    return value


@dataclass
class ConfigValidationResult:
    """Results from startup configuration validation."""

    bindings_found: int = 0
    """Number of watch bindings that will be started."""

    handlers_enabled: list[str] = field(default_factory=list)
    """Handler names in dispatch order."""

    warnings: list[str] = field(default_factory=list)
    """Config issues found (non-fatal)."""
