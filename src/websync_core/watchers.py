"""Watch bindings and the abstract watcher protocol."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from websync_core.models import ChangeKind

ChangeCallback = Callable[[str, ChangeKind], None]


@dataclass(frozen=True)
class WatchBinding:
    """A directory root and the file patterns watched under it."""

    root: Path
    """Directory to watch (recursively)."""

    patterns: tuple[str, ...]
    """Glob patterns matched against file names, e.g. ("*.js", "*.ts")."""

    source: str = "config"
    """Where the binding came from: a convention directory name, "config", ..."""

    def __post_init__(self):
        if not self.patterns:
            raise ValueError(f"Watch binding for {self.root} has no file patterns")
        object.__setattr__(self, "root", Path(self.root))
        object.__setattr__(self, "patterns", tuple(self.patterns))


class ChangeSourceWatcher(Protocol):
    """Protocol for watcher implementations feeding a change callback."""

    def configure(self, bindings: Iterable[WatchBinding]) -> None:
        """Set the bindings to watch."""
        ...

    def start(self) -> None:
        """Start watching."""
        ...

    def stop(self) -> None:
        """Stop watching."""
        ...
